"""Bidirectional codec between comment segments and the editable text form.

Editable text carries each mention as a trigger character, its identifier and one
structural trailing space:

    @<userId>   #<encoded.field.path>[::<locale>]   $<modelId>   ^<assetId>   &<recordId>

The full mention data lives in a mention map passed alongside the text.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from string import ascii_letters, digits
from typing import NamedTuple

from recordcomments.core.modules.mention.fieldpath import find_field_mention
from recordcomments.core.modules.mention.models import (
    FIELD_PATH_DELIMITER,
    MENTION_TRIGGERS,
    TRIGGER_TYPES,
    CommentSegment,
    Mention,
    MentionMap,
    MentionSegment,
    MentionType,
    TextSegment,
    mention_identifier,
    mention_key,
)

MENTION_SEPARATOR = " "

IDENTIFIER_CHARS = frozenset(ascii_letters + digits + "_-")


@dataclass(frozen=True)
class TextRun:
    text: str


@dataclass(frozen=True)
class TriggerMatch:
    type: MentionType
    identifier: str
    raw: str


Token = TextRun | TriggerMatch


class EditableContent(NamedTuple):
    text: str
    mentions: MentionMap


class InsertResult(NamedTuple):
    text: str
    cursor_position: int
    mentions: MentionMap


def _scan_identifier(text: str, start: int, mention_type: MentionType) -> int:
    """Return the end index of the identifier starting at `start` (== start when there is none)."""
    end = start
    length = len(text)
    if mention_type is MentionType.FIELD:
        # Field paths start with a letter and may contain `::` between components
        if end >= length or text[end] not in ascii_letters:
            return start
        while end < length:
            if text[end] in IDENTIFIER_CHARS:
                end += 1
            elif text.startswith(FIELD_PATH_DELIMITER, end) and end + 2 < length and text[end + 2] in IDENTIFIER_CHARS:
                end += 2
            else:
                break
        return end

    while end < length and text[end] in IDENTIFIER_CHARS:
        end += 1
    return end


def tokenize(text: str) -> Iterator[Token]:
    """Left-to-right scan emitting text runs and trigger matches.

    A trigger character not followed by a valid identifier stays part of the text run.
    """
    position = 0
    run_start = 0
    length = len(text)
    while position < length:
        mention_type = TRIGGER_TYPES.get(text[position])
        if mention_type is None:
            position += 1
            continue
        end = _scan_identifier(text, position + 1, mention_type)
        if end == position + 1:
            position += 1
            continue
        if position > run_start:
            yield TextRun(text[run_start:position])
        yield TriggerMatch(mention_type, text[position + 1 : end], text[position:end])
        position = end
        run_start = end
    if run_start < length:
        yield TextRun(text[run_start:])


def _resolve(match: TriggerMatch, mentions: MentionMap, project_locales: list[str] | None) -> Mention | None:
    if match.type is MentionType.FIELD:
        return find_field_mention(match.identifier, mentions, project_locales)
    mention = mentions.get(f"{match.type}:{match.identifier}")
    if mention is None or mention.type != match.type:
        return None
    return mention


def format_mention(mention: Mention) -> str:
    """Trigger syntax for a mention, including the structural trailing space."""
    return f"{MENTION_TRIGGERS[mention.type]}{mention_identifier(mention)}{MENTION_SEPARATOR}"


def encode(segments: list[CommentSegment]) -> EditableContent:
    """Convert segments to editable text and the mention map needed to decode it again."""
    parts: list[str] = []
    mentions: MentionMap = {}
    for segment in segments:
        if isinstance(segment, TextSegment):
            parts.append(segment.content)
        else:
            mentions[mention_key(segment.mention)] = segment.mention
            parts.append(format_mention(segment.mention))
    return EditableContent("".join(parts), mentions)


def decode(text: str, mentions: MentionMap, project_locales: list[str] | None = None) -> list[CommentSegment]:
    """Parse editable text back to segments.

    Trigger matches unknown to the map (pasted text, an e-mail address, a literal `$`)
    are kept verbatim as text. Adjacent text is coalesced; empty text is never emitted.
    """
    if not text:
        return []

    segments: list[CommentSegment] = []
    pending: list[str] = []
    after_mention = False

    def flush_text() -> None:
        content = "".join(pending)
        pending.clear()
        if content:
            segments.append(TextSegment(content=content))

    for token in tokenize(text):
        if isinstance(token, TextRun):
            content = token.text
            if after_mention and content.startswith(MENTION_SEPARATOR):
                content = content[len(MENTION_SEPARATOR) :]
            pending.append(content)
            after_mention = False
            continue

        mention = _resolve(token, mentions, project_locales)
        if mention is None:
            pending.append(token.raw)
            after_mention = False
            continue

        flush_text()
        segments.append(MentionSegment(mention=mention))
        after_mention = True

    flush_text()
    return segments


def is_content_empty(segments: list[CommentSegment]) -> bool:
    return all(isinstance(segment, TextSegment) and not segment.content.strip() for segment in segments)


def insert_mention(text: str, mentions: MentionMap, trigger_start: int, cursor_position: int, mention: Mention) -> InsertResult:
    """Replace the typed trigger span `[trigger_start, cursor_position)` with the mention's syntax.

    Returns a new map containing the mention; the given map is left untouched.
    """
    mention_text = format_mention(mention)
    new_text = text[:trigger_start] + mention_text + text[cursor_position:]
    new_mentions = {**mentions, mention_key(mention): mention}
    return InsertResult(new_text, trigger_start + len(mention_text), new_mentions)


def insert_at_cursor(text: str, mentions: MentionMap, cursor_position: int, mention: Mention) -> InsertResult:
    """Insert a mention picked outside the text flow (asset/record pickers, toolbar)."""
    return insert_mention(text, mentions, cursor_position, cursor_position, mention)
