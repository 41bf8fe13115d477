"""Field path decoding and lookup of field mentions written in either historical encoding.

Current text uses `::` between path components (`sections::0::hero_title::it`).
Older comments joined components with `_` (`sections_0_hero_title_it`), which cannot be
reversed losslessly when API keys contain underscores or digit runs, so the legacy
lookups here are best effort only.
"""

import re

from recordcomments.core.modules.mention.models import (
    FIELD_PATH_DELIMITER,
    FieldMention,
    MentionMap,
    encode_field_path,
)

COMMON_LOCALES = frozenset(
    ["en", "it", "de", "fr", "es", "pt", "nl", "ja", "zh", "ko", "ru", "ar", "pl", "tr", "sv", "da", "no", "fi"]
)

LOCALE_CODE_RE = re.compile(r"^[a-z]{2}(-[a-z]{2})?$", re.IGNORECASE)


def decode_legacy_field_path(encoded_path: str) -> str:
    """Underscore-joined legacy form: a digit-run component is read as a block index.

    >>> decode_legacy_field_path("blocks_0_heading")
    'blocks.0.heading'
    """
    components = encoded_path.split("_")
    decoded = components[0]
    for previous, component in zip(components, components[1:], strict=False):
        decoded += ("." if component.isdigit() or previous.isdigit() else "_") + component
    return decoded


def looks_like_locale(value: str, project_locales: list[str] | None = None) -> bool:
    """Guess whether a trailing path component is a locale code.

    A field whose API key is itself `en` cannot be told apart from an `en` locale suffix;
    passing the project locales narrows the guess to codes that actually exist.
    """
    if project_locales:
        return value in project_locales or value.lower() in project_locales
    return bool(LOCALE_CODE_RE.match(value)) or value.lower() in COMMON_LOCALES


def _split_locale_suffix(encoded_path: str, project_locales: list[str] | None) -> list[tuple[str, str]]:
    candidates: list[tuple[str, str]] = []
    for delimiter in (FIELD_PATH_DELIMITER, "_"):
        index = encoded_path.rfind(delimiter)
        if index <= 0:
            continue
        possible_locale = encoded_path[index + len(delimiter) :]
        if possible_locale and looks_like_locale(possible_locale, project_locales):
            candidates.append((encoded_path[:index], possible_locale))
    return candidates


def _field_lookup(mentions: MentionMap, key: str) -> FieldMention | None:
    mention = mentions.get(key)
    return mention if isinstance(mention, FieldMention) else None


def find_field_mention(
    encoded_path: str, mentions: MentionMap, project_locales: list[str] | None = None
) -> FieldMention | None:
    """Resolve the identifier after `#` against the mention map.

    Tries, in order: the exact key, the legacy underscore-decoded path, then
    locale-suffix extraction (with and without legacy decoding).
    """
    mention = _field_lookup(mentions, f"field:{encoded_path}")
    if mention:
        return mention

    legacy_path = decode_legacy_field_path(encoded_path)
    for key in (f"field:{encode_field_path(legacy_path)}", f"field:{legacy_path}"):
        mention = _field_lookup(mentions, key)
        if mention:
            return mention

    for path_without_locale, locale in _split_locale_suffix(encoded_path, project_locales):
        legacy_without_locale = decode_legacy_field_path(path_without_locale)
        keys = (
            f"field:{path_without_locale}{FIELD_PATH_DELIMITER}{locale}",
            f"field:{encode_field_path(legacy_without_locale)}{FIELD_PATH_DELIMITER}{locale}",
            f"field:{legacy_without_locale}.{locale}",
        )
        for key in keys:
            mention = _field_lookup(mentions, key)
            if mention:
                return mention

    return None
