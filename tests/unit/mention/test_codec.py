"""Tests for the mention codec."""

import pytest

from recordcomments.core.modules.mention.codec import (
    TextRun,
    TriggerMatch,
    decode,
    encode,
    format_mention,
    insert_at_cursor,
    insert_mention,
    is_content_empty,
    tokenize,
)
from recordcomments.core.modules.mention.models import (
    AssetMention,
    FieldMention,
    MentionSegment,
    MentionType,
    ModelMention,
    RecordMention,
    TextSegment,
    UserMention,
    mention_key,
)


@pytest.fixture
def user_mention():
    """Create a user mention."""
    return UserMention(id="42", name="Alice", email="alice@example.com")


@pytest.fixture
def field_mention():
    """Create a localized nested field mention."""
    return FieldMention(api_key="hero_title", label="Hero title", localized=True, field_path="sections.0.hero_title", locale="it")


@pytest.fixture
def all_mentions(user_mention, field_mention):
    """Create one mention of every type."""
    return [
        user_mention,
        field_mention,
        AssetMention(id="a-9", filename="cover.png", url="https://cdn.example.com/cover.png", mime_type="image/png"),
        RecordMention(id="rec_7", title="Home", model_id="m1", model_api_key="page", model_name="Page"),
        ModelMention(id="m1", api_key="page", name="Page"),
    ]


class TestTokenize:
    """Tests for the left-to-right scanner."""

    def test_plain_text_is_single_run(self):
        """Test text without triggers."""
        assert list(tokenize("just words")) == [TextRun("just words")]

    def test_trigger_matches(self):
        """Test text runs and trigger matches are emitted in order."""
        tokens = list(tokenize("hi @42 see #title::en now"))
        assert tokens == [
            TextRun("hi "),
            TriggerMatch(MentionType.USER, "42", "@42"),
            TextRun(" see "),
            TriggerMatch(MentionType.FIELD, "title::en", "#title::en"),
            TextRun(" now"),
        ]

    def test_lone_trigger_stays_text(self):
        """Test a trigger without identifier is part of the text."""
        assert list(tokenize("costs $ 5 & more")) == [TextRun("costs $ 5 & more")]

    def test_field_identifier_must_start_with_letter(self):
        """Test `#1` is not a field trigger."""
        assert list(tokenize("issue #1")) == [TextRun("issue #1")]

    def test_trailing_delimiter_not_consumed(self):
        """Test a dangling `::` ends the field identifier."""
        tokens = list(tokenize("#title:: x"))
        assert tokens[0] == TriggerMatch(MentionType.FIELD, "title", "#title")
        assert tokens[1] == TextRun(":: x")


class TestEncode:
    """Tests for segments to editable text."""

    def test_mentions_get_trailing_space(self, user_mention, field_mention):
        """Test each mention is written with trigger, identifier and one space."""
        segments = [
            TextSegment(content="Ping "),
            MentionSegment(mention=user_mention),
            TextSegment(content="about "),
            MentionSegment(mention=field_mention),
        ]
        content = encode(segments)

        assert content.text == "Ping @42 about #sections::0::hero_title::it "
        assert content.mentions == {
            "user:42": user_mention,
            "field:sections::0::hero_title::it": field_mention,
        }

    def test_format_each_type(self, all_mentions):
        """Test trigger characters per mention type."""
        formatted = [format_mention(mention) for mention in all_mentions]
        assert formatted == ["@42 ", "#sections::0::hero_title::it ", "^a-9 ", "&rec_7 ", "$m1 "]

    def test_locale_already_in_path(self):
        """Test the locale is not appended twice."""
        mention = FieldMention(api_key="title", label="Title", field_path="blocks.it.title", locale="it")
        assert mention_key(mention) == "field:blocks::it::title"


class TestDecode:
    """Tests for editable text to segments."""

    def test_empty_text(self, user_mention):
        """Test empty text decodes to no segments."""
        assert decode("", {"user:42": user_mention}) == []
        assert decode("", {}) == []

    def test_roundtrip_every_type(self, all_mentions):
        """Test decode(encode(s)) keeps segment types, mention identities and text."""
        segments = []
        for index, mention in enumerate(all_mentions):
            segments.append(TextSegment(content=f"part {index} "))
            segments.append(MentionSegment(mention=mention))
        segments.append(TextSegment(content="end."))

        content = encode(segments)
        decoded = decode(content.text, content.mentions)

        assert [segment.type for segment in decoded] == [segment.type for segment in segments]
        assert [s.mention for s in decoded if isinstance(s, MentionSegment)] == all_mentions
        assert [s.content for s in decoded if isinstance(s, TextSegment)] == [
            s.content for s in segments if isinstance(s, TextSegment)
        ]

    def test_field_path_with_locale_roundtrip(self, field_mention):
        """Test `sections.0.hero_title` in `it` survives even though the key has an underscore."""
        content = encode([MentionSegment(mention=field_mention)])
        decoded = decode(content.text, content.mentions)

        assert len(decoded) == 1
        assert isinstance(decoded[0], MentionSegment)
        assert decoded[0].mention.field_path == "sections.0.hero_title"
        assert decoded[0].mention.locale == "it"

    def test_unknown_mention_kept_as_text(self, user_mention):
        """Test unresolved triggers remain literal text and coalesce with neighbours."""
        decoded = decode("mail bob@example.com or @99 please", {"user:42": user_mention})
        assert decoded == [TextSegment(content="mail bob@example.com or @99 please")]

    def test_only_one_space_stripped_after_mention(self, user_mention):
        """Test the structural space is removed but further spaces are kept."""
        decoded = decode("@42   hi", {"user:42": user_mention})
        assert decoded == [MentionSegment(mention=user_mention), TextSegment(content="  hi")]

    def test_adjacent_mentions(self, user_mention):
        """Test back-to-back mentions produce no empty text segments."""
        bob = UserMention(id="7", name="Bob", email="bob@example.com")
        decoded = decode("@42 @7 ", {"user:42": user_mention, "user:7": bob})
        assert decoded == [MentionSegment(mention=user_mention), MentionSegment(mention=bob)]

    def test_type_mismatch_not_resolved(self, user_mention):
        """Test a `$` trigger cannot resolve a user entry."""
        decoded = decode("$42 ", {"model:42": user_mention})
        assert decoded == [TextSegment(content="$42 ")]

    def test_legacy_underscore_field_path(self):
        """Test best-effort decoding of the legacy underscore encoding."""
        mention = FieldMention(api_key="gallery", label="Gallery", localized=True, field_path="gallery.2", locale="en")
        decoded = decode("see #gallery_2_en ", {mention_key(mention): mention})

        assert decoded == [TextSegment(content="see "), MentionSegment(mention=mention)]

    def test_legacy_index_mid_path(self):
        """Test a block index followed by more components decodes to a nested path."""
        mention = FieldMention(api_key="heading", label="Heading", field_path="blocks.0.heading")
        decoded = decode("see #blocks_0_heading ", {mention_key(mention): mention})

        assert decoded == [TextSegment(content="see "), MentionSegment(mention=mention)]

    def test_legacy_nested_path_with_locale(self, field_mention):
        """Test an underscore api key after a block index resolves with its locale suffix."""
        decoded = decode("see #sections_0_hero_title_it ", {mention_key(field_mention): field_mention})
        assert decoded == [TextSegment(content="see "), MentionSegment(mention=field_mention)]

    def test_legacy_digit_api_key_is_lossy(self):
        """Test an api key containing an underscore-delimited digit run cannot be recovered."""
        mention = FieldMention(api_key="item_2_name", label="Item name", field_path="blocks.0.item_2_name")
        decoded = decode("see #blocks_0_item_2_name ", {mention_key(mention): mention})

        assert decoded == [TextSegment(content="see #blocks_0_item_2_name ")]


class TestIsContentEmpty:
    """Tests for empty content detection."""

    def test_no_segments(self):
        """Test an empty list is empty."""
        assert is_content_empty([]) is True

    def test_whitespace_only(self):
        """Test whitespace-only text is empty."""
        assert is_content_empty([TextSegment(content="   ")]) is True

    def test_mention_is_content(self, user_mention):
        """Test a lone mention is content."""
        assert is_content_empty([MentionSegment(mention=user_mention)]) is False

    def test_text_is_content(self):
        """Test non-blank text is content."""
        assert is_content_empty([TextSegment(content=" x ")]) is False


class TestInsertMention:
    """Tests for inserting a selected mention."""

    def test_replaces_typed_trigger(self, user_mention):
        """Test the typed `@al` is replaced and the cursor lands after the space."""
        result = insert_mention("hi @al", {}, trigger_start=3, cursor_position=6, mention=user_mention)

        assert result.text == "hi @42 "
        assert result.cursor_position == 7
        assert result.mentions == {"user:42": user_mention}

    def test_keeps_text_after_cursor(self, user_mention):
        """Test text after the cursor is preserved."""
        result = insert_mention("hi @al and more", {}, trigger_start=3, cursor_position=6, mention=user_mention)
        assert result.text == "hi @42  and more"

    def test_original_map_untouched(self, user_mention, field_mention):
        """Test a new map is returned."""
        mentions = {"user:42": user_mention}
        result = insert_at_cursor("x", mentions, 1, field_mention)

        assert result.text == "x#sections::0::hero_title::it "
        assert set(result.mentions) == {"user:42", "field:sections::0::hero_title::it"}
        assert mentions == {"user:42": user_mention}
