"""Mention system for structured comment content."""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MentionType(StrEnum):
    """Kinds of targets a comment can reference."""

    USER = "user"
    FIELD = "field"
    ASSET = "asset"
    RECORD = "record"
    MODEL = "model"


# Single-character trigger that starts each mention's inline syntax
MENTION_TRIGGERS: dict[MentionType, str] = {
    MentionType.USER: "@",
    MentionType.FIELD: "#",
    MentionType.MODEL: "$",
    MentionType.ASSET: "^",
    MentionType.RECORD: "&",
}

TRIGGER_TYPES: dict[str, MentionType] = {trigger: mention_type for mention_type, trigger in MENTION_TRIGGERS.items()}

# Internal field paths use dots (blocks.0.heading), the serialized form uses this token
FIELD_PATH_DELIMITER = "::"


class MentionBase(BaseModel):
    """Stored with camelCase keys to stay compatible with existing comment records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class UserMention(MentionBase):
    type: Literal[MentionType.USER] = MentionType.USER
    id: str
    name: str
    email: str
    avatar_url: str | None = None


class FieldMention(MentionBase):
    type: Literal[MentionType.FIELD] = MentionType.FIELD
    api_key: str
    label: str
    localized: bool = False
    field_path: str = Field(..., description="Dot-delimited path: 'title' or 'blocks.0.heading'")
    locale: str | None = None  # Selected locale for localized fields
    field_type: str | None = None  # Editor type, e.g. 'single_line', 'structured_text'


class AssetMention(MentionBase):
    type: Literal[MentionType.ASSET] = MentionType.ASSET
    id: str
    filename: str
    url: str
    thumbnail_url: str | None = None
    mime_type: str


class RecordMention(MentionBase):
    type: Literal[MentionType.RECORD] = MentionType.RECORD
    id: str
    title: str
    model_id: str
    model_api_key: str
    model_name: str
    model_emoji: str | None = None
    thumbnail_url: str | None = None
    is_singleton: bool | None = None


class ModelMention(MentionBase):
    type: Literal[MentionType.MODEL] = MentionType.MODEL
    id: str
    api_key: str
    name: str
    is_block_model: bool = False


Mention = Annotated[
    UserMention | FieldMention | AssetMention | RecordMention | ModelMention,
    Field(discriminator="type"),
]

# Canonical map key ("user:123", "field:blocks::0::heading::it") -> mention data
MentionMap = dict[str, Mention]


class TextSegment(BaseModel):
    type: Literal["text"] = "text"
    content: str


class MentionSegment(BaseModel):
    type: Literal["mention"] = "mention"
    mention: Mention


CommentSegment = Annotated[TextSegment | MentionSegment, Field(discriminator="type")]


def encode_field_path(field_path: str) -> str:
    return field_path.replace(".", FIELD_PATH_DELIMITER)


def mention_identifier(mention: Mention) -> str:
    """Identifier written after the trigger character, e.g. `blocks::0::heading::it` for a field."""
    if isinstance(mention, FieldMention):
        encoded_path = encode_field_path(mention.field_path or mention.api_key)
        # Nested fields inside localized containers may already carry the locale mid-path
        locale_in_path = mention.locale is not None and f"{FIELD_PATH_DELIMITER}{mention.locale}{FIELD_PATH_DELIMITER}" in encoded_path
        if mention.locale and not locale_in_path:
            return f"{encoded_path}{FIELD_PATH_DELIMITER}{mention.locale}"
        return encoded_path
    return mention.id


def mention_key(mention: Mention) -> str:
    """Canonical map key, derived from the mention's own fields only."""
    return f"{mention.type}:{mention_identifier(mention)}"
