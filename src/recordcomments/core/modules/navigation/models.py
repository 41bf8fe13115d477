"""Types for drilling down into nested and localized fields."""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from recordcomments.core.modules.mention.models import FieldMention


class BlockFieldType(StrEnum):
    """Field types that hold block instances."""

    MODULAR_CONTENT = "modular_content"
    STRUCTURED_TEXT = "structured_text"
    RICH_TEXT = "rich_text"  # API name of structured text in some payloads
    SINGLE_BLOCK = "single_block"


class FieldInfo(BaseModel):
    """A mentionable field as listed in the field dropdown."""

    api_key: str
    label: str
    field_path: str = Field(..., description="Dot-delimited path from the record root")
    localized: bool = False
    field_type: str | None = None  # Editor type
    display_label: str | None = None  # Label including parent context for nested fields
    is_block_container: bool = False
    block_field_type: BlockFieldType | None = None
    available_locales: list[str] | None = None

    @property
    def needs_locale_choice(self) -> bool:
        return self.localized and self.available_locales is not None and len(self.available_locales) > 1


class BlockInfo(BaseModel):
    """A block instance inside a container field."""

    index: int = Field(..., description="Position in the container (original DAST index for structured text)", ge=0)
    model_id: str
    model_name: str


class FieldStep(BaseModel):
    kind: Literal["field"] = "field"
    field: FieldInfo


class LocaleStep(BaseModel):
    kind: Literal["locale"] = "locale"
    locale: str


class BlockStep(BaseModel):
    kind: Literal["block"] = "block"
    block_index: int
    block_model_id: str
    block_model_name: str
    auto: bool = False  # Pushed without a choice because the container holds a single block


NavigationStep = Annotated[FieldStep | LocaleStep | BlockStep, Field(discriminator="kind")]


class ViewMode(StrEnum):
    """What the field dropdown is currently listing."""

    FIELDS = "fields"
    LOCALES = "locales"
    BLOCKS = "blocks"
    NESTED_FIELDS = "nestedFields"


def field_mention_from_info(field: FieldInfo, locale: str | None = None) -> FieldMention:
    return FieldMention(
        api_key=field.api_key,
        label=field.label,
        localized=field.localized,
        field_path=field.field_path,
        locale=locale,
        field_type=field.field_type,
    )
