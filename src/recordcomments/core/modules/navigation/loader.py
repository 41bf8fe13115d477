"""Field listing over a record's schema and current field values."""

from typing import Any

from pydantic import BaseModel, Field

from recordcomments.core.modules.navigation.models import BlockFieldType, BlockInfo, BlockStep, FieldInfo

BLOCK_CONTAINER_TYPES = frozenset(BlockFieldType)

# Structural keys of a block value that are not field values
BLOCK_METADATA_KEYS = frozenset(["id", "type", "itemTypeId", "attributes", "item", "blockModelId", "relationships"])


class FieldDefinition(BaseModel):
    """Field of a content model, as described by the CMS schema."""

    api_key: str
    label: str
    field_type: str = Field(..., description="CMS field type, e.g. 'string', 'modular_content', 'single_block'")
    localized: bool = False
    editor: str | None = None
    block_model_ids: list[str] = Field(default_factory=list, description="Block models allowed in a container field")


class ModelDefinition(BaseModel):
    """Content model (or block model) with its fields."""

    id: str
    api_key: str
    name: str
    fields: list[FieldDefinition] = Field(default_factory=list)


def is_block_value(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    has_identifier = any(isinstance(value.get(key), str) for key in ("id", "type", "itemTypeId", "blockModelId"))
    attributes = value.get("attributes")
    return has_identifier and (attributes is None or isinstance(attributes, dict))


def block_model_id(block: dict[str, Any]) -> str | None:
    for key in ("blockModelId", "itemTypeId", "type"):
        value = block.get(key)
        if isinstance(value, str):
            return value
    return None


def block_attributes(block: dict[str, Any]) -> dict[str, Any]:
    attributes = block.get("attributes")
    if isinstance(attributes, dict):
        return attributes
    return {key: value for key, value in block.items() if key not in BLOCK_METADATA_KEYS}


def extract_blocks(value: Any) -> list[tuple[int, dict[str, Any]]]:
    """Block instances held by a container value, paired with their index.

    Handles modular content arrays, structured text documents (`{document|value, blocks}`),
    structured text DAST node arrays (the original node index is kept) and single blocks.
    """
    if not value:
        return []

    if isinstance(value, dict):
        if "document" in value or "value" in value:
            return [(index, block) for index, block in enumerate(value.get("blocks") or []) if isinstance(block, dict)]
        return [(0, value)] if is_block_value(value) else []

    if not isinstance(value, list):
        return []

    first = value[0] if isinstance(value[0], dict) else {}
    is_modular_content = "blockModelId" not in first and (
        isinstance(first.get("itemTypeId"), str) or isinstance(first.get("attributes"), dict)
    )
    if is_modular_content:
        return [(index, block) for index, block in enumerate(value) if isinstance(block, dict)]

    # Structured text DAST: only block nodes count, at their position among all nodes
    return [
        (index, node) for index, node in enumerate(value) if isinstance(node, dict) and isinstance(node.get("blockModelId"), str)
    ]


def _localized_value(value: Any, locale: str | None) -> Any:
    if locale is not None and isinstance(value, dict) and not is_block_value(value) and locale in value:
        return value[locale]
    return value


def get_value_at_path(values: dict[str, Any], field_path: str, locale: str | None = None) -> Any:
    """Walk `sections.0.hero_title` through record values, picking `locale` for localized values."""
    parts = field_path.split(".")
    current: Any = _localized_value(values.get(parts[0]), locale)
    for part in parts[1:]:
        if current is None:
            return None
        if part.isdigit():
            block = dict(extract_blocks(current)).get(int(part))
            current = block_attributes(block) if block is not None else None
            continue
        if is_block_value(current):
            current = block_attributes(current)
        current = current.get(part) if isinstance(current, dict) else None
    return current


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | dict):
        return len(value) == 0
    return False


class RecordFieldLoader:
    """Lists mentionable fields of one record, including fields nested in block instances."""

    def __init__(self, models: list[ModelDefinition], values: dict[str, Any], locales: list[str]) -> None:
        self._models = {model.id: model for model in models}
        self._values = values
        self._locales = list(locales)

    def available_locales(self, value: Any) -> list[str]:
        """Locales holding a non-empty value, or every project locale when none do yet."""
        if isinstance(value, dict) and not is_block_value(value):
            with_values = [locale for locale in self._locales if not _is_empty(value.get(locale))]
            if with_values:
                return with_values
        return list(self._locales)

    def to_field_info(
        self, definition: FieldDefinition, field_path: str, value: Any, parent_label: str | None = None
    ) -> FieldInfo:
        is_container = definition.field_type in BLOCK_CONTAINER_TYPES
        return FieldInfo(
            api_key=definition.api_key,
            label=definition.label,
            field_path=field_path,
            localized=definition.localized,
            field_type=definition.editor,
            display_label=f"{parent_label} > {definition.label}" if parent_label else None,
            is_block_container=is_container,
            block_field_type=BlockFieldType(definition.field_type) if is_container else None,
            available_locales=self.available_locales(value) if definition.localized else None,
        )

    def top_level_fields(self, model_id: str) -> list[FieldInfo]:
        model = self._models.get(model_id)
        if model is None:
            return []
        return [self.to_field_info(field, field.api_key, self._values.get(field.api_key)) for field in model.fields]

    async def list_blocks(self, field: FieldInfo, locale: str | None) -> list[BlockInfo]:
        value = get_value_at_path(self._values, field.field_path, locale)
        blocks: list[BlockInfo] = []
        for index, block in extract_blocks(value):
            model_id = block_model_id(block)
            if model_id is None:
                continue
            model = self._models.get(model_id)
            blocks.append(BlockInfo(index=index, model_id=model_id, model_name=model.name if model else model_id))
        return blocks

    async def list_block_fields(
        self, field: FieldInfo, block: BlockStep, base_path: str, locale: str | None
    ) -> list[FieldInfo]:
        model = self._models.get(block.block_model_id)
        if model is None:
            return []
        container_value = get_value_at_path(self._values, field.field_path, locale)
        instance = dict(extract_blocks(container_value)).get(block.block_index)
        attributes = block_attributes(instance) if instance is not None else {}
        parent_label = f"{field.label} > {block.block_model_name} #{block.block_index + 1}"
        fields: list[FieldInfo] = []
        for definition in model.fields:
            # Locale is chosen at the container level
            nested = definition.model_copy(update={"localized": False})
            field_path = f"{base_path}.{definition.api_key}"
            fields.append(self.to_field_info(nested, field_path, attributes.get(definition.api_key), parent_label))
        return fields
