"""Tests for the record field loader."""

import pytest

from recordcomments.core.modules.navigation.loader import (
    RecordFieldLoader,
    block_attributes,
    extract_blocks,
    get_value_at_path,
)
from recordcomments.core.modules.navigation.models import BlockFieldType, BlockStep


class TestExtractBlocks:
    """Tests for block instance extraction from container values."""

    def test_empty_values(self):
        """Test empty or scalar values hold no blocks."""
        assert extract_blocks(None) == []
        assert extract_blocks([]) == []
        assert extract_blocks("text") == []

    def test_modular_content(self):
        """Test modular arrays keep their positions."""
        value = [{"itemTypeId": "a"}, {"itemTypeId": "b", "attributes": {}}]
        assert [index for index, _ in extract_blocks(value)] == [0, 1]

    def test_structured_text_document(self):
        """Test `{value, blocks}` documents list their blocks."""
        value = {"value": {}, "blocks": [{"id": "1", "itemTypeId": "q"}, "junk"]}
        assert extract_blocks(value) == [(0, {"id": "1", "itemTypeId": "q"})]

    def test_dast_nodes_keep_original_index(self):
        """Test only block nodes count, at their original position."""
        value = [
            {"type": "paragraph", "children": []},
            {"type": "block", "blockModelId": "q", "text": "x"},
            {"type": "paragraph", "children": []},
            {"type": "block", "blockModelId": "h"},
        ]
        assert [index for index, _ in extract_blocks(value)] == [1, 3]

    def test_single_block(self):
        """Test a lone block value is index 0."""
        value = {"itemTypeId": "h", "attributes": {"title": "x"}}
        assert extract_blocks(value) == [(0, value)]


class TestValueAtPath:
    """Tests for walking record values."""

    def test_nested_block_field(self, values):
        """Test block indices and attributes are followed."""
        assert get_value_at_path(values, "sections.0.hero_title") == "Welcome"

    def test_localized_container(self, values):
        """Test the locale is picked at the localized level."""
        assert get_value_at_path(values, "content.1.text", "it") == "Citazione"

    def test_single_block_without_index(self, values):
        """Test single block fields are addressed without an index."""
        assert get_value_at_path(values, "hero.hero_title") == "Single"

    def test_missing(self, values):
        """Test unknown paths give None."""
        assert get_value_at_path(values, "sections.9.hero_title") is None
        assert get_value_at_path(values, "nope") is None

    def test_flat_block_attributes(self):
        """Test blocks without an attributes object expose their own keys."""
        assert block_attributes({"id": "1", "type": "item", "title": "x"}) == {"title": "x"}


class TestRecordFieldLoader:
    """Tests for field listing."""

    def test_top_level_fields(self, loader):
        """Test containers and locales are detected."""
        fields = {field.api_key: field for field in loader.top_level_fields("page")}

        assert fields["title"].available_locales == ["en", "it"]
        assert fields["title"].field_type == "single_line"
        assert fields["seo"].available_locales is None
        assert fields["sections"].block_field_type == BlockFieldType.MODULAR_CONTENT
        assert fields["hero"].block_field_type == BlockFieldType.SINGLE_BLOCK
        assert fields["body"].is_block_container is True
        assert fields["seo"].is_block_container is False

    def test_unknown_model(self, loader):
        """Test an unknown model lists nothing."""
        assert loader.top_level_fields("missing") == []

    def test_locales_fall_back_to_project_locales(self, models):
        """Test an empty localized value offers every project locale."""
        loader = RecordFieldLoader(models, {"title": {"en": "", "it": None}}, ["en", "it", "de"])
        title = next(field for field in loader.top_level_fields("page") if field.api_key == "title")
        assert title.available_locales == ["en", "it", "de"]

    @pytest.mark.asyncio
    async def test_list_blocks_uses_locale(self, loader):
        """Test localized containers list the chosen locale's blocks."""
        content = next(field for field in loader.top_level_fields("page") if field.api_key == "content")

        assert [block.model_name for block in await loader.list_blocks(content, "en")] == ["Hero"]
        assert [block.model_name for block in await loader.list_blocks(content, "it")] == ["Hero", "Quote"]

    @pytest.mark.asyncio
    async def test_block_fields(self, loader):
        """Test nested fields carry full paths, parent labels and no own localization."""
        sections = next(field for field in loader.top_level_fields("page") if field.api_key == "sections")
        step = BlockStep(block_index=0, block_model_id="hb", block_model_name="Hero")

        fields = await loader.list_block_fields(sections, step, "sections.0", None)

        assert [field.field_path for field in fields] == ["sections.0.hero_title", "sections.0.image"]
        assert fields[0].display_label == "Sections > Hero #1 > Hero title"
        assert all(field.localized is False for field in fields)

    @pytest.mark.asyncio
    async def test_block_fields_unknown_model(self, loader):
        """Test a block of an unknown model has no fields."""
        sections = next(field for field in loader.top_level_fields("page") if field.api_key == "sections")
        step = BlockStep(block_index=0, block_model_id="nope", block_model_name="Nope")
        assert await loader.list_block_fields(sections, step, "sections.0", None) == []
