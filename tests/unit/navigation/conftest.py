"""Schema and record fixtures for field navigation tests."""

import pytest

from recordcomments.core.modules.navigation.loader import FieldDefinition, ModelDefinition, RecordFieldLoader


@pytest.fixture
def models():
    """Create a page model with plain, localized and block container fields."""
    return [
        ModelDefinition(
            id="page",
            api_key="page",
            name="Page",
            fields=[
                FieldDefinition(api_key="title", label="Title", field_type="string", localized=True, editor="single_line"),
                FieldDefinition(api_key="seo", label="SEO", field_type="string"),
                FieldDefinition(api_key="sections", label="Sections", field_type="modular_content"),
                FieldDefinition(api_key="content", label="Content", field_type="modular_content", localized=True),
                FieldDefinition(api_key="hero", label="Hero", field_type="single_block"),
                FieldDefinition(api_key="body", label="Body", field_type="structured_text"),
            ],
        ),
        ModelDefinition(
            id="hb",
            api_key="hero_block",
            name="Hero",
            fields=[
                FieldDefinition(api_key="hero_title", label="Hero title", field_type="string", localized=True),
                FieldDefinition(api_key="image", label="Image", field_type="file"),
            ],
        ),
        ModelDefinition(
            id="qb",
            api_key="quote_block",
            name="Quote",
            fields=[FieldDefinition(api_key="text", label="Text", field_type="text")],
        ),
    ]


@pytest.fixture
def values():
    """Create record values for the page model."""
    return {
        "title": {"en": "Hello", "it": "Ciao"},
        "seo": "meta",
        "sections": [
            {"itemTypeId": "hb", "attributes": {"hero_title": "Welcome", "image": None}},
            {"itemTypeId": "qb", "attributes": {"text": "Quote"}},
        ],
        "content": {
            "en": [{"itemTypeId": "hb", "attributes": {"hero_title": "EN hero"}}],
            "it": [
                {"itemTypeId": "hb", "attributes": {"hero_title": "IT hero"}},
                {"itemTypeId": "qb", "attributes": {"text": "Citazione"}},
            ],
        },
        "hero": {"itemTypeId": "hb", "attributes": {"hero_title": "Single"}},
        "body": {
            "value": {"schema": "dast", "document": {"type": "root", "children": []}},
            "blocks": [{"id": "b1", "itemTypeId": "qb", "attributes": {"text": "Inline"}}],
        },
    }


@pytest.fixture
def loader(models, values):
    """Create a loader over the page record."""
    return RecordFieldLoader(models, values, ["en", "it"])
