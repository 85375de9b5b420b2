"""Unit tests for the widget vocabulary and variant registry."""

import pytest

from .lib import (
    FEATURED_CAPTION_MAX_LENGTH,
    TAGLINE_MAX_LENGTH,
    WIDGET_REGISTRY,
    Channel,
    WidgetSize,
    WidgetType,
    channel_priority,
    column_span,
    default_payload,
    default_variant,
    export_widget_catalog,
    get_variant,
    get_widget_meta,
    list_variants,
    next_size,
)


class TestRegistryCoverage:
    """The registry must describe every widget type exactly once."""

    @pytest.mark.unit
    def test_every_type_registered(self):
        """Each WidgetType has a registry entry."""
        assert set(WIDGET_REGISTRY) == set(WidgetType)

    @pytest.mark.unit
    @pytest.mark.parametrize("widget_type", list(WidgetType))
    def test_entry_matches_key(self, widget_type):
        """Registry entries are keyed by their own type and have variants."""
        meta = WIDGET_REGISTRY[widget_type]
        assert meta.type == widget_type
        assert meta.variants

    @pytest.mark.unit
    def test_variant_ids_unique(self):
        """Variant ids never collide across types."""
        ids = [v.id for meta in WIDGET_REGISTRY.values() for v in meta.variants]
        assert len(ids) == len(set(ids))


class TestLookups:
    """Tests for registry lookup helpers."""

    @pytest.mark.unit
    def test_get_widget_meta_accepts_string(self):
        """Lookups accept raw string values."""
        assert get_widget_meta("shop").type == WidgetType.SHOP

    @pytest.mark.unit
    def test_unknown_type_raises(self):
        """Unknown types are rejected by the enum."""
        with pytest.raises(ValueError):
            get_widget_meta("carousel")

    @pytest.mark.unit
    def test_get_variant(self):
        """Known variants are found, unknown ones are None."""
        variant = get_variant(WidgetType.GALLERY, "gallery-carousel")
        assert variant is not None
        assert variant.size == WidgetSize.MEDIUM
        assert get_variant(WidgetType.GALLERY, "text-small") is None

    @pytest.mark.unit
    def test_list_variants_order(self):
        """Variants keep registry order."""
        ids = [v.id for v in list_variants(WidgetType.TEXT)]
        assert ids == ["text-small", "text-medium", "text-large"]

    @pytest.mark.unit
    def test_default_variant(self):
        """First registered variant is the default."""
        assert default_variant(WidgetType.SHOP).id == "shop-grid"

    @pytest.mark.unit
    def test_default_payload_is_a_copy(self):
        """Mutating a returned payload never touches the registry."""
        payload = default_payload(WidgetType.BUTTON, "button-two")
        payload["buttons"].append({"label": "extra"})
        fresh = default_payload(WidgetType.BUTTON, "button-two")
        assert len(fresh["buttons"]) == 2

    @pytest.mark.unit
    def test_default_payload_unknown_variant(self):
        """Unknown variants get an empty payload."""
        assert default_payload(WidgetType.TEXT, "nope") == {}

    @pytest.mark.unit
    def test_channel_priority_order(self):
        """Buttons and live panels drive channels before galleries and text."""
        assert channel_priority(WidgetType.BUTTON) == 1
        assert channel_priority(WidgetType.LIVE) == 1
        assert channel_priority(WidgetType.GALLERY) < channel_priority(WidgetType.TEXT)
        assert channel_priority(WidgetType.LLM) == 6


class TestSizes:
    """Tests for size helpers."""

    @pytest.mark.unit
    def test_column_span(self):
        """Sizes map to 1-3 columns."""
        assert column_span(WidgetSize.SMALL) == 1
        assert column_span(WidgetSize.MEDIUM) == 2
        assert column_span(WidgetSize.LARGE) == 3

    @pytest.mark.unit
    def test_next_size_cycles(self):
        """Size cycling wraps around."""
        assert next_size(WidgetSize.SMALL) == WidgetSize.MEDIUM
        assert next_size(WidgetSize.MEDIUM) == WidgetSize.LARGE
        assert next_size(WidgetSize.LARGE) == WidgetSize.SMALL


class TestBoundsAndEnums:
    """Shared constants."""

    @pytest.mark.unit
    def test_summary_bounds_agree(self):
        """Tagline and featured caption share one bound."""
        assert TAGLINE_MAX_LENGTH == FEATURED_CAPTION_MAX_LENGTH == 75

    @pytest.mark.unit
    def test_channel_values(self):
        """Channels are the four colors."""
        assert {c.value for c in Channel} == {"red", "green", "blue", "neutral"}


class TestCatalogExport:
    """Tests for export_widget_catalog."""

    @pytest.mark.unit
    def test_catalog_shape(self):
        """Catalog lists every type with serialisable variants."""
        catalog = export_widget_catalog()
        assert [entry["type"] for entry in catalog] == [t.value for t in WidgetType]
        gallery = next(e for e in catalog if e["type"] == "gallery")
        assert gallery["variants"][0]["size"] == "large"
        assert gallery["variants"][0]["default_data"]["layout"] == "grid"
