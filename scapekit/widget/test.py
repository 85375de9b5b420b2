"""Unit tests for the widget model."""

import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from scapekit.schema import END_OF_LIST, Channel, WidgetSize, WidgetType

from .lib import UnknownVariantError, Widget, create_widget, generate_widget_id


class TestGenerateWidgetId:
    """Tests for id generation."""

    @pytest.mark.unit
    def test_format(self):
        """Ids carry a millisecond timestamp and a random suffix."""
        assert re.fullmatch(r"widget_\d{13}_[0-9a-f]{9}", generate_widget_id())

    @pytest.mark.unit
    def test_unique_in_process(self):
        """A burst of ids never repeats."""
        ids = {generate_widget_id() for _ in range(2000)}
        assert len(ids) == 2000


class TestCreateWidget:
    """Tests for create_widget."""

    @pytest.mark.unit
    def test_defaults(self):
        """New widgets start neutral, unfeatured, at the end sentinel."""
        widget = create_widget(WidgetType.TEXT, "text-small")
        assert widget.type == WidgetType.TEXT
        assert widget.variant == "text-small"
        assert widget.position == END_OF_LIST
        assert widget.channel == Channel.NEUTRAL
        assert widget.is_feature is False
        assert widget.featured_caption is None

    @pytest.mark.unit
    def test_registry_payload_used(self):
        """Without an explicit payload the variant default is copied in."""
        widget = create_widget("gallery", "gallery-carousel")
        assert widget.data == {"media_ids": [], "layout": "carousel"}

    @pytest.mark.unit
    def test_explicit_payload_copied(self):
        """The caller's payload is copied, not aliased."""
        payload = {"prompt": "hi", "messages": []}
        widget = create_widget(WidgetType.LLM, "llm-chat", payload)
        payload["messages"].append("mutated")
        assert widget.data == {"prompt": "hi", "messages": []}

    @pytest.mark.unit
    def test_unknown_variant_rejected(self):
        """Variants from another type are refused."""
        with pytest.raises(UnknownVariantError):
            create_widget(WidgetType.AUDIO, "image-small")

    @pytest.mark.unit
    def test_unknown_type_rejected(self):
        """Types outside the closed set are refused."""
        with pytest.raises(ValueError):
            create_widget("video", "video-small")

    @pytest.mark.unit
    def test_fresh_ids(self):
        """Every created widget has its own id."""
        a = create_widget(WidgetType.TEXT, "text-small")
        b = create_widget(WidgetType.TEXT, "text-small")
        assert a.id != b.id


class TestWidgetModel:
    """Tests for the immutable widget model."""

    @pytest.fixture
    def widget(self) -> Widget:
        return Widget(id="w1", type=WidgetType.IMAGE, variant="image-large", position=0)

    @pytest.mark.unit
    def test_frozen(self, widget):
        """Fields cannot be assigned directly."""
        with pytest.raises(PydanticValidationError):
            widget.position = 3

    @pytest.mark.unit
    def test_size_from_variant(self, widget):
        """Size is derived from the registered variant."""
        assert widget.size == WidgetSize.LARGE
        legacy = Widget(id="w2", type=WidgetType.IMAGE, variant="default")
        assert legacy.size is None

    @pytest.mark.unit
    def test_with_position_returns_copy(self, widget):
        """Position edits do not touch the original."""
        moved = widget.with_position(4)
        assert moved.position == 4
        assert widget.position == 0
        assert widget.with_position(0) is widget

    @pytest.mark.unit
    def test_with_channel_accepts_string(self, widget):
        """Channel values are coerced to the enum."""
        assert widget.with_channel("blue").channel == Channel.BLUE

    @pytest.mark.unit
    def test_with_channel_rejects_unknown(self, widget):
        """Unknown channel names are refused."""
        with pytest.raises(ValueError):
            widget.with_channel("purple")

    @pytest.mark.unit
    def test_featured_sets_empty_caption(self, widget):
        """Featuring without a caption starts from the empty string."""
        featured = widget.featured()
        assert featured.is_feature is True
        assert featured.featured_caption == ""

    @pytest.mark.unit
    def test_featured_keeps_existing_caption(self, widget):
        """Re-featuring keeps a caption already written."""
        featured = widget.featured("Look here").featured()
        assert featured.featured_caption == "Look here"

    @pytest.mark.unit
    def test_unfeatured_clears_caption(self, widget):
        """Dropping the feature drops the caption."""
        cleared = widget.featured("x").unfeatured()
        assert cleared.is_feature is False
        assert cleared.featured_caption is None

    @pytest.mark.unit
    def test_caption_dropped_when_not_featured(self):
        """Captions on unfeatured widgets are discarded on construction."""
        widget = Widget(
            id="w3",
            type=WidgetType.TEXT,
            variant="text-small",
            featured_caption="stale",
        )
        assert widget.featured_caption is None

    @pytest.mark.unit
    def test_dict_round_trip(self, widget):
        """to_dict/from_dict preserve every field."""
        original = widget.with_channel(Channel.RED).featured("cap").with_data(
            {"media_ids": ["m1", "m2"]}
        )
        payload = original.to_dict()
        assert payload["type"] == "image"
        assert payload["channel"] == "red"
        assert Widget.from_dict(payload) == original
