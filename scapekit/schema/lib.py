"""Authoritative vocabulary for scape documents.

This module is the single source of truth for everything the engine knows
about widget kinds without looking inside a widget payload:
- Closed enums (widget types, channels, sizes, visibility)
- The variant registry with default payloads per variant
- Channel priority used to pick the widget driving a channel
- Length bounds shared by validation and persistence

All schema-related lookups should route through this module.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Bounds and sentinels
# =============================================================================

# Tagline and featured caption are both feed-summary text and share one bound.
SUMMARY_TEXT_MAX_LENGTH = 75
TAGLINE_MAX_LENGTH = SUMMARY_TEXT_MAX_LENGTH
FEATURED_CAPTION_MAX_LENGTH = SUMMARY_TEXT_MAX_LENGTH

TITLE_MAX_LENGTH = 50
TITLE_INVALID_CHARS = frozenset('<>:"/\\|?*')

# Position assigned by create_widget; append() replaces it.
END_OF_LIST = -1

NEW_SCAPE_ID = "new"


# =============================================================================
# Enums
# =============================================================================


class WidgetType(str, Enum):
    """Closed set of widget kinds a scape can contain."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    GALLERY = "gallery"
    SHOP = "shop"
    LIVE = "live"
    BUTTON = "button"
    LLM = "llm"
    HEADER = "header"


class Channel(str, Enum):
    """Cross-widget signalling tag.

    Widgets on the same colored channel react to each other; NEUTRAL opts out.
    """

    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    NEUTRAL = "neutral"


class WidgetSize(str, Enum):
    """Column footprint of a widget variant."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Visibility(str, Enum):
    """Who can see a published scape."""

    PUBLIC = "public"
    PRIVATE = "private"
    UNLISTED = "unlisted"


_SIZE_SPANS: dict[WidgetSize, int] = {
    WidgetSize.SMALL: 1,
    WidgetSize.MEDIUM: 2,
    WidgetSize.LARGE: 3,
}

_SIZE_CYCLE: tuple[WidgetSize, ...] = (
    WidgetSize.SMALL,
    WidgetSize.MEDIUM,
    WidgetSize.LARGE,
)


def column_span(size: WidgetSize) -> int:
    """Number of grid columns (1-3) a size occupies."""
    return _SIZE_SPANS[WidgetSize(size)]


def next_size(size: WidgetSize) -> WidgetSize:
    """Cycle small -> medium -> large -> small."""
    index = _SIZE_CYCLE.index(WidgetSize(size))
    return _SIZE_CYCLE[(index + 1) % len(_SIZE_CYCLE)]


# =============================================================================
# Variant registry
# =============================================================================


@dataclass(frozen=True)
class WidgetVariant:
    """One selectable flavour of a widget type.

    Attributes:
        id: Variant identifier stored on the widget (e.g. "gallery-grid").
        size: Column footprint.
        name: Display name in the widget picker.
        description: One-line picker description.
        default_data: Payload a freshly created widget starts with.
    """

    id: str
    size: WidgetSize
    name: str
    description: str = ""
    default_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert variant to a JSON-friendly dict."""
        return {
            "id": self.id,
            "size": self.size.value,
            "name": self.name,
            "description": self.description,
            "default_data": copy.deepcopy(self.default_data),
        }


@dataclass(frozen=True)
class WidgetMeta:
    """Registry entry for a widget type.

    Attributes:
        type: The widget type described.
        name: Category display name.
        description: What the widget shows.
        channel_priority: Lower drives a channel first when several widgets share it.
        variants: Selectable variants, first one is the default.
    """

    type: WidgetType
    name: str
    description: str
    channel_priority: int
    variants: tuple[WidgetVariant, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary for catalog export."""
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "channel_priority": self.channel_priority,
            "variants": [v.to_dict() for v in self.variants],
        }


WIDGET_REGISTRY: dict[WidgetType, WidgetMeta] = {
    WidgetType.TEXT: WidgetMeta(
        type=WidgetType.TEXT,
        name="Text",
        description="Formatted text block",
        channel_priority=4,
        variants=(
            WidgetVariant(
                "text-small", WidgetSize.SMALL, "Small Text", "Short note",
                {"content": ""},
            ),
            WidgetVariant(
                "text-medium", WidgetSize.MEDIUM, "Medium Text", "Paragraph",
                {"content": ""},
            ),
            WidgetVariant(
                "text-large", WidgetSize.LARGE, "Large Text", "Long-form text",
                {"content": ""},
            ),
        ),
    ),
    WidgetType.HEADER: WidgetMeta(
        type=WidgetType.HEADER,
        name="Header",
        description="Section header with a title line",
        channel_priority=4,
        variants=(
            WidgetVariant(
                "header-title", WidgetSize.LARGE, "Title Header",
                "Full-width section title",
                {"title": "", "subtitle": "", "linked_media_id": None},
            ),
        ),
    ),
    WidgetType.IMAGE: WidgetMeta(
        type=WidgetType.IMAGE,
        name="Image/Media",
        description="Single image or video",
        channel_priority=3,
        variants=(
            WidgetVariant(
                "image-small", WidgetSize.SMALL, "Small Image", "Thumbnail",
                {"media_ids": []},
            ),
            WidgetVariant(
                "image-medium", WidgetSize.MEDIUM, "Medium Image", "Inline image",
                {"media_ids": []},
            ),
            WidgetVariant(
                "image-large", WidgetSize.LARGE, "Large Image", "Hero image",
                {"media_ids": []},
            ),
        ),
    ),
    WidgetType.AUDIO: WidgetMeta(
        type=WidgetType.AUDIO,
        name="Audio",
        description="Audio player with a track list",
        channel_priority=3,
        variants=(
            WidgetVariant(
                "audio-player", WidgetSize.MEDIUM, "Audio Player",
                "Standard player", {"tracks": []},
            ),
        ),
    ),
    WidgetType.GALLERY: WidgetMeta(
        type=WidgetType.GALLERY,
        name="Gallery",
        description="Multiple images",
        channel_priority=2,
        variants=(
            WidgetVariant(
                "gallery-grid", WidgetSize.LARGE, "Grid Gallery", "Image grid",
                {"media_ids": [], "layout": "grid"},
            ),
            WidgetVariant(
                "gallery-carousel", WidgetSize.MEDIUM, "Carousel Gallery",
                "Swipeable carousel", {"media_ids": [], "layout": "carousel"},
            ),
        ),
    ),
    WidgetType.LIVE: WidgetMeta(
        type=WidgetType.LIVE,
        name="Live",
        description="Live stream or chat panel",
        channel_priority=1,
        variants=(
            WidgetVariant(
                "live-stream", WidgetSize.LARGE, "Live Stream", "Embedded stream",
                {"stream_url": "", "is_live": False},
            ),
        ),
    ),
    WidgetType.SHOP: WidgetMeta(
        type=WidgetType.SHOP,
        name="Shop",
        description="Products for sale",
        channel_priority=5,
        variants=(
            WidgetVariant(
                "shop-grid", WidgetSize.LARGE, "Product Grid", "Several products",
                {"products": []},
            ),
            WidgetVariant(
                "shop-single", WidgetSize.MEDIUM, "Single Product",
                "One highlighted product", {"products": []},
            ),
        ),
    ),
    WidgetType.LLM: WidgetMeta(
        type=WidgetType.LLM,
        name="LLM",
        description="AI chat panel",
        channel_priority=6,
        variants=(
            WidgetVariant(
                "llm-chat", WidgetSize.LARGE, "AI Chat", "Prompted assistant",
                {"prompt": "", "messages": []},
            ),
        ),
    ),
    WidgetType.BUTTON: WidgetMeta(
        type=WidgetType.BUTTON,
        name="Button",
        description="Buttons that signal a channel",
        channel_priority=1,
        variants=(
            WidgetVariant(
                "button-two", WidgetSize.SMALL, "Two Button", "Pair of buttons",
                {"buttons": [{"label": "Button 1"}, {"label": "Button 2"}]},
            ),
            WidgetVariant(
                "button-three", WidgetSize.MEDIUM, "Three Button",
                "One button per channel",
                {
                    "buttons": [
                        {"label": "Red"},
                        {"label": "Green"},
                        {"label": "Blue"},
                    ]
                },
            ),
        ),
    ),
}


# =============================================================================
# Registry lookups
# =============================================================================


def get_widget_meta(widget_type: WidgetType | str) -> WidgetMeta:
    """Get registry metadata for a widget type.

    Raises:
        ValueError: If the type is not a known WidgetType.
    """
    return WIDGET_REGISTRY[WidgetType(widget_type)]


def list_variants(widget_type: WidgetType | str) -> list[WidgetVariant]:
    """List the selectable variants of a widget type."""
    return list(get_widget_meta(widget_type).variants)


def get_variant(widget_type: WidgetType | str, variant_id: str) -> WidgetVariant | None:
    """Find a variant of a widget type by id, or None."""
    for variant in get_widget_meta(widget_type).variants:
        if variant.id == variant_id:
            return variant
    return None


def default_variant(widget_type: WidgetType | str) -> WidgetVariant:
    """The first (default) variant for a widget type."""
    return get_widget_meta(widget_type).variants[0]


def default_payload(widget_type: WidgetType | str, variant_id: str) -> dict[str, Any]:
    """Fresh copy of the default payload for a variant.

    Unknown variants yield an empty payload.
    """
    variant = get_variant(widget_type, variant_id)
    return copy.deepcopy(variant.default_data) if variant else {}


def channel_priority(widget_type: WidgetType | str) -> int:
    """Priority for driving a channel; lower wins."""
    return get_widget_meta(widget_type).channel_priority


def export_widget_catalog() -> list[dict[str, Any]]:
    """Export the whole registry as JSON-friendly dicts, in enum order."""
    return [WIDGET_REGISTRY[wt].to_dict() for wt in WidgetType]


__all__ = [
    # Bounds
    "SUMMARY_TEXT_MAX_LENGTH",
    "TAGLINE_MAX_LENGTH",
    "FEATURED_CAPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "TITLE_INVALID_CHARS",
    "END_OF_LIST",
    "NEW_SCAPE_ID",
    # Enums
    "WidgetType",
    "Channel",
    "WidgetSize",
    "Visibility",
    "column_span",
    "next_size",
    # Registry
    "WidgetVariant",
    "WidgetMeta",
    "WIDGET_REGISTRY",
    "get_widget_meta",
    "list_variants",
    "get_variant",
    "default_variant",
    "default_payload",
    "channel_priority",
    "export_widget_catalog",
]
