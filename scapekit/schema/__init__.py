"""Widget vocabulary and variant registry.

Example usage:
    >>> from scapekit.schema import WidgetType, list_variants, default_payload
    >>> [v.id for v in list_variants(WidgetType.GALLERY)]
    ['gallery-grid', 'gallery-carousel']
    >>> default_payload(WidgetType.GALLERY, "gallery-grid")
    {'media_ids': [], 'layout': 'grid'}
"""

from .lib import (
    END_OF_LIST,
    FEATURED_CAPTION_MAX_LENGTH,
    NEW_SCAPE_ID,
    SUMMARY_TEXT_MAX_LENGTH,
    TAGLINE_MAX_LENGTH,
    TITLE_INVALID_CHARS,
    TITLE_MAX_LENGTH,
    WIDGET_REGISTRY,
    Channel,
    Visibility,
    WidgetMeta,
    WidgetSize,
    WidgetType,
    WidgetVariant,
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
