"""Widget model: one typed content block inside a scape.

A widget is an immutable pydantic model. Every edit goes through a ``with_*``
method that returns a new instance, which keeps documents that share widget
instances safe from each other.

The ``data`` payload is opaque to the engine. Its shape is decided by the
widget ``type`` and seeded from the variant registry in ``scapekit.schema``.
"""

import copy
import time
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scapekit.schema import (
    END_OF_LIST,
    Channel,
    WidgetSize,
    WidgetType,
    default_payload,
    get_variant,
)

_issued_ids: set[str] = set()


class UnknownVariantError(ValueError):
    """Raised when a variant id does not belong to the widget type."""


def generate_widget_id() -> str:
    """Generate a widget id, unique within this process.

    Format: ``widget_<epoch-ms>_<random suffix>``.
    """
    while True:
        widget_id = f"widget_{int(time.time() * 1000)}_{uuid4().hex[:9]}"
        if widget_id not in _issued_ids:
            _issued_ids.add(widget_id)
            return widget_id


class Widget(BaseModel):
    """A single content block.

    Attributes:
        id: Client-generated identifier, kept verbatim across saves.
        type: Widget kind; decides the shape of ``data``.
        variant: Variant chosen at creation, never changed afterwards.
        channel: Color tag for cross-widget signalling.
        position: 0-based index in the owning document, or END_OF_LIST
            before the widget is appended.
        is_feature: Whether this is the document's featured widget.
        featured_caption: Caption shown with the feature; None unless featured.
        data: Type-specific payload.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable widget identifier")
    type: WidgetType = Field(..., description="Widget kind")
    variant: str = Field(..., min_length=1, description="Variant within the type")
    channel: Channel = Field(default=Channel.NEUTRAL, description="Signalling tag")
    position: int = Field(
        default=END_OF_LIST,
        ge=END_OF_LIST,
        description="0-based order within the document",
    )
    is_feature: bool = Field(default=False, description="Featured widget flag")
    featured_caption: str | None = Field(
        default=None,
        description="Caption for the featured widget",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque type-specific payload",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_caption_unless_featured(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("is_feature"):
            values = {**values, "featured_caption": None}
        return values

    # -------------------------------------------------------------------------
    # Derived
    # -------------------------------------------------------------------------

    @property
    def size(self) -> WidgetSize | None:
        """Size of the widget's variant, if the variant is registered."""
        variant = get_variant(self.type, self.variant)
        return variant.size if variant else None

    # -------------------------------------------------------------------------
    # Copy-on-write edits
    # -------------------------------------------------------------------------

    def with_position(self, position: int) -> "Widget":
        if position == self.position:
            return self
        return self.model_copy(update={"position": position})

    def with_channel(self, channel: Channel | str) -> "Widget":
        return self.model_copy(update={"channel": Channel(channel)})

    def with_data(self, data: dict[str, Any]) -> "Widget":
        return self.model_copy(update={"data": copy.deepcopy(data)})

    def featured(self, caption: str | None = None) -> "Widget":
        """Return this widget marked as the feature.

        An existing caption is kept unless a new one is given; an unset
        caption becomes the empty string.
        """
        if caption is None:
            caption = self.featured_caption if self.featured_caption is not None else ""
        return self.model_copy(update={"is_feature": True, "featured_caption": caption})

    def unfeatured(self) -> "Widget":
        if not self.is_feature and self.featured_caption is None:
            return self
        return self.model_copy(update={"is_feature": False, "featured_caption": None})

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Widget":
        """Build a widget from ``to_dict`` output."""
        return cls.model_validate(payload)


def create_widget(
    widget_type: WidgetType | str,
    variant: str,
    default_data: dict[str, Any] | None = None,
) -> Widget:
    """Create a widget from a picker selection.

    The widget gets a fresh id, the END_OF_LIST position, the neutral channel
    and no feature flag. The caller appends it to a document.

    Args:
        widget_type: Widget kind.
        variant: Variant id registered for that kind.
        default_data: Starting payload. Defaults to the variant's registry payload.

    Returns:
        New widget.

    Raises:
        UnknownVariantError: If the variant is not registered for the type.
    """
    widget_type = WidgetType(widget_type)
    if get_variant(widget_type, variant) is None:
        raise UnknownVariantError(
            f"Variant '{variant}' is not available for widget type '{widget_type.value}'"
        )

    data = (
        copy.deepcopy(default_data)
        if default_data is not None
        else default_payload(widget_type, variant)
    )
    return Widget(
        id=generate_widget_id(),
        type=widget_type,
        variant=variant,
        data=data,
    )


__all__ = [
    "Widget",
    "UnknownVariantError",
    "create_widget",
    "generate_widget_id",
]
