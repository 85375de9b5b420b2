"""Document model for a scape being edited.

``ScapeDraft`` is a frozen pydantic model. Every operation returns a new draft
and leaves the receiver untouched, so a caller can hold on to the last saved
draft while edits continue, and a failed save never corrupts what is shown.

The featured widget is never stored on the draft itself: ``feature_widget_id``
is derived from the single widget carrying ``is_feature``.
"""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from scapekit.reorder import move_to as move_widgets
from scapekit.reorder import remove_at, renumber, reorder_by_ids
from scapekit.schema import (
    NEW_SCAPE_ID,
    Channel,
    Visibility,
    WidgetType,
    channel_priority,
)
from scapekit.widget import Widget, create_widget


class WidgetNotFoundError(LookupError):
    """Raised when an operation names a widget id that is not in the draft."""

    def __init__(self, widget_id: str):
        self.widget_id = widget_id
        super().__init__(f"Widget not found: {widget_id}")


class ScapeDraft(BaseModel):
    """Editable scape document.

    Attributes:
        id: NEW_SCAPE_ID until the first save assigns a store id.
        title: Display title; required to save.
        description: Free text.
        tagline: Short feed summary.
        banner: Opaque media reference for the banner.
        banner_static: Whether the banner is a still image.
        widgets: Ordered widgets; positions follow list order.
        is_draft: False once the scape has been published.
        visibility: Audience of the published scape.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default=NEW_SCAPE_ID, min_length=1)
    title: str = ""
    description: str = ""
    tagline: str = ""
    banner: str | None = None
    banner_static: bool = False
    widgets: tuple[Widget, ...] = ()
    is_draft: bool = True
    visibility: Visibility = Visibility.PUBLIC

    @model_validator(mode="after")
    def _check_widgets(self) -> "ScapeDraft":
        featured = [w.id for w in self.widgets if w.is_feature]
        if len(featured) > 1:
            raise ValueError(f"Only one widget may be featured, got {featured}")
        ids = [w.id for w in self.widgets]
        if len(set(ids)) != len(ids):
            raise ValueError("Widget ids must be unique within a scape")
        return self

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @computed_field  # type: ignore[prop-decorator]
    @property
    def feature_widget_id(self) -> str | None:
        """Id of the featured widget, if any."""
        for widget in self.widgets:
            if widget.is_feature:
                return widget.id
        return None

    @property
    def feature_widget(self) -> Widget | None:
        for widget in self.widgets:
            if widget.is_feature:
                return widget
        return None

    @property
    def is_new(self) -> bool:
        return self.id == NEW_SCAPE_ID

    def get_widget(self, widget_id: str) -> Widget:
        """Look up a widget by id.

        Raises:
            WidgetNotFoundError: If the id is not present.
        """
        return self.widgets[self.index_of(widget_id)]

    def index_of(self, widget_id: str) -> int:
        for index, widget in enumerate(self.widgets):
            if widget.id == widget_id:
                return index
        raise WidgetNotFoundError(widget_id)

    def widgets_on_channel(self, channel: Channel | str) -> list[Widget]:
        channel = Channel(channel)
        return [w for w in self.widgets if w.channel == channel]

    def driving_widget(self, channel: Channel | str) -> Widget | None:
        """Widget that drives a colored channel.

        The widget type with the lowest channel priority wins; ties go to the
        widget placed first. The neutral channel has no driver.
        """
        channel = Channel(channel)
        if channel == Channel.NEUTRAL:
            return None
        candidates = self.widgets_on_channel(channel)
        if not candidates:
            return None
        return min(candidates, key=lambda w: (channel_priority(w.type), w.position))

    # -------------------------------------------------------------------------
    # Widget operations
    # -------------------------------------------------------------------------

    def _with_widgets(self, widgets: list[Widget]) -> "ScapeDraft":
        return self.model_copy(update={"widgets": tuple(widgets)})

    def _map_widget(
        self, widget_id: str, change: Callable[[Widget], Widget]
    ) -> "ScapeDraft":
        index = self.index_of(widget_id)
        widgets = list(self.widgets)
        widgets[index] = change(widgets[index])
        return self._with_widgets(widgets)

    def append(self, widget: Widget) -> "ScapeDraft":
        """Add a widget at the end of the list."""
        if any(w.id == widget.id for w in self.widgets):
            raise ValueError(f"Widget {widget.id} is already in this scape")
        widgets = list(self.widgets)
        widgets.append(widget.unfeatured().with_position(len(widgets)))
        return self._with_widgets(widgets)

    def add_widget(
        self,
        widget_type: WidgetType | str,
        variant: str,
        default_payload: dict[str, Any] | None = None,
    ) -> "ScapeDraft":
        """Create a widget from a picker selection and append it."""
        return self.append(create_widget(widget_type, variant, default_payload))

    def remove(self, widget_id: str) -> "ScapeDraft":
        """Delete a widget; later widgets move up one place.

        Removing the featured widget leaves the draft with no feature.
        """
        index = self.index_of(widget_id)
        return self._with_widgets(remove_at(self.widgets, index))

    def move_to(self, from_index: int, to_index: int) -> "ScapeDraft":
        """Move the widget at ``from_index`` so it ends up at ``to_index``."""
        return self._with_widgets(move_widgets(self.widgets, from_index, to_index))

    def move_up(self, widget_id: str) -> "ScapeDraft":
        index = self.index_of(widget_id)
        return self.move_to(index, max(0, index - 1))

    def move_down(self, widget_id: str) -> "ScapeDraft":
        index = self.index_of(widget_id)
        return self.move_to(index, index + 1)

    def reorder(self, widget_ids: list[str]) -> "ScapeDraft":
        """Apply a complete ordering, e.g. the result of a drag gesture."""
        return self._with_widgets(reorder_by_ids(self.widgets, widget_ids))

    def set_feature(self, widget_id: str) -> "ScapeDraft":
        """Feature a widget, or un-feature it if it is already featured.

        Featuring one widget un-features every other widget and drops their
        captions.
        """
        target = self.get_widget(widget_id)
        if target.is_feature:
            return self._map_widget(widget_id, Widget.unfeatured)
        return self._with_widgets(
            [w.featured() if w.id == widget_id else w.unfeatured() for w in self.widgets]
        )

    def set_featured_caption(self, widget_id: str, caption: str) -> "ScapeDraft":
        """Set the caption shown with the featured widget.

        Raises:
            ValueError: If the widget is not the featured one.
        """
        if not self.get_widget(widget_id).is_feature:
            raise ValueError(f"Widget {widget_id} is not the featured widget")
        return self._map_widget(widget_id, lambda w: w.featured(caption))

    def set_channel(self, widget_id: str, channel: Channel | str) -> "ScapeDraft":
        return self._map_widget(widget_id, lambda w: w.with_channel(channel))

    def update_widget_data(self, widget_id: str, data: dict[str, Any]) -> "ScapeDraft":
        """Replace a widget's payload."""
        return self._map_widget(widget_id, lambda w: w.with_data(data))

    # -------------------------------------------------------------------------
    # Document fields
    # -------------------------------------------------------------------------

    def set_title(self, title: str) -> "ScapeDraft":
        return self.model_copy(update={"title": title})

    def set_tagline(self, tagline: str) -> "ScapeDraft":
        return self.model_copy(update={"tagline": tagline})

    def set_description(self, description: str) -> "ScapeDraft":
        return self.model_copy(update={"description": description})

    def set_banner(self, banner: str | None, static: bool = False) -> "ScapeDraft":
        return self.model_copy(update={"banner": banner, "banner_static": static})

    def set_visibility(self, visibility: Visibility | str) -> "ScapeDraft":
        return self.model_copy(update={"visibility": Visibility(visibility)})

    def with_id(self, scape_id: str) -> "ScapeDraft":
        """Adopt the id assigned by the store."""
        return self.model_copy(update={"id": scape_id})

    def mark_published(self) -> "ScapeDraft":
        return self.model_copy(update={"is_draft": False})

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict, widgets in order."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ScapeDraft":
        """Build a draft from ``to_dict`` output.

        List order is authoritative: widget positions are rewritten to their
        index, so ``position`` may be omitted or stale on input. The derived
        ``feature_widget_id`` key is ignored if present.
        """
        payload = {k: v for k, v in payload.items() if k != "feature_widget_id"}
        draft = cls.model_validate(payload)
        return draft._with_widgets(renumber(draft.widgets))


def new_draft(title: str = "") -> ScapeDraft:
    """Start an empty, unsaved draft."""
    return ScapeDraft(title=title)


__all__ = [
    "ScapeDraft",
    "WidgetNotFoundError",
    "new_draft",
]
