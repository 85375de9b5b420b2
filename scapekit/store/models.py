"""Records exchanged with scape storage backends.

These are plain dataclasses mirroring the stored rows. The editor works with
``ScapeDraft``; conversion between the two lives in ``scapekit.persistence``.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ScapeFields:
    """Document-level columns written by a save.

    Attributes:
        title: Scape name.
        description: Free text.
        tagline: Short feed summary.
        banner: Opaque media reference.
        banner_static: Whether the banner is a still image.
        feature_widget_id: Featured widget, denormalised for feed queries.
        visibility: public, private or unlisted.
        permissions: Publish-time permission flags; None keeps the stored ones.
    """

    title: str
    description: str = ""
    tagline: str = ""
    banner: str | None = None
    banner_static: bool = False
    feature_widget_id: str | None = None
    visibility: str = "public"
    permissions: dict[str, Any] | None = None


@dataclass
class WidgetRecord:
    """A stored widget row; ``id`` is the client-generated widget id."""

    id: str
    type: str
    variant: str
    position: int
    channel: str = "neutral"
    is_feature: bool = False
    featured_caption: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScapeRecord:
    """A stored scape with its widgets ordered by position."""

    id: str
    creator_id: str
    title: str
    description: str = ""
    tagline: str = ""
    banner: str | None = None
    banner_static: bool = False
    feature_widget_id: str | None = None
    is_published: bool = False
    visibility: str = "public"
    permissions: dict[str, Any] = field(default_factory=dict)
    widgets: list[WidgetRecord] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def create(cls, creator_id: str, fields: ScapeFields) -> "ScapeRecord":
        """Factory method to create a new record with a generated id."""
        return cls(
            id=str(uuid4()),
            creator_id=creator_id,
            title=fields.title,
            description=fields.description,
            tagline=fields.tagline,
            banner=fields.banner,
            banner_static=fields.banner_static,
            feature_widget_id=fields.feature_widget_id,
            visibility=fields.visibility,
            permissions=dict(fields.permissions or {}),
        )

    def apply(self, fields: ScapeFields) -> None:
        """Overwrite document columns and bump ``updated_at``."""
        self.title = fields.title
        self.description = fields.description
        self.tagline = fields.tagline
        self.banner = fields.banner
        self.banner_static = fields.banner_static
        self.feature_widget_id = fields.feature_widget_id
        self.visibility = fields.visibility
        if fields.permissions is not None:
            self.permissions = dict(fields.permissions)
        self.updated_at = _now()

    def summary(self) -> "ScapeSummary":
        return ScapeSummary(
            id=self.id,
            title=self.title,
            tagline=self.tagline,
            is_published=self.is_published,
            visibility=self.visibility,
            widget_count=len(self.widgets),
            updated_at=self.updated_at,
        )


@dataclass
class ScapeSummary:
    """Listing entry for a creator's scapes."""

    id: str
    title: str
    tagline: str
    is_published: bool
    visibility: str
    widget_count: int
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "tagline": self.tagline,
            "is_published": self.is_published,
            "visibility": self.visibility,
            "widget_count": self.widget_count,
            "updated_at": self.updated_at.isoformat(),
        }


__all__ = [
    "ScapeFields",
    "WidgetRecord",
    "ScapeRecord",
    "ScapeSummary",
]
