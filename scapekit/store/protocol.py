"""Storage protocol for scapes.

Defines the interface that all storage backends must implement.
"""

from typing import Protocol

from .models import ScapeFields, ScapeRecord, ScapeSummary, WidgetRecord


class ScapeStore(Protocol):
    """Protocol defining the storage interface for scapes.

    All backends (SQLite, in-memory) must implement this interface to be
    usable by ScapePersistence. Methods are synchronous; callers on an event
    loop run them in a worker thread.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Initialize storage (create tables, indexes, etc.)."""
        ...

    def close(self) -> None:
        """Close storage connections and clean up resources."""
        ...

    # =========================================================================
    # Queries
    # =========================================================================

    def find_scape_by_title_for_user(
        self,
        title: str,
        user_id: str,
        exclude_id: str | None = None,
    ) -> str | None:
        """Find another scape of the same creator with this exact title.

        Args:
            title: Title to look for.
            user_id: Creator whose scapes are searched.
            exclude_id: Scape to leave out (the one being edited).

        Returns:
            Id of a matching scape, or None when the title is free.
        """
        ...

    def fetch_scape(self, scape_id: str) -> ScapeRecord | None:
        """Get a scape with its widgets ordered by position."""
        ...

    def get_scape_owner(self, scape_id: str) -> str | None:
        """Get the creator id of a scape, or None if it does not exist."""
        ...

    def list_user_scapes(self, creator_id: str) -> list[ScapeSummary]:
        """List a creator's scapes, most recently updated first."""
        ...

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert_scape(
        self,
        scape_id: str | None,
        creator_id: str,
        fields: ScapeFields,
    ) -> str:
        """Insert a scape (``scape_id`` None) or update an existing one.

        Returns:
            The scape id, newly assigned on insert.

        Raises:
            KeyError: If ``scape_id`` is given but does not exist.
        """
        ...

    def replace_widgets(self, scape_id: str, widgets: list[WidgetRecord]) -> None:
        """Replace every widget of a scape in one step.

        Widget ids are kept as given; positions are written from list order.
        """
        ...

    def set_published(self, scape_id: str, published: bool) -> None:
        """Set the published flag."""
        ...

    def delete_scape(self, scape_id: str) -> bool:
        """Delete a scape and its widgets.

        Returns:
            True if deleted, False if not found.
        """
        ...


__all__ = ["ScapeStore"]
