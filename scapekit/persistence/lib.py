"""Persistence orchestrator: save, publish, load and delete scapes.

Translates between ``ScapeDraft`` and store records, enforces ownership before
any mutation, and folds every store failure into a single ``PersistenceError``.
Store calls are synchronous and run in a worker thread via
``asyncio.to_thread`` so the editor's event loop stays responsive.

Writes are not retried. A save is a sequence of store calls (scape row,
widgets, published flag). When a later step of a first save fails, the
inserted row is removed again so the draft can be retried as new. For an
update, earlier steps stay written and the next full save overwrites them.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from scapekit.config import get_db_path, get_require_unique_title
from scapekit.document import ScapeDraft
from scapekit.schema import Visibility
from scapekit.store import (
    ScapeFields,
    ScapeRecord,
    ScapeStore,
    ScapeSummary,
    SQLiteScapeStore,
    WidgetRecord,
)
from scapekit.validation import validate_scape
from scapekit.widget import Widget

from .errors import (
    MissingCreatorError,
    PersistenceError,
    ScapeError,
    ScapeNotFoundError,
    StructuralValidationError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SaveResult:
    """Outcome of a successful save or publish.

    Attributes:
        scape_id: Store id of the scape.
        draft: The saved draft carrying ``scape_id``.
    """

    scape_id: str
    draft: ScapeDraft


@dataclass
class PublishOptions:
    """Extra fields written when publishing.

    Attributes:
        visibility: Audience override; None keeps the draft's visibility.
        permissions: Permission flags stored with the scape.
    """

    visibility: Visibility | None = None
    permissions: dict[str, Any] | None = None


# =============================================================================
# Record conversion
# =============================================================================


def draft_to_fields(
    draft: ScapeDraft, permissions: dict[str, Any] | None = None
) -> ScapeFields:
    """Document-level columns for a draft."""
    return ScapeFields(
        title=draft.title.strip(),
        description=draft.description,
        tagline=draft.tagline,
        banner=draft.banner,
        banner_static=draft.banner_static,
        feature_widget_id=draft.feature_widget_id,
        visibility=draft.visibility.value,
        permissions=permissions,
    )


def draft_to_widget_records(draft: ScapeDraft) -> list[WidgetRecord]:
    """Widget rows in document order with ``position = index``."""
    return [
        WidgetRecord(
            id=widget.id,
            type=widget.type.value,
            variant=widget.variant,
            position=index,
            channel=widget.channel.value,
            is_feature=widget.is_feature,
            featured_caption=widget.featured_caption,
            data=widget.data,
        )
        for index, widget in enumerate(draft.widgets)
    ]


def record_to_draft(record: ScapeRecord) -> ScapeDraft:
    """Rebuild a draft from a stored record.

    Widget flags are authoritative for the feature. Records written without
    flags fall back to the scape's ``feature_widget_id`` column.
    """
    flagged = any(w.is_feature for w in record.widgets)
    widgets = []
    for index, row in enumerate(sorted(record.widgets, key=lambda w: w.position)):
        is_feature = row.is_feature if flagged else row.id == record.feature_widget_id
        widgets.append(
            Widget(
                id=row.id,
                type=row.type,
                variant=row.variant,
                channel=row.channel,
                position=index,
                is_feature=is_feature,
                featured_caption=(row.featured_caption or "") if is_feature else None,
                data=row.data,
            )
        )
    return ScapeDraft(
        id=record.id,
        title=record.title,
        description=record.description,
        tagline=record.tagline,
        banner=record.banner,
        banner_static=record.banner_static,
        widgets=tuple(widgets),
        is_draft=not record.is_published,
        visibility=record.visibility,
    )


# =============================================================================
# Orchestrator
# =============================================================================


class ScapePersistence:
    """Async facade over a ScapeStore.

    Example:
        >>> persistence = ScapePersistence(InMemoryScapeStore())
        >>> result = await persistence.save(draft, creator_id="user-1")
        >>> result.draft.id != "new"
        True

    Args:
        store: Initialized storage backend.
        require_unique_title: Whether publish refuses titles already used by
            another of the creator's scapes. Defaults to
            ``SCAPE_REQUIRE_UNIQUE_TITLE``.
    """

    def __init__(self, store: ScapeStore, require_unique_title: bool | None = None):
        self._store = store
        self.require_unique_title = get_require_unique_title(require_unique_title)

    @property
    def store(self) -> ScapeStore:
        return self._store

    def close(self) -> None:
        self._store.close()

    async def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except ScapeError:
            raise
        except Exception as exc:
            logger.exception(f"Store call failed during {operation}")
            raise PersistenceError(operation, str(exc)) from exc

    async def _verify_owner(self, operation: str, scape_id: str, user_id: str) -> None:
        owner = await self._call(operation, self._store.get_scape_owner, scape_id)
        if owner is None:
            raise ScapeNotFoundError(scape_id)
        if owner != user_id:
            raise UnauthorizedError(scape_id, user_id)

    @staticmethod
    def _require_creator(creator_id: str | None) -> str:
        if not creator_id or not creator_id.strip():
            raise MissingCreatorError()
        return creator_id

    # =========================================================================
    # Queries
    # =========================================================================

    async def find_title_conflict(
        self,
        title: str,
        user_id: str,
        exclude_id: str | None = None,
    ) -> str | None:
        """Id of another of the user's scapes titled ``title``, or None."""
        return await self._call(
            "check title of",
            self._store.find_scape_by_title_for_user,
            title.strip(),
            user_id,
            exclude_id,
        )

    async def load(self, scape_id: str, viewer_id: str | None = None) -> ScapeDraft:
        """Load a scape for editing or viewing.

        Unpublished and private scapes are only visible to their creator.

        Raises:
            ScapeNotFoundError: If missing or not visible to ``viewer_id``.
            PersistenceError: If the store fails.
        """
        record = await self._call("load", self._store.fetch_scape, scape_id)
        if record is None:
            raise ScapeNotFoundError(scape_id)
        hidden = not record.is_published or record.visibility == Visibility.PRIVATE.value
        if hidden and record.creator_id != viewer_id:
            raise ScapeNotFoundError(scape_id)
        return record_to_draft(record)

    async def load_for_edit(self, scape_id: str, creator_id: str) -> ScapeDraft:
        """Load a scape its creator is about to edit.

        Raises:
            MissingCreatorError, ScapeNotFoundError, UnauthorizedError,
            PersistenceError.
        """
        creator_id = self._require_creator(creator_id)
        await self._verify_owner("load", scape_id, creator_id)
        return await self.load(scape_id, viewer_id=creator_id)

    async def list_user_scapes(self, creator_id: str) -> list[ScapeSummary]:
        """List a creator's scapes, newest first."""
        creator_id = self._require_creator(creator_id)
        return await self._call("list", self._store.list_user_scapes, creator_id)

    # =========================================================================
    # Writes
    # =========================================================================

    async def _write(
        self,
        operation: str,
        draft: ScapeDraft,
        creator_id: str,
        published: bool | None,
        permissions: dict[str, Any] | None = None,
    ) -> str:
        scape_id = None if draft.is_new else draft.id
        if scape_id is not None:
            await self._verify_owner(operation, scape_id, creator_id)

        inserted = scape_id is None
        fields = draft_to_fields(draft, permissions)
        scape_id = await self._call(
            operation, self._store.upsert_scape, scape_id, creator_id, fields
        )
        try:
            await self._call(
                operation,
                self._store.replace_widgets,
                scape_id,
                draft_to_widget_records(draft),
            )
            if published is not None:
                await self._call(
                    operation, self._store.set_published, scape_id, published
                )
        except PersistenceError:
            if inserted:
                await self._discard_insert(scape_id)
            raise
        return scape_id

    async def _discard_insert(self, scape_id: str) -> None:
        # A failed first save leaves no row behind.
        try:
            await asyncio.to_thread(self._store.delete_scape, scape_id)
        except Exception:
            logger.exception(f"Could not remove partially saved scape {scape_id}")
        else:
            logger.warning(f"Removed partially saved scape {scape_id}")

    async def save(
        self,
        draft: ScapeDraft,
        creator_id: str,
        preserve_published_state: bool = False,
    ) -> SaveResult:
        """Write a draft, inserting it on first save.

        Args:
            draft: Draft to write; ``"new"`` inserts, any other id updates.
            creator_id: Creator performing the save.
            preserve_published_state: Leave the stored published flag as is
                ("update" of a live scape) instead of writing ``not is_draft``.

        Returns:
            SaveResult with the store id adopted by the draft.

        Raises:
            MissingCreatorError: No creator id given.
            StructuralValidationError: Title is empty.
            ScapeNotFoundError: Updating a scape that no longer exists.
            UnauthorizedError: Updating another creator's scape.
            PersistenceError: The store failed.
        """
        creator_id = self._require_creator(creator_id)
        result = validate_scape(draft)
        if not result.can_save_draft:
            raise StructuralValidationError(result.errors)

        published = None if preserve_published_state else not draft.is_draft
        scape_id = await self._write("save", draft, creator_id, published)
        logger.info(f"Saved scape {scape_id} for {creator_id}")
        return SaveResult(scape_id=scape_id, draft=draft.with_id(scape_id))

    async def publish(
        self,
        draft: ScapeDraft,
        creator_id: str,
        options: PublishOptions | None = None,
    ) -> SaveResult:
        """Write a draft and mark it published.

        The publish gate is re-checked here, including title uniqueness
        against the store when ``require_unique_title`` is on.

        Raises:
            StructuralValidationError: The draft cannot be published.
            MissingCreatorError, ScapeNotFoundError, UnauthorizedError,
            PersistenceError: As for ``save``.
        """
        creator_id = self._require_creator(creator_id)
        options = options or PublishOptions()

        draft = draft.mark_published()
        if options.visibility is not None:
            draft = draft.set_visibility(options.visibility)

        result = validate_scape(draft)
        if not result.can_publish:
            raise StructuralValidationError(result.errors)
        if self.require_unique_title:
            conflict = await self.find_title_conflict(
                draft.title, creator_id, None if draft.is_new else draft.id
            )
            if conflict is not None:
                raise StructuralValidationError(["Scape name is already taken"])

        scape_id = await self._write(
            "publish", draft, creator_id, True, options.permissions
        )
        logger.info(f"Published scape {scape_id} ({draft.visibility.value})")
        return SaveResult(scape_id=scape_id, draft=draft.with_id(scape_id))

    async def delete(self, scape_id: str, creator_id: str) -> None:
        """Delete a scape after checking ownership.

        Raises:
            MissingCreatorError, ScapeNotFoundError, UnauthorizedError,
            PersistenceError.
        """
        creator_id = self._require_creator(creator_id)
        await self._verify_owner("delete", scape_id, creator_id)
        await self._call("delete", self._store.delete_scape, scape_id)
        logger.info(f"Deleted scape {scape_id}")


# =============================================================================
# Global instance
# =============================================================================

_global_persistence: ScapePersistence | None = None


def get_persistence(db_path: Path | str | None = None) -> ScapePersistence:
    """Get or create the global SQLite-backed persistence.

    Args:
        db_path: Database path; defaults to ``SCAPE_DB_PATH``.
    """
    global _global_persistence
    if _global_persistence is None:
        store = SQLiteScapeStore(get_db_path(db_path))
        store.initialize()
        _global_persistence = ScapePersistence(store)
    return _global_persistence


def close_persistence() -> None:
    """Close the global persistence."""
    global _global_persistence
    if _global_persistence:
        _global_persistence.close()
        _global_persistence = None


__all__ = [
    "SaveResult",
    "PublishOptions",
    "ScapePersistence",
    "draft_to_fields",
    "draft_to_widget_records",
    "record_to_draft",
    "get_persistence",
    "close_persistence",
]
