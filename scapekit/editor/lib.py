"""Editing session: one creator editing one scape.

The session owns the current ``ScapeDraft`` and wires the pieces together:
document operations replace the draft, title edits schedule a debounced
uniqueness check, and Save/Update/Publish are gated on validation before any
store call is made. Every operation is pure on the draft, so a failed save
leaves what the creator sees exactly as it was.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from scapekit.config import get_require_unique_title
from scapekit.document import ScapeDraft, new_draft
from scapekit.persistence import (
    PublishOptions,
    SaveInProgressError,
    SaveResult,
    ScapePersistence,
    StructuralValidationError,
)
from scapekit.schema import Channel, Visibility, WidgetType
from scapekit.validation import (
    NameStatus,
    TitleUniquenessChecker,
    ValidationResult,
    validate_scape,
)

logger = logging.getLogger(__name__)

# ScapeDraft methods reachable through EditorSession.apply()
EDIT_OPERATIONS = frozenset(
    {
        "append",
        "add_widget",
        "remove",
        "move_to",
        "move_up",
        "move_down",
        "reorder",
        "set_feature",
        "set_featured_caption",
        "set_channel",
        "update_widget_data",
        "set_title",
        "set_tagline",
        "set_description",
        "set_banner",
        "set_visibility",
    }
)


class EditorSession:
    """Editing state for a single scape.

    Example:
        >>> session = EditorSession.new(persistence, "user-1", title="Summer")
        >>> session.add_widget("audio", "audio-player")
        >>> if session.validation.can_publish:
        ...     await session.publish()

    Args:
        persistence: Persistence used for lookups and writes.
        creator_id: Creator editing the scape.
        draft: Starting draft; a blank one when omitted.
        checker: Title uniqueness checker; built from ``persistence`` when omitted.
        require_unique_title: Whether a taken title blocks publishing.
    """

    def __init__(
        self,
        persistence: ScapePersistence,
        creator_id: str,
        draft: ScapeDraft | None = None,
        checker: TitleUniquenessChecker | None = None,
        require_unique_title: bool | None = None,
    ):
        self._persistence = persistence
        self.creator_id = creator_id
        self._draft = draft if draft is not None else new_draft()
        self._checker = checker or TitleUniquenessChecker(
            persistence.find_title_conflict,
            creator_id,
            exclude_id=None if self._draft.is_new else self._draft.id,
        )
        self._require_unique_title = get_require_unique_title(require_unique_title)
        self.saving = False
        self.last_saved: ScapeDraft | None = None if self._draft.is_new else self._draft

    @classmethod
    def new(
        cls,
        persistence: ScapePersistence,
        creator_id: str,
        title: str = "",
        **kwargs: Any,
    ) -> "EditorSession":
        """Start a session on a blank draft."""
        return cls(persistence, creator_id, draft=new_draft(title), **kwargs)

    @classmethod
    async def open(
        cls,
        persistence: ScapePersistence,
        creator_id: str,
        scape_id: str,
        **kwargs: Any,
    ) -> "EditorSession":
        """Start a session on a stored scape.

        Raises:
            ScapeNotFoundError: The scape is gone; the caller leaves the editor.
            UnauthorizedError: The scape belongs to someone else.
        """
        draft = await persistence.load_for_edit(scape_id, creator_id)
        logger.debug(f"Opened scape {scape_id} for {creator_id}")
        return cls(persistence, creator_id, draft=draft, **kwargs)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def draft(self) -> ScapeDraft:
        return self._draft

    @property
    def checker(self) -> TitleUniquenessChecker:
        return self._checker

    @property
    def name_status(self) -> NameStatus:
        return self._checker.status

    @property
    def validation(self) -> ValidationResult:
        """Validation of the current draft with the latest uniqueness status."""
        return validate_scape(
            self._draft,
            self._checker.status,
            require_unique_title=self._require_unique_title,
        )

    @property
    def is_dirty(self) -> bool:
        """Whether the draft differs from what was last saved or loaded."""
        return self._draft != self.last_saved

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def apply(self, operation: str, *args: Any, **kwargs: Any) -> ScapeDraft:
        """Run a named document operation and make its result current.

        Args:
            operation: ScapeDraft method name from EDIT_OPERATIONS.
            *args: Positional arguments for the operation.
            **kwargs: Keyword arguments for the operation.

        Returns:
            The new current draft.

        Raises:
            ValueError: If the operation is not an editing operation.
        """
        if operation not in EDIT_OPERATIONS:
            raise ValueError(f"Unknown edit operation: {operation}")
        updated = getattr(self._draft, operation)(*args, **kwargs)
        title_changed = updated.title != self._draft.title
        self._draft = updated
        if title_changed:
            self._checker.schedule(updated.title)
        return updated

    def add_widget(
        self,
        widget_type: WidgetType | str,
        variant: str,
        default_payload: dict[str, Any] | None = None,
    ) -> ScapeDraft:
        return self.apply("add_widget", widget_type, variant, default_payload)

    def remove_widget(self, widget_id: str) -> ScapeDraft:
        return self.apply("remove", widget_id)

    def move_widget(self, from_index: int, to_index: int) -> ScapeDraft:
        return self.apply("move_to", from_index, to_index)

    def move_up(self, widget_id: str) -> ScapeDraft:
        return self.apply("move_up", widget_id)

    def move_down(self, widget_id: str) -> ScapeDraft:
        return self.apply("move_down", widget_id)

    def reorder(self, widget_ids: list[str]) -> ScapeDraft:
        return self.apply("reorder", widget_ids)

    def set_feature(self, widget_id: str) -> ScapeDraft:
        return self.apply("set_feature", widget_id)

    def set_featured_caption(self, widget_id: str, caption: str) -> ScapeDraft:
        return self.apply("set_featured_caption", widget_id, caption)

    def set_channel(self, widget_id: str, channel: Channel | str) -> ScapeDraft:
        return self.apply("set_channel", widget_id, channel)

    def update_widget_data(self, widget_id: str, data: dict[str, Any]) -> ScapeDraft:
        return self.apply("update_widget_data", widget_id, data)

    def set_title(self, title: str) -> ScapeDraft:
        return self.apply("set_title", title)

    def set_tagline(self, tagline: str) -> ScapeDraft:
        return self.apply("set_tagline", tagline)

    def set_description(self, description: str) -> ScapeDraft:
        return self.apply("set_description", description)

    def set_banner(self, banner: str | None, static: bool = False) -> ScapeDraft:
        return self.apply("set_banner", banner, static)

    def set_visibility(self, visibility: Visibility | str) -> ScapeDraft:
        return self.apply("set_visibility", visibility)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    async def save_draft(self) -> SaveResult:
        """Save Draft: requires a title."""
        return await self._submit(
            publish=False,
            write=lambda draft: self._persistence.save(draft, self.creator_id),
        )

    async def update(self) -> SaveResult:
        """Update a live scape without changing its published state."""
        return await self._submit(
            publish=False,
            write=lambda draft: self._persistence.save(
                draft, self.creator_id, preserve_published_state=True
            ),
        )

    async def publish(self, options: PublishOptions | None = None) -> SaveResult:
        """Publish: requires the full publish gate."""
        return await self._submit(
            publish=True,
            write=lambda draft: self._persistence.publish(draft, self.creator_id, options),
        )

    async def _submit(
        self,
        publish: bool,
        write: Callable[[ScapeDraft], Awaitable[SaveResult]],
    ) -> SaveResult:
        if self.saving:
            raise SaveInProgressError()

        result = self.validation
        allowed = result.can_publish if publish else result.can_save_draft
        if not allowed:
            raise StructuralValidationError(result.errors)

        submitted = self._draft
        self.saving = True
        try:
            saved = await write(submitted)
        finally:
            self.saving = False

        if self._draft is submitted:
            self._draft = saved.draft
        else:
            # Keep edits made while the save was outstanding.
            self._draft = self._draft.model_copy(
                update={
                    "id": saved.scape_id,
                    "is_draft": saved.draft.is_draft,
                    "visibility": saved.draft.visibility,
                }
            )
        self._checker.set_exclude_id(saved.scape_id)
        self.last_saved = saved.draft
        return saved

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def wait(self) -> None:
        """Wait for outstanding background checks."""
        await self._checker.wait()

    async def close(self) -> None:
        await self._checker.close()


__all__ = ["EditorSession", "EDIT_OPERATIONS"]
