"""Tests for the editing session."""

import asyncio

import pytest

from scapekit.persistence import (
    PersistenceError,
    PublishOptions,
    SaveInProgressError,
    ScapeNotFoundError,
    ScapePersistence,
    StructuralValidationError,
    UnauthorizedError,
)
from scapekit.schema import NEW_SCAPE_ID, Visibility
from scapekit.store import InMemoryScapeStore
from scapekit.validation import NameStatus

from .lib import EditorSession


class _CountingStore(InMemoryScapeStore):
    """In-memory store that counts writes and can be made to fail."""

    def __init__(self):
        super().__init__()
        self.writes = 0
        self.fail = False

    def upsert_scape(self, scape_id, creator_id, fields):
        self.writes += 1
        if self.fail:
            raise OSError("connection reset")
        return super().upsert_scape(scape_id, creator_id, fields)


class _BlockingPersistence(ScapePersistence):
    """Persistence whose save waits for the test to release it."""

    def __init__(self, store):
        super().__init__(store)
        self.release = asyncio.Event()
        self.entered = asyncio.Event()

    async def save(self, draft, creator_id, preserve_published_state=False):
        self.entered.set()
        await self.release.wait()
        return await super().save(draft, creator_id, preserve_published_state)


class _HeldTitlePersistence(ScapePersistence):
    """Persistence whose first title lookup waits for the test."""

    def __init__(self, store):
        super().__init__(store)
        self.release = asyncio.Event()
        self.lookup_started = asyncio.Event()
        self.excludes: list[str | None] = []

    async def find_title_conflict(self, title, user_id, exclude_id=None):
        self.excludes.append(exclude_id)
        if len(self.excludes) == 1:
            self.lookup_started.set()
            await self.release.wait()
        return await super().find_title_conflict(title, user_id, exclude_id)


@pytest.fixture(autouse=True)
def _no_debounce(monkeypatch):
    monkeypatch.setenv("SCAPE_TITLE_DEBOUNCE_MS", "0")
    monkeypatch.setenv("SCAPE_REQUIRE_UNIQUE_TITLE", "true")


@pytest.fixture
def store():
    backend = _CountingStore()
    backend.initialize()
    return backend


@pytest.fixture
def persistence(store):
    return ScapePersistence(store)


def _session(persistence, title="My Scape", widgets=1) -> EditorSession:
    session = EditorSession.new(persistence, "u1", title=title)
    for _ in range(widgets):
        session.add_widget("text", "text-medium")
    return session


class TestEditing:
    """Tests for document edits through the session."""

    @pytest.mark.unit
    def test_operations_replace_draft(self, persistence):
        """Each helper produces a new current draft."""
        session = _session(persistence, widgets=3)
        before = session.draft
        ids = [w.id for w in before.widgets]
        session.move_widget(0, 2)
        assert [w.id for w in session.draft.widgets] == [ids[1], ids[2], ids[0]]
        assert [w.id for w in before.widgets] == ids

    @pytest.mark.unit
    def test_validation_follows_edits(self, persistence):
        """Validation is recomputed from the current draft."""
        session = _session(persistence, widgets=0)
        assert session.validation.can_save_draft
        assert not session.validation.can_publish
        session.add_widget("image", "image-small")
        assert session.validation.can_publish

    @pytest.mark.unit
    def test_feature_flow(self, persistence):
        """Featuring without a caption closes the publish gate."""
        session = _session(persistence)
        widget_id = session.draft.widgets[0].id
        session.set_feature(widget_id)
        assert not session.validation.can_publish
        session.set_featured_caption(widget_id, "Hear this")
        assert session.validation.can_publish

    @pytest.mark.unit
    def test_unknown_operation(self, persistence):
        """apply() only runs editing operations."""
        with pytest.raises(ValueError):
            _session(persistence).apply("mark_published")

    @pytest.mark.asyncio
    async def test_title_schedules_uniqueness(self, persistence):
        """A taken title blocks publish but not save."""
        await persistence.save(_session(persistence, title="Mix").draft, "u1")
        session = _session(persistence, title="")
        session.set_title("Mix")
        assert session.name_status == NameStatus.CHECKING
        assert session.validation.can_publish
        await session.wait()
        assert session.name_status == NameStatus.TAKEN
        assert session.validation.can_save_draft
        assert not session.validation.can_publish
        session.set_title("Mix two")
        await session.wait()
        assert session.validation.can_publish
        await session.close()


class TestSaving:
    """Tests for Save Draft, Update and Publish."""

    @pytest.mark.asyncio
    async def test_empty_title_never_reaches_store(self, persistence, store):
        """The save gate is enforced locally."""
        session = _session(persistence, title="")
        with pytest.raises(StructuralValidationError):
            await session.save_draft()
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_publish_gate_local(self, persistence, store):
        """Publishing with no widgets is refused before any write."""
        session = _session(persistence, widgets=0)
        with pytest.raises(StructuralValidationError):
            await session.publish()
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_save_adopts_id(self, persistence):
        """The first save swaps the sentinel for the store id."""
        session = _session(persistence)
        result = await session.save_draft()
        assert session.draft.id == result.scape_id != NEW_SCAPE_ID
        assert session.checker.exclude_id == result.scape_id
        assert not session.is_dirty

        session.set_tagline("now with tagline")
        assert session.is_dirty
        second = await session.save_draft()
        assert second.scape_id == result.scape_id

    @pytest.mark.asyncio
    async def test_publish_then_update(self, persistence, store):
        """Update keeps a published scape live."""
        session = _session(persistence)
        published = await session.publish(PublishOptions(visibility=Visibility.UNLISTED))
        assert session.draft.is_draft is False
        assert session.draft.visibility == Visibility.UNLISTED

        session.set_description("more")
        await session.update()
        assert store.fetch_scape(published.scape_id).is_published is True

    @pytest.mark.asyncio
    async def test_failure_leaves_draft(self, persistence, store):
        """A store failure keeps the unsaved draft and clears saving."""
        session = _session(persistence)
        before = session.draft
        store.fail = True
        with pytest.raises(PersistenceError):
            await session.save_draft()
        assert session.draft is before
        assert session.draft.id == NEW_SCAPE_ID
        assert session.saving is False

    @pytest.mark.asyncio
    async def test_save_not_reentrant(self, store):
        """A second save while one is outstanding is refused."""
        persistence = _BlockingPersistence(store)
        session = _session(persistence)
        first = asyncio.create_task(session.save_draft())
        await asyncio.wait_for(persistence.entered.wait(), timeout=1)
        assert session.saving

        with pytest.raises(SaveInProgressError):
            await session.save_draft()

        persistence.release.set()
        result = await first
        assert session.draft.id == result.scape_id

    @pytest.mark.asyncio
    async def test_edits_during_save_survive(self, store):
        """Edits made while a save is in flight are not lost."""
        persistence = _BlockingPersistence(store)
        session = _session(persistence)
        first = asyncio.create_task(session.save_draft())
        await asyncio.wait_for(persistence.entered.wait(), timeout=1)

        session.set_tagline("typed during save")
        persistence.release.set()
        result = await first

        assert session.draft.id == result.scape_id
        assert session.draft.tagline == "typed during save"
        assert session.is_dirty
        await session.close()

    @pytest.mark.asyncio
    async def test_first_save_during_title_check(self, store):
        """A lookup issued before the first save never matches the scape itself."""
        persistence = _HeldTitlePersistence(store)
        session = _session(persistence, title="")
        session.set_title("Solo")
        await asyncio.wait_for(persistence.lookup_started.wait(), timeout=1)

        result = await session.save_draft()
        persistence.release.set()
        await session.wait()

        assert persistence.excludes == [None, result.scape_id]
        assert session.name_status == NameStatus.UNIQUE
        assert session.validation.can_publish
        await session.close()


class TestOpen:
    """Tests for opening stored scapes."""

    @pytest.mark.asyncio
    async def test_open_existing(self, persistence):
        """Opening loads the stored draft and excludes it from title checks."""
        saved = await _session(persistence).save_draft()
        session = await EditorSession.open(persistence, "u1", saved.scape_id)
        assert session.draft == saved.draft
        assert session.checker.exclude_id == saved.scape_id
        assert not session.is_dirty

    @pytest.mark.asyncio
    async def test_open_missing(self, persistence):
        """A missing scape ends the session before it starts."""
        with pytest.raises(ScapeNotFoundError):
            await EditorSession.open(persistence, "u1", "missing")

    @pytest.mark.asyncio
    async def test_open_foreign(self, persistence):
        """Other creators' scapes cannot be opened."""
        saved = await _session(persistence).publish()
        with pytest.raises(UnauthorizedError):
            await EditorSession.open(persistence, "u2", saved.scape_id)
