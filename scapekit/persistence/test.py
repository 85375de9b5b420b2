"""Tests for the persistence orchestrator."""

import asyncio
import logging

import pytest

from scapekit.document import ScapeDraft, new_draft
from scapekit.schema import NEW_SCAPE_ID, Visibility
from scapekit.store import (
    InMemoryScapeStore,
    ScapeFields,
    ScapeRecord,
    SQLiteScapeStore,
    WidgetRecord,
)

from .errors import (
    MissingCreatorError,
    PersistenceError,
    ScapeNotFoundError,
    StructuralValidationError,
    UnauthorizedError,
)
from .lib import PublishOptions, ScapePersistence, record_to_draft


class _FailingStore(InMemoryScapeStore):
    """In-memory store whose widget writes fail."""

    def replace_widgets(self, scape_id, widgets):
        raise OSError("disk full")


class _FlakyStore(InMemoryScapeStore):
    """In-memory store whose next widget write fails once."""

    fail_next = True

    def replace_widgets(self, scape_id, widgets):
        if self.fail_next:
            self.fail_next = False
            raise OSError("connection reset")
        super().replace_widgets(scape_id, widgets)


@pytest.fixture
def store():
    backend = InMemoryScapeStore()
    backend.initialize()
    return backend


@pytest.fixture
def persistence(store):
    return ScapePersistence(store, require_unique_title=True)


def _draft(title: str = "My Scape") -> ScapeDraft:
    return new_draft(title).add_widget("text", "text-small").add_widget("image", "image-large")


class TestSave:
    """Tests for ScapePersistence.save."""

    @pytest.mark.asyncio
    async def test_new_draft_gets_real_id(self, persistence, store):
        """The first save inserts and the draft adopts the new id."""
        draft = _draft()
        result = await persistence.save(draft, "u1")
        assert result.scape_id != NEW_SCAPE_ID
        assert result.draft.id == result.scape_id
        assert draft.id == NEW_SCAPE_ID
        assert store.get_scape_owner(result.scape_id) == "u1"

    @pytest.mark.asyncio
    async def test_second_save_updates_same_row(self, persistence, store):
        """Saving the returned draft again updates in place."""
        first = await persistence.save(_draft(), "u1")
        edited = first.draft.set_title("Renamed").move_to(0, 1)
        second = await persistence.save(edited, "u1")

        assert second.scape_id == first.scape_id
        assert len(store.list_user_scapes("u1")) == 1
        record = store.fetch_scape(first.scape_id)
        assert record.title == "Renamed"
        assert [w.id for w in record.widgets] == [w.id for w in edited.widgets]

    @pytest.mark.asyncio
    async def test_widget_ids_preserved(self, persistence, store):
        """Client widget ids and order are stored verbatim."""
        draft = _draft()
        result = await persistence.save(draft, "u1")
        record = store.fetch_scape(result.scape_id)
        assert [w.id for w in record.widgets] == [w.id for w in draft.widgets]
        assert [w.position for w in record.widgets] == [0, 1]

    @pytest.mark.asyncio
    async def test_draft_save_is_unpublished(self, persistence, store):
        """A draft save writes is_published = False."""
        result = await persistence.save(_draft(), "u1")
        assert store.fetch_scape(result.scape_id).is_published is False

    @pytest.mark.asyncio
    async def test_preserve_published_state(self, persistence, store):
        """An update of a live scape leaves it published."""
        published = await persistence.publish(_draft(), "u1")
        as_draft = published.draft.model_copy(update={"is_draft": True})
        await persistence.save(as_draft, "u1", preserve_published_state=True)
        assert store.fetch_scape(published.scape_id).is_published is True

    @pytest.mark.asyncio
    async def test_without_preserve_follows_draft_flag(self, persistence, store):
        """Without preserve, the flag follows the draft."""
        published = await persistence.publish(_draft(), "u1")
        as_draft = published.draft.model_copy(update={"is_draft": True})
        await persistence.save(as_draft, "u1")
        assert store.fetch_scape(published.scape_id).is_published is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("creator", ["", "  ", None])
    async def test_missing_creator(self, persistence, creator):
        """Writes without a creator are refused."""
        with pytest.raises(MissingCreatorError):
            await persistence.save(_draft(), creator)

    @pytest.mark.asyncio
    async def test_empty_title_refused(self, persistence, store):
        """A blank title never reaches the store."""
        with pytest.raises(StructuralValidationError) as exc_info:
            await persistence.save(_draft("  "), "u1")
        assert "Scape name is required" in exc_info.value.errors
        assert store.list_user_scapes("u1") == []

    @pytest.mark.asyncio
    async def test_unauthorized(self, persistence):
        """Updating someone else's scape fails before writing."""
        result = await persistence.save(_draft("Original"), "owner")
        with pytest.raises(UnauthorizedError):
            await persistence.save(result.draft.set_title("Hijacked"), "intruder")
        reloaded = await persistence.load(result.scape_id, viewer_id="owner")
        assert reloaded.title == "Original"

    @pytest.mark.asyncio
    async def test_update_missing_scape(self, persistence):
        """Saving a draft whose scape was deleted raises ScapeNotFoundError."""
        with pytest.raises(ScapeNotFoundError):
            await persistence.save(_draft().with_id("gone"), "u1")

    @pytest.mark.asyncio
    async def test_store_failure(self, caplog):
        """Store exceptions surface as one PersistenceError."""
        store = _FailingStore()
        persistence = ScapePersistence(store)
        draft = _draft()
        with caplog.at_level(logging.ERROR, logger="scapekit.persistence.lib"):
            with pytest.raises(PersistenceError) as exc_info:
                await persistence.save(draft, "u1")
        assert isinstance(exc_info.value.__cause__, OSError)
        assert "disk full" in str(exc_info.value)
        assert "Store call failed during save" in caplog.text
        assert draft.id == NEW_SCAPE_ID

    @pytest.mark.asyncio
    async def test_failed_first_save_leaves_no_row(self):
        """A first save that fails part way can simply be retried."""
        store = _FlakyStore()
        store.initialize()
        persistence = ScapePersistence(store, require_unique_title=True)
        draft = _draft("Night")

        with pytest.raises(PersistenceError):
            await persistence.save(draft, "u1")
        assert store.list_user_scapes("u1") == []

        saved = await persistence.save(draft, "u1")
        assert [s.id for s in store.list_user_scapes("u1")] == [saved.scape_id]
        published = await persistence.publish(saved.draft, "u1")
        assert published.draft.is_draft is False

    @pytest.mark.asyncio
    async def test_failed_update_keeps_row(self):
        """Only rows inserted by the failing save are removed."""
        store = _FlakyStore()
        store.initialize()
        store.fail_next = False
        persistence = ScapePersistence(store)
        saved = await persistence.save(_draft("Kept"), "u1")

        store.fail_next = True
        with pytest.raises(PersistenceError):
            await persistence.save(saved.draft.set_title("Changed"), "u1")
        assert store.get_scape_owner(saved.scape_id) == "u1"

    @pytest.mark.asyncio
    async def test_concurrent_saves_on_sqlite(self, tmp_path):
        """Parallel saves through worker threads keep every scape intact."""
        store = SQLiteScapeStore(tmp_path / "concurrent.db")
        store.initialize()
        try:
            persistence = ScapePersistence(store)
            results = await asyncio.gather(
                *(persistence.save(_draft(f"Scape {i}"), "u1") for i in range(60))
            )
            ids = {r.scape_id for r in results}
            assert len(ids) == 60
            assert len(store.list_user_scapes("u1")) == 60
            for scape_id in ids:
                assert len(store.fetch_scape(scape_id).widgets) == 2
        finally:
            store.close()


class TestPublish:
    """Tests for ScapePersistence.publish."""

    @pytest.mark.asyncio
    async def test_publish_new(self, persistence, store):
        """Publishing a new draft inserts it as published."""
        result = await persistence.publish(_draft(), "u1")
        assert result.draft.is_draft is False
        assert store.fetch_scape(result.scape_id).is_published is True

    @pytest.mark.asyncio
    async def test_publish_options(self, persistence, store):
        """Visibility and permissions are written."""
        options = PublishOptions(
            visibility=Visibility.UNLISTED,
            permissions={"gen_guard": True, "dataset_reuse": False},
        )
        result = await persistence.publish(_draft(), "u1", options)
        record = store.fetch_scape(result.scape_id)
        assert record.visibility == "unlisted"
        assert record.permissions == {"gen_guard": True, "dataset_reuse": False}
        assert result.draft.visibility == Visibility.UNLISTED

    @pytest.mark.asyncio
    async def test_publish_gate(self, persistence):
        """A draft without widgets cannot be published."""
        with pytest.raises(StructuralValidationError) as exc_info:
            await persistence.publish(new_draft("Empty"), "u1")
        assert exc_info.value.errors == ["At least one widget is required"]

    @pytest.mark.asyncio
    async def test_duplicate_title_refused(self, persistence):
        """Another scape with the same title blocks publishing."""
        await persistence.save(_draft("Mix"), "u1")
        with pytest.raises(StructuralValidationError, match="already taken"):
            await persistence.publish(_draft("Mix"), "u1")

    @pytest.mark.asyncio
    async def test_republish_own_title(self, persistence):
        """A scape does not conflict with itself."""
        first = await persistence.save(_draft("Mix"), "u1")
        result = await persistence.publish(first.draft, "u1")
        assert result.scape_id == first.scape_id

    @pytest.mark.asyncio
    async def test_duplicate_allowed_when_disabled(self, store):
        """Uniqueness enforcement can be turned off."""
        persistence = ScapePersistence(store, require_unique_title=False)
        await persistence.save(_draft("Mix"), "u1")
        await persistence.publish(_draft("Mix"), "u1")
        assert len(store.list_user_scapes("u1")) == 2


class TestLoadDeleteList:
    """Tests for load, delete and listing."""

    @pytest.mark.asyncio
    async def test_load_round_trip(self, persistence):
        """A saved draft loads back with ids, order and feature."""
        draft = _draft()
        feature_id = draft.widgets[1].id
        draft = (
            draft.set_feature(feature_id)
            .set_featured_caption(feature_id, "Look")
            .set_channel(feature_id, "red")
            .set_tagline("tag")
        )
        result = await persistence.save(draft, "u1")
        loaded = await persistence.load(result.scape_id, viewer_id="u1")
        assert loaded == result.draft

    @pytest.mark.asyncio
    async def test_load_missing(self, persistence):
        """Unknown ids raise ScapeNotFoundError."""
        with pytest.raises(ScapeNotFoundError):
            await persistence.load("nope", viewer_id="u1")

    @pytest.mark.asyncio
    async def test_unpublished_hidden_from_others(self, persistence):
        """Drafts are invisible to other viewers."""
        result = await persistence.save(_draft(), "u1")
        with pytest.raises(ScapeNotFoundError):
            await persistence.load(result.scape_id, viewer_id="u2")
        with pytest.raises(ScapeNotFoundError):
            await persistence.load(result.scape_id)

    @pytest.mark.asyncio
    async def test_published_visible(self, persistence):
        """Public published scapes load for anyone."""
        result = await persistence.publish(_draft(), "u1")
        loaded = await persistence.load(result.scape_id)
        assert loaded.is_draft is False

    @pytest.mark.asyncio
    async def test_private_published_hidden(self, persistence):
        """Private scapes load only for their creator."""
        result = await persistence.publish(
            _draft(), "u1", PublishOptions(visibility=Visibility.PRIVATE)
        )
        with pytest.raises(ScapeNotFoundError):
            await persistence.load(result.scape_id, viewer_id="u2")
        assert (await persistence.load(result.scape_id, viewer_id="u1")).id == result.scape_id

    @pytest.mark.asyncio
    async def test_delete_checks_owner(self, persistence, store):
        """Only the creator can delete."""
        result = await persistence.save(_draft(), "u1")
        with pytest.raises(UnauthorizedError):
            await persistence.delete(result.scape_id, "u2")
        assert store.fetch_scape(result.scape_id) is not None

        await persistence.delete(result.scape_id, "u1")
        assert store.fetch_scape(result.scape_id) is None
        with pytest.raises(ScapeNotFoundError):
            await persistence.delete(result.scape_id, "u1")

    @pytest.mark.asyncio
    async def test_list_user_scapes(self, persistence):
        """Listing is scoped to the creator."""
        await persistence.save(_draft("One"), "u1")
        await persistence.save(_draft("Two"), "u1")
        await persistence.save(_draft("Other"), "u2")
        titles = {s.title for s in await persistence.list_user_scapes("u1")}
        assert titles == {"One", "Two"}

    @pytest.mark.asyncio
    async def test_find_title_conflict_excludes_self(self, persistence):
        """The lookup used by the uniqueness checker honours exclusion."""
        result = await persistence.save(_draft("Mix"), "u1")
        assert await persistence.find_title_conflict("Mix", "u1") == result.scape_id
        assert await persistence.find_title_conflict("Mix", "u1", result.scape_id) is None


class TestRecordToDraft:
    """Tests for rebuilding drafts from records."""

    @pytest.mark.unit
    def test_feature_column_fallback(self):
        """Records without widget flags use feature_widget_id."""
        record = ScapeRecord.create("u1", ScapeFields(title="T", feature_widget_id="b"))
        record.widgets = [
            WidgetRecord(id="a", type="text", variant="text-small", position=0),
            WidgetRecord(id="b", type="text", variant="text-small", position=1),
        ]
        draft = record_to_draft(record)
        assert draft.feature_widget_id == "b"
        assert draft.feature_widget.featured_caption == ""

    @pytest.mark.unit
    def test_sorts_by_position(self):
        """Widgets are ordered by stored position and renumbered densely."""
        record = ScapeRecord.create("u1", ScapeFields(title="T"))
        record.widgets = [
            WidgetRecord(id="late", type="text", variant="text-small", position=7),
            WidgetRecord(id="early", type="text", variant="text-small", position=2),
        ]
        draft = record_to_draft(record)
        assert [w.id for w in draft.widgets] == ["early", "late"]
        assert [w.position for w in draft.widgets] == [0, 1]


class TestLoadForEdit:
    """Tests for loading a scape into the editor."""

    @pytest.mark.asyncio
    async def test_owner_can_edit(self, persistence):
        """The creator gets the stored draft."""
        result = await persistence.save(_draft(), "u1")
        draft = await persistence.load_for_edit(result.scape_id, "u1")
        assert draft.id == result.scape_id

    @pytest.mark.asyncio
    async def test_other_creator_refused(self, persistence):
        """Published scapes of others cannot be opened for editing."""
        result = await persistence.publish(_draft(), "u1")
        with pytest.raises(UnauthorizedError):
            await persistence.load_for_edit(result.scape_id, "u2")
