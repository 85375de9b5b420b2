"""Tests for scape storage backends.

Tests cover:
- Insert and update through upsert_scape
- Widget replacement with preserved ids and dense positions
- Title lookup with self-exclusion
- Ownership, publishing, deletion and listing
"""

import sqlite3
import tempfile
from pathlib import Path

import pytest

from .memory import InMemoryScapeStore
from .models import ScapeFields, WidgetRecord
from .sqlite import SQLiteScapeStore

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(params=["sqlite", "memory"])
def store(request, temp_dir):
    """Each backend, initialized and closed around the test."""
    if request.param == "sqlite":
        backend = SQLiteScapeStore(temp_dir / "nested" / "scapes.db")
    else:
        backend = InMemoryScapeStore()
    backend.initialize()
    yield backend
    backend.close()


def _widgets(*ids: str) -> list[WidgetRecord]:
    return [
        WidgetRecord(id=wid, type="text", variant="text-small", position=99)
        for wid in ids
    ]


# =============================================================================
# Tests
# =============================================================================


class TestUpsert:
    """Tests for inserting and updating scapes."""

    @pytest.mark.unit
    def test_insert_assigns_id(self, store):
        """Inserting returns a fresh id owned by the creator."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="First"))
        assert scape_id
        assert store.get_scape_owner(scape_id) == "u1"
        record = store.fetch_scape(scape_id)
        assert record.title == "First"
        assert record.is_published is False

    @pytest.mark.unit
    def test_update_same_row(self, store):
        """Updating keeps the id and overwrites fields."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="Old"))
        same_id = store.upsert_scape(
            scape_id,
            "u1",
            ScapeFields(
                title="New",
                tagline="tag",
                visibility="unlisted",
                permissions={"gen_guard": True},
            ),
        )
        assert same_id == scape_id
        record = store.fetch_scape(scape_id)
        assert (record.title, record.tagline, record.visibility) == ("New", "tag", "unlisted")
        assert record.permissions == {"gen_guard": True}
        assert len(store.list_user_scapes("u1")) == 1

    @pytest.mark.unit
    def test_update_keeps_permissions_when_unset(self, store):
        """Saves without permissions leave the stored ones alone."""
        scape_id = store.upsert_scape(
            None, "u1", ScapeFields(title="S", permissions={"dataset_reuse": False})
        )
        store.upsert_scape(scape_id, "u1", ScapeFields(title="S2"))
        assert store.fetch_scape(scape_id).permissions == {"dataset_reuse": False}

    @pytest.mark.unit
    def test_update_missing(self, store):
        """Updating an unknown id raises KeyError."""
        with pytest.raises(KeyError):
            store.upsert_scape("missing", "u1", ScapeFields(title="x"))

    @pytest.mark.unit
    def test_fetch_missing(self, store):
        """Unknown ids fetch as None."""
        assert store.fetch_scape("missing") is None
        assert store.get_scape_owner("missing") is None


class TestWidgets:
    """Tests for widget replacement."""

    @pytest.mark.unit
    def test_replace_preserves_ids_and_order(self, store):
        """Widgets come back in list order with positions 0..N-1."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        store.replace_widgets(scape_id, _widgets("c", "a", "b"))
        record = store.fetch_scape(scape_id)
        assert [w.id for w in record.widgets] == ["c", "a", "b"]
        assert [w.position for w in record.widgets] == [0, 1, 2]

    @pytest.mark.unit
    def test_replace_drops_old_widgets(self, store):
        """A second replacement removes widgets no longer listed."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        store.replace_widgets(scape_id, _widgets("a", "b"))
        store.replace_widgets(scape_id, _widgets("b"))
        assert [w.id for w in store.fetch_scape(scape_id).widgets] == ["b"]

    @pytest.mark.unit
    def test_feature_and_payload_round_trip(self, store):
        """Feature flag, caption, channel and payload are stored."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        widget = WidgetRecord(
            id="g",
            type="gallery",
            variant="gallery-grid",
            position=0,
            channel="red",
            is_feature=True,
            featured_caption="Look",
            data={"media_ids": ["m1", "m2"], "layout": "grid"},
        )
        store.replace_widgets(scape_id, [widget])
        stored = store.fetch_scape(scape_id).widgets[0]
        assert stored == widget

    @pytest.mark.unit
    def test_same_widget_ids_in_two_scapes(self, store):
        """Widget ids only need to be unique within a scape."""
        first = store.upsert_scape(None, "u1", ScapeFields(title="A"))
        second = store.upsert_scape(None, "u1", ScapeFields(title="B"))
        store.replace_widgets(first, _widgets("w"))
        store.replace_widgets(second, _widgets("w"))
        assert store.fetch_scape(first).widgets[0].id == "w"
        assert store.fetch_scape(second).widgets[0].id == "w"


class TestTitleLookup:
    """Tests for find_scape_by_title_for_user."""

    @pytest.mark.unit
    def test_finds_conflict(self, store):
        """A creator's existing title is reported."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="Mix"))
        assert store.find_scape_by_title_for_user("Mix", "u1") == scape_id

    @pytest.mark.unit
    def test_self_exclusion(self, store):
        """A scape never conflicts with itself."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="Mix"))
        assert store.find_scape_by_title_for_user("Mix", "u1", exclude_id=scape_id) is None

    @pytest.mark.unit
    def test_scoped_to_creator(self, store):
        """Other creators' titles do not count."""
        store.upsert_scape(None, "u2", ScapeFields(title="Mix"))
        assert store.find_scape_by_title_for_user("Mix", "u1") is None

    @pytest.mark.unit
    def test_exact_match(self, store):
        """Titles match exactly."""
        store.upsert_scape(None, "u1", ScapeFields(title="Mix"))
        assert store.find_scape_by_title_for_user("Mix 2", "u1") is None


class TestLifecycle:
    """Tests for publishing, listing and deletion."""

    @pytest.mark.unit
    def test_set_published(self, store):
        """The published flag can be set and cleared."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        store.set_published(scape_id, True)
        assert store.fetch_scape(scape_id).is_published
        store.set_published(scape_id, False)
        assert not store.fetch_scape(scape_id).is_published

    @pytest.mark.unit
    def test_list_user_scapes(self, store):
        """Listing returns only the creator's scapes with widget counts."""
        mine = store.upsert_scape(None, "u1", ScapeFields(title="Mine", tagline="t"))
        store.replace_widgets(mine, _widgets("a", "b"))
        store.upsert_scape(None, "u2", ScapeFields(title="Theirs"))
        summaries = store.list_user_scapes("u1")
        assert [s.id for s in summaries] == [mine]
        assert summaries[0].widget_count == 2
        assert summaries[0].to_dict()["title"] == "Mine"

    @pytest.mark.unit
    def test_delete(self, store):
        """Deleting removes the scape and its widgets."""
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        store.replace_widgets(scape_id, _widgets("a"))
        assert store.delete_scape(scape_id) is True
        assert store.fetch_scape(scape_id) is None
        assert store.delete_scape(scape_id) is False


class TestSQLiteSpecifics:
    """Tests specific to the SQLite backend."""

    @pytest.mark.unit
    def test_requires_initialize(self, temp_dir):
        """Using the store before initialize() fails loudly."""
        store = SQLiteScapeStore(temp_dir / "x.db")
        with pytest.raises(RuntimeError, match="not initialized"):
            store.fetch_scape("x")

    @pytest.mark.unit
    def test_persists_across_connections(self, temp_dir):
        """Data survives closing and reopening the file."""
        path = temp_dir / "scapes.db"
        store = SQLiteScapeStore(path)
        store.initialize()
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="Keep"))
        store.close()

        reopened = SQLiteScapeStore(path)
        reopened.initialize()
        assert reopened.fetch_scape(scape_id).title == "Keep"
        reopened.close()

    @pytest.mark.unit
    def test_failed_replace_rolls_back(self, temp_dir):
        """A failing widget insert leaves the previous widgets in place."""
        store = SQLiteScapeStore(temp_dir / "scapes.db")
        store.initialize()
        scape_id = store.upsert_scape(None, "u1", ScapeFields(title="S"))
        store.replace_widgets(scape_id, _widgets("a", "b"))

        with pytest.raises(sqlite3.IntegrityError):
            store.replace_widgets(scape_id, _widgets("x", "x"))

        assert [w.id for w in store.fetch_scape(scape_id).widgets] == ["a", "b"]
        store.close()

    @pytest.mark.unit
    def test_memory_database(self):
        """':memory:' works without touching the filesystem."""
        store = SQLiteScapeStore(":memory:")
        store.initialize()
        assert store.list_user_scapes("u1") == []
        store.close()
