"""Unit tests for the reorder engine."""

import random

import pytest

from scapekit.schema import WidgetType
from scapekit.widget import Widget

from .lib import (
    clamp_index,
    move_to,
    positions_are_dense,
    remove_at,
    renumber,
    reorder_by_ids,
)


def _widgets(*ids: str) -> list[Widget]:
    return [
        Widget(id=wid, type=WidgetType.TEXT, variant="text-small", position=i)
        for i, wid in enumerate(ids)
    ]


def _ids(widgets: list[Widget]) -> list[str]:
    return [w.id for w in widgets]


def _positions(widgets: list[Widget]) -> list[int]:
    return [w.position for w in widgets]


class TestClampIndex:
    """Tests for clamp_index."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("index", "length", "expected"),
        [(0, 3, 0), (2, 3, 2), (5, 3, 2), (-4, 3, 0), (3, 0, 0)],
    )
    def test_clamp(self, index, length, expected):
        """Indices clamp into the valid range."""
        assert clamp_index(index, length) == expected


class TestMoveTo:
    """Tests for move_to."""

    @pytest.mark.unit
    def test_move_first_to_last(self):
        """[A,B,C] moving 0 -> 2 yields [B,C,A] with fresh positions."""
        result = move_to(_widgets("A", "B", "C"), 0, 2)
        assert _ids(result) == ["B", "C", "A"]
        assert _positions(result) == [0, 1, 2]

    @pytest.mark.unit
    def test_move_last_to_first(self):
        """Long-distance moves shift everything in between."""
        result = move_to(_widgets("A", "B", "C", "D"), 3, 0)
        assert _ids(result) == ["D", "A", "B", "C"]
        assert _positions(result) == [0, 1, 2, 3]

    @pytest.mark.unit
    def test_adjacent_move_is_splice_not_special(self):
        """Adjacent moves follow the same splice semantics."""
        result = move_to(_widgets("A", "B", "C"), 1, 2)
        assert _ids(result) == ["A", "C", "B"]

    @pytest.mark.unit
    def test_same_index_noop(self):
        """move_to(i, i) returns an equal list."""
        widgets = _widgets("A", "B", "C")
        assert move_to(widgets, 1, 1) == widgets

    @pytest.mark.unit
    def test_past_end_clamps(self):
        """Moving past the end lands on the last slot."""
        result = move_to(_widgets("A", "B", "C"), 0, 99)
        assert _ids(result) == ["B", "C", "A"]

    @pytest.mark.unit
    def test_last_past_end_is_noop(self):
        """Moving the last item past the end leaves the order alone."""
        widgets = _widgets("A", "B", "C")
        assert _ids(move_to(widgets, 2, 10)) == ["A", "B", "C"]

    @pytest.mark.unit
    def test_empty(self):
        """Empty lists stay empty."""
        assert move_to([], 0, 3) == []

    @pytest.mark.unit
    def test_input_not_mutated(self):
        """The caller's list and widgets are untouched."""
        widgets = _widgets("A", "B", "C")
        move_to(widgets, 0, 2)
        assert _ids(widgets) == ["A", "B", "C"]
        assert _positions(widgets) == [0, 1, 2]

    @pytest.mark.unit
    def test_repairs_drifted_positions(self):
        """Stale positions are recomputed from list order."""
        drifted = [w.with_position(7) for w in _widgets("A", "B")]
        result = move_to(drifted, 0, 1)
        assert _positions(result) == [0, 1]


class TestRemoveAt:
    """Tests for remove_at."""

    @pytest.mark.unit
    def test_closes_gap(self):
        """Later widgets shift down by one."""
        result = remove_at(_widgets("A", "B", "C"), 0)
        assert _ids(result) == ["B", "C"]
        assert _positions(result) == [0, 1]

    @pytest.mark.unit
    def test_remove_only_widget(self):
        """Removing the only widget leaves an empty list."""
        assert remove_at(_widgets("A"), 0) == []

    @pytest.mark.unit
    def test_out_of_range(self):
        """Bad indices raise IndexError."""
        with pytest.raises(IndexError):
            remove_at(_widgets("A"), 1)


class TestReorderByIds:
    """Tests for reorder_by_ids."""

    @pytest.mark.unit
    def test_full_permutation(self):
        """A drag result is applied wholesale."""
        result = reorder_by_ids(_widgets("A", "B", "C"), ["C", "A", "B"])
        assert _ids(result) == ["C", "A", "B"]
        assert _positions(result) == [0, 1, 2]

    @pytest.mark.unit
    @pytest.mark.parametrize("ids", [["A", "B"], ["A", "B", "B"], ["A", "B", "X"]])
    def test_rejects_non_permutation(self, ids):
        """Missing, duplicate or foreign ids are refused."""
        with pytest.raises(ValueError):
            reorder_by_ids(_widgets("A", "B", "C"), ids)


class TestDensity:
    """Positions stay dense after arbitrary operation sequences."""

    @pytest.mark.unit
    def test_renumber(self):
        """renumber produces 0..N-1."""
        shuffled = [w.with_position(9) for w in _widgets("A", "B", "C")]
        assert positions_are_dense(renumber(shuffled))

    @pytest.mark.unit
    def test_random_sequences(self):
        """Random move/remove sequences never break density."""
        rng = random.Random(1234)
        widgets = _widgets(*[f"w{i}" for i in range(12)])
        for _ in range(300):
            if widgets and rng.random() < 0.15:
                widgets = remove_at(widgets, rng.randrange(len(widgets)))
            else:
                widgets = move_to(widgets, rng.randint(-2, 14), rng.randint(-2, 14))
            assert sorted(_positions(widgets)) == list(range(len(widgets)))
            assert positions_are_dense(widgets)
