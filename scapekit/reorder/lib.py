"""Reorder engine: pure list operations over ordered widgets.

Every function returns a new list and rewrites ``position`` wholesale from
list order, so positions stay a dense permutation of ``0..N-1``. Button
"up/down" moves and drag-and-drop both reduce to :func:`move_to`.
"""

from collections.abc import Sequence

from scapekit.widget import Widget


def clamp_index(index: int, length: int) -> int:
    """Clamp an index into ``[0, length - 1]`` (0 for empty lists)."""
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


def renumber(widgets: Sequence[Widget]) -> list[Widget]:
    """Rewrite every widget's position to its index."""
    return [widget.with_position(index) for index, widget in enumerate(widgets)]


def positions_are_dense(widgets: Sequence[Widget]) -> bool:
    """True when positions match list indices exactly."""
    return all(widget.position == index for index, widget in enumerate(widgets))


def move_to(widgets: Sequence[Widget], from_index: int, to_index: int) -> list[Widget]:
    """Move one widget with splice-and-insert semantics.

    Indices outside the list are clamped, so moving past the end lands on the
    last slot. Moving an item onto its own index returns the widgets unchanged.

    Args:
        widgets: Current ordered widgets.
        from_index: Index of the widget to move.
        to_index: Index the widget should occupy afterwards.

    Returns:
        New list with positions recomputed.

    Example:
        >>> [w.id for w in move_to([a, b, c], 0, 2)]
        ['b', 'c', 'a']
    """
    result = list(widgets)
    if not result:
        return result

    source = clamp_index(from_index, len(result))
    target = clamp_index(to_index, len(result))
    if source == target:
        return result if positions_are_dense(result) else renumber(result)

    moved = result.pop(source)
    result.insert(target, moved)
    return renumber(result)


def remove_at(widgets: Sequence[Widget], index: int) -> list[Widget]:
    """Remove the widget at ``index`` and close the gap.

    Raises:
        IndexError: If ``index`` is outside the list.
    """
    if not 0 <= index < len(widgets):
        raise IndexError(f"widget index {index} out of range for {len(widgets)} widgets")
    result = list(widgets)
    del result[index]
    return renumber(result)


def reorder_by_ids(widgets: Sequence[Widget], widget_ids: Sequence[str]) -> list[Widget]:
    """Arrange widgets in the order given by ``widget_ids``.

    Raises:
        ValueError: If ``widget_ids`` is not a permutation of the current ids.
    """
    by_id = {widget.id: widget for widget in widgets}
    if len(widget_ids) != len(by_id) or set(widget_ids) != set(by_id):
        raise ValueError("widget_ids must list every widget exactly once")
    return renumber([by_id[widget_id] for widget_id in widget_ids])


__all__ = [
    "clamp_index",
    "renumber",
    "positions_are_dense",
    "move_to",
    "remove_at",
    "reorder_by_ids",
]
