"""Reorder engine for ordered widget collections."""

from .lib import (
    clamp_index,
    move_to,
    positions_are_dense,
    remove_at,
    renumber,
    reorder_by_ids,
)

__all__ = [
    "clamp_index",
    "renumber",
    "positions_are_dense",
    "move_to",
    "remove_at",
    "reorder_by_ids",
]
