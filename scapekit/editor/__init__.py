"""Scape editing session."""

from .lib import EDIT_OPERATIONS, EditorSession

__all__ = ["EditorSession", "EDIT_OPERATIONS"]
