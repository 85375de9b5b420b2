"""MCP tools for scapekit.

Tools:
    - list_widget_types: Widget registry with variants and default payloads
    - validate_scape: Save/publish gates for a scape document
    - move_widget: Reorder a scape document
    - get_scape, save_scape, publish_scape, delete_scape: Stored scapes
    - check_title, list_scapes: Creator-scoped queries
"""

from .catalog import list_widget_types
from .document import move_widget, parse_scape, validate_scape
from .scapes import (
    check_title,
    delete_scape,
    get_scape,
    list_scapes,
    publish_scape,
    save_scape,
)

__all__ = [
    "list_widget_types",
    "parse_scape",
    "validate_scape",
    "move_widget",
    "get_scape",
    "save_scape",
    "publish_scape",
    "check_title",
    "list_scapes",
    "delete_scape",
]
