"""Widget catalog tool for MCP server."""

from typing import Any

from scapekit.schema import Channel, Visibility, export_widget_catalog


def list_widget_types() -> dict[str, Any]:
    """List widget types, their variants and default payloads.

    Returns:
        Dictionary containing:
        - widget_types: Registry entries in picker order
        - channels: Channel names
        - visibilities: Visibility names
    """
    return {
        "widget_types": export_widget_catalog(),
        "channels": [c.value for c in Channel],
        "visibilities": [v.value for v in Visibility],
    }
