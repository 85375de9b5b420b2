"""Stored scape tools for MCP server.

Each tool accepts an optional ``persistence`` for tests; the server uses the
global SQLite-backed instance.
"""

from typing import Any

from scapekit.persistence import PublishOptions, ScapePersistence, get_persistence
from scapekit.schema import Visibility
from scapekit.validation import NameStatus

from .document import parse_scape


async def get_scape(
    scape_id: str,
    viewer_id: str | None = None,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """Load a stored scape as JSON.

    Raises:
        ScapeNotFoundError: Missing, or not visible to ``viewer_id``.
    """
    persistence = persistence or get_persistence()
    draft = await persistence.load(scape_id, viewer_id=viewer_id)
    return draft.to_dict()


async def save_scape(
    scape: dict[str, Any],
    creator_id: str,
    preserve_published_state: bool = False,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """Save a scape; ``id == "new"`` inserts.

    Returns:
        Dictionary with scape_id and the saved scape.
    """
    persistence = persistence or get_persistence()
    result = await persistence.save(
        parse_scape(scape),
        creator_id,
        preserve_published_state=preserve_published_state,
    )
    return {"scape_id": result.scape_id, "scape": result.draft.to_dict()}


async def publish_scape(
    scape: dict[str, Any],
    creator_id: str,
    visibility: str | None = None,
    permissions: dict[str, Any] | None = None,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """Save and publish a scape.

    Returns:
        Dictionary with scape_id and the published scape.
    """
    persistence = persistence or get_persistence()
    options = PublishOptions(
        visibility=Visibility(visibility) if visibility else None,
        permissions=permissions,
    )
    result = await persistence.publish(parse_scape(scape), creator_id, options)
    return {"scape_id": result.scape_id, "scape": result.draft.to_dict()}


async def check_title(
    title: str,
    creator_id: str,
    exclude_id: str | None = None,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """Check whether a title is free among a creator's scapes.

    Returns:
        Dictionary with title, status (unique/taken/unknown) and conflict_id.
    """
    if not title.strip():
        return {"title": title, "status": NameStatus.UNKNOWN.value, "conflict_id": None}

    persistence = persistence or get_persistence()
    conflict = await persistence.find_title_conflict(title, creator_id, exclude_id)
    status = NameStatus.TAKEN if conflict else NameStatus.UNIQUE
    return {"title": title, "status": status.value, "conflict_id": conflict}


async def list_scapes(
    creator_id: str,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """List a creator's scapes, newest first."""
    persistence = persistence or get_persistence()
    summaries = await persistence.list_user_scapes(creator_id)
    return {
        "creator_id": creator_id,
        "count": len(summaries),
        "scapes": [s.to_dict() for s in summaries],
    }


async def delete_scape(
    scape_id: str,
    creator_id: str,
    persistence: ScapePersistence | None = None,
) -> dict[str, Any]:
    """Delete a creator's scape."""
    persistence = persistence or get_persistence()
    await persistence.delete(scape_id, creator_id)
    return {"scape_id": scape_id, "deleted": True}
