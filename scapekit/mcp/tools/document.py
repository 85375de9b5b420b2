"""Stateless document tools for MCP server.

These tools take a scape as JSON (``ScapeDraft.to_dict()`` shape), apply one
engine operation, and hand JSON back. Nothing is stored.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from scapekit.document import ScapeDraft
from scapekit.validation import NameStatus
from scapekit.validation import validate_scape as run_validation


def parse_scape(scape: dict[str, Any]) -> ScapeDraft:
    """Parse tool input into a draft.

    Raises:
        ValueError: If the payload does not describe a valid scape.
    """
    try:
        return ScapeDraft.from_dict(scape)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(x) for x in err['loc']) or 'scape'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValueError(f"Invalid scape: {details}") from e


def validate_scape(
    scape: dict[str, Any],
    name_status: str = NameStatus.UNKNOWN.value,
    require_unique_title: bool = True,
) -> dict[str, Any]:
    """Validate a scape document.

    Args:
        scape: Scape JSON.
        name_status: Known uniqueness status of the title
            (unknown, checking, unique, taken).
        require_unique_title: Whether a taken title blocks publishing.

    Returns:
        Validation result with can_save_draft, can_publish, errors and issues.
        Payloads that do not parse come back with ``is_valid`` false and a
        ``schema_validation`` issue per problem.

    Example:
        >>> result = validate_scape({"title": "Mix", "widgets": []})
        >>> result["can_save_draft"], result["can_publish"]
        (True, False)
    """
    try:
        draft = ScapeDraft.from_dict(scape)
    except PydanticValidationError as e:
        issues = [
            {
                "code": "schema_validation",
                "message": f"{'.'.join(str(x) for x in err['loc']) or 'scape'}: {err['msg']}",
                "widget_id": None,
            }
            for err in e.errors()
        ]
        return {
            "is_valid": False,
            "errors": [issue["message"] for issue in issues],
            "can_save_draft": False,
            "can_publish": False,
            "name_status": NameStatus.UNKNOWN.value,
            "name_is_unique": None,
            "issues": issues,
        }

    result = run_validation(draft, NameStatus(name_status), require_unique_title)
    return result.to_dict()


def move_widget(
    scape: dict[str, Any],
    from_index: int,
    to_index: int,
) -> dict[str, Any]:
    """Move one widget and return the reordered scape.

    Out-of-range indices are clamped; positions are recomputed.
    """
    draft = parse_scape(scape).move_to(from_index, to_index)
    return draft.to_dict()
