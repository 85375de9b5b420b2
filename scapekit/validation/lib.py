"""Synchronous validation of scape drafts.

This module decides whether a draft may be saved and whether it may be
published. It never touches the store: title uniqueness arrives as a
``NameStatus`` produced by the asynchronous checker in ``uniqueness.py``.
"""

from dataclasses import dataclass, field
from enum import Enum

from scapekit.document import ScapeDraft
from scapekit.reorder import positions_are_dense
from scapekit.schema import (
    FEATURED_CAPTION_MAX_LENGTH,
    TAGLINE_MAX_LENGTH,
    TITLE_INVALID_CHARS,
    TITLE_MAX_LENGTH,
)


class NameStatus(str, Enum):
    """Outcome of the title uniqueness lookup."""

    UNKNOWN = "unknown"
    CHECKING = "checking"
    UNIQUE = "unique"
    TAKEN = "taken"


class IssueCode(str, Enum):
    """Machine-readable validation failure kinds."""

    EMPTY_TITLE = "empty_title"
    TITLE_TOO_LONG = "title_too_long"
    TITLE_INVALID_CHARS = "title_invalid_chars"
    TITLE_TAKEN = "title_taken"
    NO_WIDGETS = "no_widgets"
    EMPTY_CAPTION = "empty_caption"
    CAPTION_TOO_LONG = "caption_too_long"
    TAGLINE_TOO_LONG = "tagline_too_long"
    POSITIONS_NOT_DENSE = "positions_not_dense"


# Codes that block saving a draft; everything else blocks publishing only.
SAVE_BLOCKING_CODES = frozenset({IssueCode.EMPTY_TITLE})


@dataclass
class ValidationIssue:
    """A single validation failure.

    Attributes:
        code: Failure kind.
        message: Human-readable description shown to the creator.
        widget_id: Widget the failure refers to, if any.
    """

    code: IssueCode
    message: str
    widget_id: str | None = None

    @property
    def blocks_save(self) -> bool:
        return self.code in SAVE_BLOCKING_CODES

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "widget_id": self.widget_id,
        }


@dataclass
class ValidationResult:
    """Result of validating a draft.

    Attributes:
        is_valid: True when nothing at all is wrong (same gate as publish).
        errors: Messages for every issue, in check order.
        can_save_draft: Whether Save Draft is allowed.
        can_publish: Whether Publish is allowed.
        name_status: Uniqueness status the result was computed with.
        issues: Structured form of ``errors``.
    """

    is_valid: bool
    errors: list[str]
    can_save_draft: bool
    can_publish: bool
    name_status: NameStatus = NameStatus.UNKNOWN
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def name_is_unique(self) -> bool | None:
        """True/False once a lookup settled, None while unknown or checking."""
        if self.name_status == NameStatus.UNIQUE:
            return True
        if self.name_status == NameStatus.TAKEN:
            return False
        return None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "can_save_draft": self.can_save_draft,
            "can_publish": self.can_publish,
            "name_status": self.name_status.value,
            "name_is_unique": self.name_is_unique,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def validate_scape(
    draft: ScapeDraft,
    name_status: NameStatus = NameStatus.UNKNOWN,
    require_unique_title: bool = True,
) -> ValidationResult:
    """Validate a draft for saving and publishing.

    Checks, in order:
        - Title present after trimming (blocks save)
        - Title length and forbidden characters
        - Title not taken by another of the creator's scapes
        - At least one widget
        - Featured widget caption present and within bounds
        - Tagline within bounds
        - Widget positions dense

    Args:
        draft: Draft to check.
        name_status: Latest uniqueness status for the title.
        require_unique_title: Whether a TAKEN title blocks publishing.

    Returns:
        ValidationResult with both gates computed.

    Example:
        >>> result = validate_scape(draft)
        >>> if not result.can_publish:
        ...     print(result.errors)
    """
    issues: list[ValidationIssue] = []
    issues.extend(_check_title(draft.title))

    if require_unique_title and name_status == NameStatus.TAKEN and draft.title.strip():
        issues.append(
            ValidationIssue(IssueCode.TITLE_TAKEN, "Scape name is already taken")
        )

    if not draft.widgets:
        issues.append(
            ValidationIssue(IssueCode.NO_WIDGETS, "At least one widget is required")
        )

    issues.extend(_check_feature(draft))

    if len(draft.tagline) > TAGLINE_MAX_LENGTH:
        issues.append(
            ValidationIssue(
                IssueCode.TAGLINE_TOO_LONG,
                f"Tagline must be {TAGLINE_MAX_LENGTH} characters or less",
            )
        )

    if not positions_are_dense(draft.widgets):
        issues.append(
            ValidationIssue(
                IssueCode.POSITIONS_NOT_DENSE,
                "Widget positions are out of order",
            )
        )

    can_save_draft = not any(issue.blocks_save for issue in issues)
    can_publish = not issues
    return ValidationResult(
        is_valid=can_publish,
        errors=[issue.message for issue in issues],
        can_save_draft=can_save_draft,
        can_publish=can_publish,
        name_status=name_status,
        issues=issues,
    )


def is_publishable(draft: ScapeDraft, name_status: NameStatus = NameStatus.UNKNOWN) -> bool:
    """Convenience check for the publish gate."""
    return validate_scape(draft, name_status).can_publish


def _check_title(title: str) -> list[ValidationIssue]:
    if not title.strip():
        return [ValidationIssue(IssueCode.EMPTY_TITLE, "Scape name is required")]

    issues: list[ValidationIssue] = []
    if len(title) > TITLE_MAX_LENGTH:
        issues.append(
            ValidationIssue(
                IssueCode.TITLE_TOO_LONG,
                f"Scape name must be {TITLE_MAX_LENGTH} characters or less",
            )
        )
    if any(char in TITLE_INVALID_CHARS for char in title):
        issues.append(
            ValidationIssue(
                IssueCode.TITLE_INVALID_CHARS,
                "Scape name contains invalid characters",
            )
        )
    return issues


def _check_feature(draft: ScapeDraft) -> list[ValidationIssue]:
    feature = draft.feature_widget
    if feature is None:
        return []

    caption = feature.featured_caption or ""
    if not caption.strip():
        return [
            ValidationIssue(
                IssueCode.EMPTY_CAPTION,
                "Featured widget needs a caption to publish",
                widget_id=feature.id,
            )
        ]
    if len(caption) > FEATURED_CAPTION_MAX_LENGTH:
        return [
            ValidationIssue(
                IssueCode.CAPTION_TOO_LONG,
                f"Featured caption must be {FEATURED_CAPTION_MAX_LENGTH} characters or less",
                widget_id=feature.id,
            )
        ]
    return []


__all__ = [
    "NameStatus",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_scape",
    "is_publishable",
]
