"""Draft validation: synchronous gates plus asynchronous title uniqueness."""

from .lib import (
    IssueCode,
    NameStatus,
    ValidationIssue,
    ValidationResult,
    is_publishable,
    validate_scape,
)
from .uniqueness import TitleLookup, TitleUniquenessChecker

__all__ = [
    "NameStatus",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_scape",
    "is_publishable",
    "TitleLookup",
    "TitleUniquenessChecker",
]
