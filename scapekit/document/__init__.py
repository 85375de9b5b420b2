"""Scape document model."""

from .lib import ScapeDraft, WidgetNotFoundError, new_draft

__all__ = [
    "ScapeDraft",
    "WidgetNotFoundError",
    "new_draft",
]
