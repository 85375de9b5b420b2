"""scapekit: composition engine for scapes (ordered, typed widget pages)."""

from scapekit.document import ScapeDraft, WidgetNotFoundError, new_draft
from scapekit.editor import EditorSession
from scapekit.persistence import (
    PersistenceError,
    PublishOptions,
    SaveResult,
    ScapeError,
    ScapeNotFoundError,
    ScapePersistence,
    StructuralValidationError,
)
from scapekit.schema import Channel, Visibility, WidgetType
from scapekit.validation import NameStatus, ValidationResult, validate_scape
from scapekit.widget import Widget, create_widget

__all__ = [
    # Model
    "Widget",
    "WidgetType",
    "Channel",
    "Visibility",
    "create_widget",
    "ScapeDraft",
    "new_draft",
    "WidgetNotFoundError",
    # Validation
    "validate_scape",
    "ValidationResult",
    "NameStatus",
    # Persistence
    "ScapePersistence",
    "SaveResult",
    "PublishOptions",
    "ScapeError",
    "StructuralValidationError",
    "ScapeNotFoundError",
    "PersistenceError",
    # Editing
    "EditorSession",
]
