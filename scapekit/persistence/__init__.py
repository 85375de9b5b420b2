"""Save/publish persistence for scapes.

Example:
    >>> from scapekit.persistence import ScapePersistence
    >>> from scapekit.store import InMemoryScapeStore
    >>> persistence = ScapePersistence(InMemoryScapeStore())
    >>> result = await persistence.save(draft, creator_id="user-1")
"""

from .errors import (
    MissingCreatorError,
    PersistenceError,
    SaveInProgressError,
    ScapeError,
    ScapeNotFoundError,
    StructuralValidationError,
    UnauthorizedError,
)
from .lib import (
    PublishOptions,
    SaveResult,
    ScapePersistence,
    close_persistence,
    draft_to_fields,
    draft_to_widget_records,
    get_persistence,
    record_to_draft,
)

__all__ = [
    # Orchestrator
    "ScapePersistence",
    "SaveResult",
    "PublishOptions",
    "get_persistence",
    "close_persistence",
    # Conversion
    "draft_to_fields",
    "draft_to_widget_records",
    "record_to_draft",
    # Errors
    "ScapeError",
    "StructuralValidationError",
    "ScapeNotFoundError",
    "PersistenceError",
    "UnauthorizedError",
    "MissingCreatorError",
    "SaveInProgressError",
]
