"""Exception hierarchy for scape persistence."""


class ScapeError(Exception):
    """Base class for scape engine errors."""


class StructuralValidationError(ScapeError):
    """The draft failed the save or publish gate; nothing was written."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Scape is not valid")


class ScapeNotFoundError(ScapeError):
    """The scape does not exist or is not visible to the caller."""

    def __init__(self, scape_id: str):
        self.scape_id = scape_id
        super().__init__(f"Scape not found: {scape_id}")


class PersistenceError(ScapeError):
    """A store operation failed. The original error is chained as ``__cause__``."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        message = f"Failed to {operation} scape"
        super().__init__(f"{message}: {detail}" if detail else message)


class UnauthorizedError(ScapeError):
    """The caller does not own the scape."""

    def __init__(self, scape_id: str, user_id: str):
        self.scape_id = scape_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own scape {scape_id}")


class MissingCreatorError(ScapeError):
    """A write was attempted without a creator id."""

    def __init__(self) -> None:
        super().__init__("A creator id is required to write scapes")


class SaveInProgressError(ScapeError):
    """A save or publish is already running for this session."""

    def __init__(self) -> None:
        super().__init__("A save is already in progress")


__all__ = [
    "ScapeError",
    "StructuralValidationError",
    "ScapeNotFoundError",
    "PersistenceError",
    "UnauthorizedError",
    "MissingCreatorError",
    "SaveInProgressError",
]
