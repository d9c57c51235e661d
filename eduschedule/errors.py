from __future__ import annotations


class DataValidationError(ValueError):
    """Submitted data is incomplete or breaks a scheduling rule."""


class ScheduleConflictError(ValueError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(KeyError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(entity_id)
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        return f"{self.kind} {self.entity_id} not found"


class PersistenceError(RuntimeError):
    """The state blob could not be written to storage."""
