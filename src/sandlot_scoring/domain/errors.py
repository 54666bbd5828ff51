class ScoringError(Exception):
    """Base class for every failure the scoring core reports to its callers."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ScoringError):
    """Malformed or contextually invalid input; nothing was written."""


class ConflictError(ScoringError):
    """A write collided with existing state (occupied base, held writer lock)."""


class NotFoundError(ScoringError):
    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class TransientStoreError(ScoringError):
    """The underlying store failed; the caller may retry the whole command."""
