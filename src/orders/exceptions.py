"""Error taxonomy for the order lifecycle.

``ValidationError`` and ``NotFoundError`` are Protean's own exceptions so
that framework-raised errors (field validation, ``repository.get`` misses)
and ours travel through the same handlers. ``ConflictError`` marks guard
violations such as cancelling a shipped order or a stale revision.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

NotFoundError = ObjectNotFoundError


class ConflictError(InvalidOperationError):
    """A guard rejected the operation in the order's current state."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


__all__ = ["ConflictError", "NotFoundError", "ValidationError"]
