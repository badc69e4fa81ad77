"""Task engine exceptions.

NotFoundError is raised by the cascade engine before any mutation happens.
ValidationError belongs to creation/edit time and config parsing, never to a
toggle.
"""

from __future__ import annotations


class TaskEngineError(Exception):
    """Base class for task engine errors."""


class NotFoundError(TaskEngineError, LookupError):
    """A task, milestone or step id did not resolve under its stated parent."""

    def __init__(self, kind: str, entity_id: str, parent_id: str | None = None):
        self.kind = kind
        self.entity_id = entity_id
        self.parent_id = parent_id
        if parent_id:
            message = f"{kind.capitalize()} not found: {entity_id} (in {parent_id})"
        else:
            message = f"{kind.capitalize()} not found: {entity_id}"
        super().__init__(message)


class ValidationError(TaskEngineError, ValueError):
    """Entity or filter input failed validation."""


__all__ = ["NotFoundError", "TaskEngineError", "ValidationError"]
