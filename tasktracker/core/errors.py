"""
Typed failures raised by the task engine.

Every error carries a stable ``code`` (e.g. ``TitleRequired``) so callers can
branch on it without parsing messages. The HTTP layer maps each kind to a
status code in main.py.
"""


class TaskEngineError(Exception):
    status_code = 400

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self):
        return f"<{type(self).__name__}(code='{self.code}', message='{self.message}')>"


class ValidationError(TaskEngineError):
    """Missing or malformed input: title, dates, time text, recurrence fields."""
    status_code = 400


class NotFoundError(TaskEngineError):
    status_code = 404


class ForbiddenError(TaskEngineError):
    """Role or relationship check failed."""
    status_code = 403


class CapacityError(TaskEngineError):
    """Assignee cardinality violated."""
    status_code = 400


class ImmutableFieldError(TaskEngineError):
    status_code = 400


class StateConflictError(TaskEngineError):
    """Operation not allowed in the task's current lifecycle state."""
    status_code = 409
