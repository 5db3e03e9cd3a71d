"""
Errors raised by the client workflow.

Every error derives from WorkflowError so callers can catch the whole
family at once.
"""

from typing import Dict, Optional


class WorkflowError(Exception):
    """Base class for client workflow errors"""


class NotAuthenticated(WorkflowError):
    def __init__(self, message: str = "Not authenticated. Please sign in again."):
        super().__init__(message)


class GenerationFailed(WorkflowError):
    """The server or the network failed a generation request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoDataReturned(WorkflowError):
    """A stream ended without a usable document"""


class RequestValidationError(WorkflowError):
    """
    Input failed validation before any request was issued.

    Attributes:
        errors: Mapping of field name to message
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Invalid input ({detail})")


class Busy(WorkflowError):
    """The operation is not allowed in the controller's current state"""


class Cancelled(WorkflowError):
    """The operation was cancelled and its result discarded"""


class PersistenceFailed(WorkflowError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RegenerateAllFailed(WorkflowError):
    """
    A regenerate-all run stopped at the first failing section.

    Attributes:
        section: Section that failed
        cause: The underlying error
    """

    def __init__(self, section: str, cause: Exception):
        super().__init__(f'Failed to regenerate section "{section}": {cause}')
        self.section = section
        self.cause = cause
