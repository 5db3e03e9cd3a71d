"""
Client workflow for SaveYourGoblin: generation requests, stream decoding,
section regeneration with diff preview and undo.
"""

from .api_client import GoblinClient
from .cancellation import CancellationToken
from .controller import ControllerState, DiffPreview, DiffUndoController, UndoSnapshot
from .decoder import DocumentStreamDecoder, SectionStreamDecoder, decode_document, decode_sections
from .errors import (
    Busy,
    Cancelled,
    GenerationFailed,
    NoDataReturned,
    NotAuthenticated,
    PersistenceFailed,
    RegenerateAllFailed,
    RequestValidationError,
    WorkflowError,
)
from .regeneration import RegenerationEngine, SectionResult
from .request_builder import build_generation_request
from .session import GenerationSession
from .state import ContentStore

__all__ = [
    "Busy",
    "CancellationToken",
    "Cancelled",
    "ContentStore",
    "ControllerState",
    "DiffPreview",
    "DiffUndoController",
    "DocumentStreamDecoder",
    "GenerationFailed",
    "GenerationSession",
    "GoblinClient",
    "NoDataReturned",
    "NotAuthenticated",
    "PersistenceFailed",
    "RegenerateAllFailed",
    "RegenerationEngine",
    "RequestValidationError",
    "SectionResult",
    "SectionStreamDecoder",
    "UndoSnapshot",
    "WorkflowError",
    "build_generation_request",
    "decode_document",
    "decode_sections",
]
