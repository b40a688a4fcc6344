"""
The conversation engine: discovery, generation, persistence and reveal.
"""
from .animator import RevealAnimator, RevealRate
from .catalog import ModelCatalog, parse_model_listing
from .errors import (
    BackendUnavailable,
    ConnectFailed,
    GenerationFailed,
    NeuraTalkError,
    NoModelsInstalled,
    PersistenceError,
    SessionConflict,
)
from .generation import GenerationClient, GenerationOptions
from .manager import SessionManager
from .session import ConversationSession
from .store import TranscriptStore

__all__ = [
    "BackendUnavailable",
    "ConnectFailed",
    "ConversationSession",
    "GenerationClient",
    "GenerationFailed",
    "GenerationOptions",
    "ModelCatalog",
    "NeuraTalkError",
    "NoModelsInstalled",
    "PersistenceError",
    "RevealAnimator",
    "RevealRate",
    "SessionConflict",
    "SessionManager",
    "TranscriptStore",
    "parse_model_listing",
]
