"""
Error taxonomy for the conversation engine.

Every error here is recoverable: the UI shows the message and the session it
came from stays usable.
"""


class NeuraTalkError(Exception):
    """Base class for all NeuraTalk errors."""


class DiscoveryError(NeuraTalkError):
    pass


class BackendUnavailable(DiscoveryError):
    """The ollama binary is missing or its service does not answer."""


class NoModelsInstalled(DiscoveryError):
    def __init__(self, message: str = "no models found. Please install a model using 'ollama pull <model-name>'"):
        super().__init__(message)


class GenerationError(NeuraTalkError):
    pass


class ConnectFailed(GenerationError):
    """The backend could not be reached for a completion."""


class GenerationFailed(GenerationError):
    """The backend was reached but the completion did not succeed."""


class PersistenceError(NeuraTalkError):
    """A transcript or snapshot write failed."""


class SessionConflict(NeuraTalkError):
    """A second session was requested for a model that already has one."""
