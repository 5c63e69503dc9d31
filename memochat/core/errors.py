"""Error taxonomy shared by the services and the HTTP layer."""


class ChatServiceError(Exception):
    """Base class for failures surfaced to the caller as ``{"error": ...}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatServiceError):
    """A required request field is missing or empty."""

    status_code = 400


class InferenceError(ChatServiceError):
    """The generation backend failed or returned something unusable."""


class StorageError(ChatServiceError):
    """The key-value backend could not be read, written or deleted."""


class StorageCorruptionError(StorageError):
    """A stored conversation could not be decoded."""
