"""Error taxonomy for messaging operations."""


class MessengerError(Exception):
    """Base class for all messenger errors."""


class ValidationError(MessengerError):
    """Malformed or incomplete payload. Raised before any mutation."""


class NotFoundError(MessengerError):
    """Unknown user, chat, message or contact reference."""


class AuthorizationError(MessengerError):
    """Actor is not allowed to perform the operation."""


class DeliveryError(MessengerError):
    """Realtime channel unavailable. Logged by Fanout, never surfaced."""


class StorageError(MessengerError):
    """Persistence failure. The message never carries storage internals."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)
