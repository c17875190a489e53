from typing import Optional


class RelayError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidInput(RelayError):
    """A required field was empty."""


class BackendError(RelayError):
    """An upstream API call failed or answered with an unexpected shape."""


class DeliveryError(RelayError):
    """An outbound chat message could not be delivered."""
