"""Error taxonomy for the chat client."""

from typing import Optional


class ChatClientError(Exception):
    """Base class for every error raised by the chat client."""
    pass


class ConfigurationError(ChatClientError):
    """A required identifier (model, credential, endpoint) is missing."""
    pass


class ValidationError(ChatClientError, ValueError):
    """A parameter is outside its accepted range."""
    pass


class TransportError(ChatClientError):
    """The HTTP exchange did not complete with a success status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SerializationError(ChatClientError):
    """The response body does not have the expected shape."""
    pass
