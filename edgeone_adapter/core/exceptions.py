"""Core exceptions for the adapter.

Every exception carries the HTTP status, the OpenAI error ``type`` and the
``code`` it is reported with, so the HTTP front renders all of them through
one handler.
"""

from typing import Any, Optional, Union


class ProxyError(Exception):
    """Base exception for adapter errors."""

    status_code: int = 500
    error_type: str = "internal_server_error"

    def __init__(
        self,
        message: str,
        code: Union[str, int, None] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_envelope(self) -> dict[str, Any]:
        """Render the error in the OpenAI error envelope."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    status_code = 400
    error_type = "invalid_request_error"

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message, code=code)


class MissingFieldError(InvalidRequestError):
    """Raised when ``model`` or ``messages`` is missing from a chat request."""

    def __init__(
        self, message: str = "Missing required parameters: model and messages"
    ) -> None:
        super().__init__(message, code="missing_parameter")


class UnknownModelError(InvalidRequestError):
    """Raised when a requested model is not in the model registry."""

    def __init__(self, model: str, available: list[str]) -> None:
        super().__init__(
            f"Model '{model}' not found. Available models: {', '.join(available)}",
            code="model_not_found",
        )
        self.model = model
        self.available = available


class AuthenticationError(ProxyError):
    """Raised when the API key gate rejects a request."""

    status_code = 401
    error_type = "invalid_request_error"

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid_api_key")


class UpstreamError(ProxyError):
    """Raised when the upstream answers with a non-2xx status."""

    error_type = "api_error"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message, code=status_code, status_code=status_code or 500)


class UpstreamFormatError(ProxyError):
    """Raised when an upstream body cannot be read as a completion."""

    status_code = 500
    error_type = "api_error"


class UpstreamTimeoutError(ProxyError):
    """Raised when the upstream does not answer within the configured timeout."""

    status_code = 504
    error_type = "api_error"

    def __init__(self, message: str) -> None:
        super().__init__(message, code="timeout")


class UpstreamConnectionError(ProxyError):
    """Raised when the upstream cannot be reached at all."""

    status_code = 500
    error_type = "internal_server_error"


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass
