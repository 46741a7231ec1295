"""
Exception classes for the Chef Python SDK
"""

from typing import Optional, Dict, Any


class ChefSDKError(Exception):
    """Base exception for all Chef SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(ChefSDKError):
    """Exception raised for invalid configuration or arguments"""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class InvalidKeyError(ChefSDKError):
    """Exception raised when private key material is malformed or not RSA"""

    def __init__(self, message: str, error_code: str = "INVALID_KEY", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class SigningError(ChefSDKError):
    """Exception raised when a request signature cannot be produced"""

    def __init__(self, message: str, error_code: str = "SIGNING_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class BodyRewindError(ChefSDKError):
    """
    Exception raised when a request body stream cannot be sought back to its start.

    A body that is hashed must be transmitted unchanged afterwards, so this
    signals a caller bug rather than a runtime condition.
    """

    def __init__(self, message: str, error_code: str = "BODY_REWIND_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class TransportError(ChefSDKError):
    """Exception raised for network level failures"""

    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class DecodeError(ChefSDKError):
    """Exception raised when a response body does not match the requested target"""

    def __init__(self, message: str, error_code: str = "DECODE_ERROR",
                 response: Any = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.response = response


class ServerError(ChefSDKError):
    """
    Error reported by the Chef server through a non-2xx response.

    Attributes:
        response: The buffered response that caused this error
        error_msg: Message extracted from the body on a best effort basis
        error_text: Raw response body bytes
    """

    def __init__(self, response: Any, error_msg: str = "", error_text: bytes = b""):
        self._response = response
        self._error_msg = error_msg
        self._error_text = error_text
        super().__init__(
            f"{self.status_method} {self.status_url}: {self.status_code}",
            "SERVER_ERROR",
            {"status_code": self.status_code, "message": error_msg},
        )

    @property
    def response(self) -> Any:
        return self._response

    @property
    def error_msg(self) -> str:
        return self._error_msg

    @property
    def error_text(self) -> bytes:
        return self._error_text

    @property
    def status_code(self) -> int:
        """HTTP status code of the failed response"""
        return self._response.status_code

    @property
    def status_msg(self) -> str:
        """Best effort server message, empty when the body shape is unknown"""
        return self._error_msg

    @property
    def status_text(self) -> bytes:
        """Raw error body as returned by the server"""
        return self._error_text

    @property
    def status_method(self) -> str:
        """HTTP method of the request that failed"""
        return self._response.request.method

    @property
    def status_url(self) -> str:
        """URL of the request that failed"""
        return self._response.request.url


def chef_error(error: Optional[BaseException]) -> Optional[ServerError]:
    """
    Unwrap a server error from an arbitrary exception.

    Args:
        error: Exception raised by a client call, or None

    Returns:
        ServerError or None: The server error if ``error`` is one
    """
    if isinstance(error, ServerError):
        return error
    return None
