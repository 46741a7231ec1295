"""
Response handling for Chef server calls

Responses are materialized once into memory so the body can be inspected by
error handling, decoded into a target, and still be read again by callers.
"""

import json
import logging
from typing import Any, Iterator, Optional

from requests.models import Response

from .exceptions import DecodeError, ServerError, ValidationError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain"


class ChefResponse:
    """
    Buffered HTTP response with a re-readable body.

    The body is read from the network exactly once, when the response is
    created. ``content``, ``text``, ``json()`` and ``iter_content()`` can be
    called any number of times afterwards, and the wrapped
    ``requests.Response`` serves the same cached bytes.

    Attributes:
        raw: Wrapped requests response
        value: Result of decoding the body into the requested target
    """

    def __init__(self, response: Response):
        self.raw = response
        self._content = response.content
        self.value: Any = None

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def text(self) -> str:
        return self.raw.text

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def headers(self):
        return self.raw.headers

    @property
    def request(self):
        return self.raw.request

    @property
    def url(self) -> str:
        return self.raw.url

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def media_type(self) -> str:
        """Content-Type without parameters, lower case"""
        return media_type(self.headers.get("Content-Type", ""))

    def json(self) -> Any:
        return json.loads(self._content)

    def iter_content(self, chunk_size: int = 8192) -> Iterator[bytes]:
        for start in range(0, len(self._content), chunk_size):
            yield self._content[start:start + chunk_size]

    def close(self) -> None:
        """Release the underlying connection"""
        self.raw.close()

    def __enter__(self) -> "ChefResponse":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"<ChefResponse [{self.status_code}]>"


def media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def extract_error_msg(data: bytes) -> str:
    """
    Extract the error message from a Chef server error body.

    Chef formats errors as ``{"error": ["msg", ...]}``. Only the first element
    of the array is used, and only when it is a string. Any other shape gives
    an empty message; the raw body stays available on the error.

    Args:
        data: Raw response body

    Returns:
        str: Extracted message or ""
    """
    try:
        document = json.loads(data)
    except ValueError:
        logger.debug(f"Error body is not JSON: {data[:200]!r}")
        return ""

    errors = document.get("error") if isinstance(document, dict) else None
    if not isinstance(errors, list):
        logger.debug(f"Unknown error body shape: {data[:200]!r}")
        return ""

    if not errors:
        return ""

    first = errors[0]
    if not isinstance(first, str):
        logger.debug(f"Unknown error element type {type(first).__name__}: {first!r}")
        return ""
    return first.strip()


def check_response(response: ChefResponse) -> Optional[ServerError]:
    """
    Classify a response by status code.

    Args:
        response: Buffered response

    Returns:
        ServerError or None: None for 200-299, a structured error otherwise
    """
    if response.ok:
        return None

    data = response.content
    logger.debug(f"Response error body: {data[:1000]!r}")
    return ServerError(response, error_msg=extract_error_msg(data), error_text=data)


def _decode_json(response: ChefResponse) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(
            f"Invalid JSON response: {e}",
            response=response,
            details={"content_type": response.headers.get("Content-Type", "")}
        ) from e


def _apply_target(document: Any, target: Any, response: ChefResponse) -> Any:
    if isinstance(target, dict):
        if not isinstance(document, dict):
            raise DecodeError(
                f"Expected a JSON object, got {type(document).__name__}",
                response=response
            )
        target.update(document)
        return target

    if isinstance(target, list):
        if not isinstance(document, list):
            raise DecodeError(
                f"Expected a JSON array, got {type(document).__name__}",
                response=response
            )
        target.extend(document)
        return target

    if target is str:
        if not isinstance(document, str):
            raise DecodeError(
                f"Expected a JSON string, got {type(document).__name__}",
                response=response
            )
        return document

    if callable(target):
        try:
            return target(document)
        except (TypeError, ValueError, KeyError) as e:
            raise DecodeError(
                f"Response does not match {getattr(target, '__name__', repr(target))}: {e}",
                response=response
            ) from e

    raise ValidationError(f"Unsupported response target: {type(target).__name__}")


def decode_into(response: ChefResponse, target: Any, log: Optional[logging.Logger] = None) -> Any:
    """
    Decode a successful response into a target.

    Args:
        response: Buffered response
        target: None to discard the body; a writable object receiving the raw
            bytes; ``str`` for plain text; a dict or list updated in place;
            or a callable receiving the decoded JSON document
        log: Optional logger replacing the module logger

    Returns:
        Any: The decoded value, also stored on ``response.value``

    Raises:
        DecodeError: If the body does not match the target
    """
    log = log or logger

    if target is None:
        if log.isEnabledFor(logging.DEBUG):
            log.debug(f"No response body requested, discarding: {response.text}")
        response.value = None
        return None

    if hasattr(target, "write"):
        log.debug("Response output desired is a writer")
        target.write(response.content)
        response.value = target
        return target

    content_type = response.media_type

    if content_type == JSON_CONTENT_TYPE:
        response.value = _apply_target(_decode_json(response), target, response)
        log.debug(f"Response body decoded as JSON into {type(response.value).__name__}")
        return response.value

    if target is str and content_type == TEXT_CONTENT_TYPE:
        response.value = response.text
        log.debug("Response body parsed as string: %s", response.value)
        return response.value

    response.value = _apply_target(_decode_json(response), target, response)
    log.debug(f"Response body defaulted to JSON parsing into {type(response.value).__name__}")
    return response.value
