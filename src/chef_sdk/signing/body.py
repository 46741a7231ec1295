"""
Request body wrapper used for hashing and content type detection

A payload is hashed before it is sent, so a stream body is drained into
memory and then sought back to its start, leaving it ready for transmission.
"""

import io
import json
import logging
from typing import Any, Optional, Union

from ..crypto.primitives import DigestAlgorithm, hash_content
from ..exceptions import BodyRewindError, ValidationError
from .sniff import detect_content_type

logger = logging.getLogger(__name__)

BodySource = Union[None, bytes, bytearray, str, io.IOBase, Any]


def _is_json(data: bytes) -> bool:
    try:
        json.loads(data)
    except ValueError:
        return False
    return True


class RequestBody:
    """
    Wraps a request payload so it can be read for hashing and sent afterwards.

    Attributes:
        source: None, bytes, str, or a seekable binary file-like object
    """

    def __init__(self, source: BodySource = None):
        self.source = source
        self._buffered: Optional[bytes] = None

    def buffer(self) -> bytes:
        """
        Read the full payload into memory.

        A stream is drained once and sought back to its start; later calls
        return the same bytes without touching the stream again.

        Returns:
            bytes: Payload content, ``b""`` when there is no body

        Raises:
            BodyRewindError: If a stream body cannot be repositioned to its start
        """
        if self._buffered is None:
            self._buffered = self._drain()
        return self._buffered

    @property
    def is_stream(self) -> bool:
        return self.source is not None and not isinstance(self.source, (str, bytes, bytearray, memoryview))

    def _drain(self) -> bytes:
        source = self.source
        if source is None:
            return b""
        if isinstance(source, str):
            return source.encode('utf-8')
        if isinstance(source, (bytes, bytearray, memoryview)):
            return bytes(source)

        data = source.read()
        if isinstance(data, str):
            data = data.encode('utf-8')

        try:
            source.seek(0)
        except (AttributeError, OSError, io.UnsupportedOperation) as e:
            raise BodyRewindError(
                f"Request body cannot be rewound after reading: {e}",
                details={"body_type": type(source).__name__}
            ) from e

        logger.debug(f"Buffered {len(data or b'')} bytes from {type(source).__name__} request body")
        return data or b""

    def hash(self) -> str:
        """SHA-1 content hash, used by protocol 1.0"""
        return hash_content(self.buffer(), DigestAlgorithm.SHA1)

    def hash256(self) -> str:
        """SHA-256 content hash, used by protocol 1.3"""
        return hash_content(self.buffer(), DigestAlgorithm.SHA256)

    def hash_for_version(self, version: str) -> str:
        if version == "1.3":
            return self.hash256()
        return self.hash()

    def content_type(self) -> str:
        """
        Content type of the payload.

        JSON documents of any kind, scalars included, are reported as
        ``application/json``; everything else is sniffed.
        """
        data = self.buffer()
        if _is_json(data):
            return "application/json"
        return detect_content_type(data)


def as_request_body(body: Optional[Union[RequestBody, BodySource]]) -> RequestBody:
    """Wrap a raw payload, passing existing ``RequestBody`` instances through."""
    if isinstance(body, RequestBody):
        return body
    if body is not None and not isinstance(body, (str, bytes, bytearray, memoryview)) \
            and not hasattr(body, "read"):
        raise ValidationError(
            f"Unsupported request body type: {type(body).__name__}; "
            "pass bytes, str or a readable binary stream",
            details={"body_type": type(body).__name__}
        )
    return RequestBody(body)
