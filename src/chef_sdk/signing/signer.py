"""
Chef Server request signer

Produces the X-Ops header set for protocol versions 1.0 and 1.3 and writes
it onto a prepared ``requests`` request.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from requests.models import PreparedRequest

from ..crypto.primitives import DigestAlgorithm, chunk_base64, sign
from ..exceptions import SigningError
from .canonical import (
    build_header_values,
    canonical_string,
    clean_path,
    request_headers,
    resolve_timestamp,
)
from .types import (
    AUTHORIZATION_HEADER_PREFIX,
    CONTENT_HASH_HEADER,
    REQUEST_SOURCE_HEADER,
    AuthConfig,
    SignedHeaders,
)


class ChefSigner:
    """
    Signs requests with a client identity.

    The signer holds no per-request state and can be shared between threads.
    """

    def __init__(
        self,
        auth: AuthConfig,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the signer.

        Args:
            auth: Client identity and protocol version
            clock: Optional source of the current time, UTC
            logger: Optional logger replacing the module logger
        """
        self.auth = auth
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    @property
    def version(self) -> str:
        return self.auth.authentication_version

    def sign_headers(
        self,
        method: str,
        path: str,
        content_hash: str,
        request_source: str = "",
    ) -> SignedHeaders:
        """
        Compute the signed header set for a request.

        Args:
            method: HTTP method
            path: Cleaned request path
            content_hash: Base64 body hash matching the protocol version
            request_source: X-Ops-Request-Source value, empty when unset

        Returns:
            SignedHeaders: Canonical string, protocol headers and signature lines

        Raises:
            SigningError: If the signature cannot be produced
        """
        values = build_header_values(
            method=method,
            path=path,
            user_id=self.auth.client_name,
            content_hash=content_hash,
            timestamp=resolve_timestamp(self.clock),
            version=self.version,
            request_source=request_source,
        )
        content = canonical_string(values, self.version)
        self.logger.debug(f"Canonical request for protocol {self.version}:\n{content}")

        signature = sign(self.auth.private_key, DigestAlgorithm.for_version(self.version), content)

        return SignedHeaders(
            version=self.version,
            canonical_string=content,
            headers=request_headers(values, self.version),
            authorization=chunk_base64(signature),
        )

    def sign_request(self, request: PreparedRequest) -> SignedHeaders:
        """
        Sign a prepared request in place.

        The URL path is cleaned first and becomes the signed path. The
        X-Ops-Content-Hash header must already be set. Headers are only
        written once the signature exists, so a failure leaves no partial
        authorization set behind.

        Args:
            request: Prepared request to sign

        Returns:
            SignedHeaders: The header set written to the request

        Raises:
            SigningError: If the request cannot be signed
        """
        if not request.method or not request.url:
            raise SigningError("Request method and URL are required for signing", "INVALID_REQUEST")

        parts = urlsplit(request.url)
        path = parts.path
        if path:
            path = clean_path(path)
            request.url = urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))

        signed = self.sign_headers(
            method=request.method,
            path=path,
            content_hash=request.headers.get(CONTENT_HASH_HEADER, ""),
            request_source=request.headers.get(REQUEST_SOURCE_HEADER, ""),
        )

        for name in [h for h in request.headers if h.lower().startswith(AUTHORIZATION_HEADER_PREFIX.lower())]:
            del request.headers[name]
        # re-inserted below so protocol headers go out in protocol order
        for name in signed.headers:
            request.headers.pop(name, None)

        request.headers.update(signed.headers)
        request.headers.update(signed.authorization_headers())

        self.logger.debug(
            f"Signed {request.method} {path} as {self.auth.client_name} "
            f"with {len(signed.authorization)} authorization headers"
        )
        return signed
