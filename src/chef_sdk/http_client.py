"""
HTTP client for Chef server communication

Builds signed and unsigned requests against a Chef server base URL, sends
them through a ``requests`` session and decodes the responses.
"""

import base64
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from requests.models import PreparedRequest

from .config import ClientConfig, ProxyFunction, normalize_base_url
from .crypto.rsa_keys import parse_private_key
from .exceptions import TransportError, ValidationError
from .response import ChefResponse, check_response, decode_into
from .signing.body import BodySource, RequestBody, as_request_body
from .signing.signer import ChefSigner
from .signing.types import CONTENT_HASH_HEADER, REQUEST_SOURCE_HEADER, AuthConfig
from .version import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"Chef-Python-SDK/{__version__}"
UNAUTHENTICATED_TIMEOUT = 60.0


def encode_query(url: str) -> str:
    """
    Re-encode the query string of a URL.

    Parameters are sorted by key, values keep their order within a key, and
    the result is form encoded.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    query = urlencode(sorted(pairs, key=lambda pair: pair[0]))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def basic_auth_header(request: PreparedRequest, user: str, password: str) -> None:
    """Add an ``Authorization: Basic`` header built from clear text credentials."""
    credentials = base64.b64encode(f"{user}:{password}".encode('utf-8')).decode('ascii')
    request.headers['Authorization'] = f"Basic {credentials}"


class ChefClient:
    """
    Client for the Chef server API.

    Signs requests with the configured identity and decodes responses. The
    client is immutable after construction and may be shared between
    threads; the underlying ``requests`` session owns connection pooling.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Client configuration
            session: Optional requests session to send through
            clock: Optional UTC time source used for request timestamps
            logger: Optional logger replacing the module logger

        Raises:
            InvalidKeyError: If the private key cannot be parsed
        """
        auth = AuthConfig(
            private_key=parse_private_key(config.key),
            client_name=config.name,
            authentication_version=config.authentication_version,
        )
        self._configure(
            base_url=config.base_url,
            auth=auth,
            verify=False if config.skip_ssl else (config.root_cas or True),
            timeout=config.timeout,
            proxy=config.proxy,
            is_webui_key=config.is_webui_key,
            session=session,
            clock=clock,
            logger=logger,
        )

    @classmethod
    def without_auth(
        cls,
        base_url: str,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ChefClient":
        """
        Create a client for public endpoints only.

        The client has no identity, does not verify TLS certificates and
        times out after 60 seconds. Only unsigned requests can be built.
        """
        client = cls.__new__(cls)
        client._configure(
            base_url=normalize_base_url(base_url),
            auth=None,
            verify=False,
            timeout=UNAUTHENTICATED_TIMEOUT,
            proxy=None,
            is_webui_key=False,
            session=session,
            clock=None,
            logger=logger,
        )
        return client

    def _configure(
        self,
        base_url: str,
        auth: Optional[AuthConfig],
        verify: Any,
        timeout: Optional[float],
        proxy: Optional[ProxyFunction],
        is_webui_key: bool,
        session: Optional[requests.Session],
        clock: Optional[Callable[[], datetime]],
        logger: Optional[logging.Logger],
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.base_url = base_url
        self.auth = auth
        self.verify = verify
        self.timeout = timeout
        self.proxy = proxy
        self.is_webui_key = is_webui_key
        self.signer = ChefSigner(auth, clock=clock, logger=self.logger) if auth else None
        self.session = session or self._create_session()

        self.logger.info(f"Initialized Chef client for server: {base_url}")

    def _create_session(self) -> requests.Session:
        """Create HTTP session without retries; each call is a single attempt."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({'User-Agent': USER_AGENT})
        return session

    def _resolve_url(self, path: str) -> str:
        return encode_query(urljoin(self.base_url, path))

    def _prepare(self, method: str, path: str, body: RequestBody) -> PreparedRequest:
        url = self._resolve_url(path)
        self.logger.debug(f"Encoded url {url}")

        if body.source is None:
            data = None
        elif body.is_stream:
            data = body.source
        else:
            data = body.buffer()

        request = requests.Request(
            method=method.upper(),
            url=url,
            headers=dict(self.session.headers),
            data=data,
        ).prepare()

        if body.source is not None:
            request.headers['Content-Type'] = body.content_type()
        return request

    def new_request(self, method: str, path: str, body: Optional[BodySource] = None) -> PreparedRequest:
        """
        Build a signed request suitable for the Chef server.

        Args:
            method: HTTP method
            path: Path or URL resolved against the base URL
            body: Optional payload: bytes, str or a seekable binary stream

        Returns:
            PreparedRequest: Request carrying the X-Ops authentication headers

        Raises:
            ValidationError: If the client has no identity
            SigningError: If the request cannot be signed
            BodyRewindError: If a stream body cannot be rewound after hashing
        """
        if self.signer is None:
            raise ValidationError("Client has no identity; only unsigned requests are available")

        payload = as_request_body(body)
        request = self._prepare(method, path, payload)

        request.headers[CONTENT_HASH_HEADER] = payload.hash_for_version(self.auth.authentication_version)

        if self.is_webui_key:
            request.headers[REQUEST_SOURCE_HEADER] = "web"

        self.signer.sign_request(request)
        return request

    def no_auth_new_request(self, method: str, path: str, body: Optional[BodySource] = None) -> PreparedRequest:
        """
        Build an unsigned request for public endpoints.

        Only the URL and Content-Type are handled; no hash or authentication
        headers are added.
        """
        return self._prepare(method, path, as_request_body(body))

    def _proxies_for(self, url: str) -> Optional[Dict[str, Optional[str]]]:
        if self.proxy is None:
            return None

        scheme = urlsplit(url).scheme
        proxy_url = self.proxy(url)
        # None entries stop requests from falling back to environment proxies
        return {scheme: proxy_url}

    def do(self, request: PreparedRequest, target: Any = None) -> ChefResponse:
        """
        Send a request and decode the response into ``target``.

        Args:
            request: Prepared request, usually from ``new_request``
            target: Where the body goes: None discards it, a writable object
                receives the raw bytes, ``str`` receives plain text, a dict
                or list is filled in place, any other callable is called
                with the decoded JSON

        Returns:
            ChefResponse: Buffered response with ``value`` set

        Raises:
            TransportError: On network failures
            ServerError: On non-2xx responses; carries the response
            DecodeError: If the body does not match the target
        """
        settings = self.session.merge_environment_settings(
            request.url, self._proxies_for(request.url) or {}, True, self.verify, None
        )

        self.logger.debug(f"Request: {request.method} {request.url}")
        try:
            raw = self.session.send(request, timeout=self.timeout, **settings)
            response = ChefResponse(raw)
        except requests.exceptions.Timeout as e:
            raise TransportError(
                f"Request timeout after {self.timeout} seconds",
                details={"method": request.method, "url": request.url}
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Request failed: {e}",
                details={"method": request.method, "url": request.url}
            ) from e

        self.logger.debug(f"Response: {response.status_code} from {request.method} {request.url}")

        error = check_response(response)
        if error is not None:
            raise error

        decode_into(response, target, self.logger)
        return response

    def request_decoder(self, method: str, path: str, body: Optional[BodySource] = None,
                        target: Any = None) -> Any:
        """Sign, send and decode a request, returning the decoded value."""
        request = self.new_request(method, path, body)
        with self.do(request, target) as response:
            return response.value

    def basic_request_decoder(self, method: str, path: str, body: Optional[BodySource],
                              target: Any, user: str, password: str) -> Any:
        """Like ``request_decoder`` with an additional Basic authorization header."""
        request = self.new_request(method, path, body)
        basic_auth_header(request, user, password)
        with self.do(request, target) as response:
            return response.value

    def no_auth_request_decoder(self, path: str, method: str, body: Optional[BodySource] = None,
                                target: Any = None) -> Any:
        """Send an unsigned request and return the decoded value."""
        request = self.no_auth_new_request(method, path, body)
        with self.do(request, target) as response:
            return response.value

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        self.logger.debug("HTTP session closed")

    def __enter__(self) -> "ChefClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_client(
    name: str,
    key: str,
    base_url: str,
    authentication_version: str = "1.0",
    **options: Any,
) -> ChefClient:
    """
    Create a Chef client from keyword settings.

    Args:
        name: Client or user name
        key: PEM encoded RSA private key
        base_url: Chef server URL
        authentication_version: "1.0" or "1.3"
        **options: Remaining ``ClientConfig`` fields

    Returns:
        ChefClient: Configured client
    """
    config = ClientConfig(
        name=name,
        key=key,
        base_url=base_url,
        authentication_version=authentication_version,
        **options
    )
    return ChefClient(config)
