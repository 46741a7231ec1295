"""
Chef Python SDK
Signed requests for the Chef Server API (authentication protocol 1.0 and 1.3)
"""

from .version import __version__
from .exceptions import (
    ChefSDKError,
    ValidationError,
    InvalidKeyError,
    SigningError,
    BodyRewindError,
    TransportError,
    DecodeError,
    ServerError,
    chef_error,
)
from .crypto import (
    DigestAlgorithm,
    parse_private_key,
    sign,
    hash_content,
    chunk_base64,
)
from .signing import (
    AuthConfig,
    AuthVersion,
    ChefSigner,
    RequestBody,
    SignedHeaders,
    normalize_version,
    detect_content_type,
)
from .config import ClientConfig
from .response import (
    ChefResponse,
    check_response,
    extract_error_msg,
)
from .http_client import (
    ChefClient,
    create_client,
    basic_auth_header,
)
from .services import (
    BaseService,
    SignedTransport,
    json_body,
)

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'ChefSDKError',
    'ValidationError',
    'InvalidKeyError',
    'SigningError',
    'BodyRewindError',
    'TransportError',
    'DecodeError',
    'ServerError',
    'chef_error',
    # Crypto
    'DigestAlgorithm',
    'parse_private_key',
    'sign',
    'hash_content',
    'chunk_base64',
    # Signing
    'AuthConfig',
    'AuthVersion',
    'ChefSigner',
    'RequestBody',
    'SignedHeaders',
    'normalize_version',
    'detect_content_type',
    # Client
    'ClientConfig',
    'ChefClient',
    'create_client',
    'basic_auth_header',
    'ChefResponse',
    'check_response',
    'extract_error_msg',
    # Services
    'BaseService',
    'SignedTransport',
    'json_body',
]
