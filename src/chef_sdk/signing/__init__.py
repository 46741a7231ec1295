"""
Chef Python SDK - Request Signing Module

Chef Server authentication protocol 1.0 and 1.3: canonical headers, content
hashing and RSA signatures carried in X-Ops-Authorization headers.
"""

from .types import (
    AuthConfig,
    AuthVersion,
    SignedHeaders,
    normalize_version,
    CHEF_VERSION,
    SERVER_API_VERSION,
    REQUEST_HEADERS,
    SIGNED_HEADERS,
    SIGN_MARKERS,
)

from .body import (
    RequestBody,
    as_request_body,
)

from .sniff import (
    detect_content_type,
)

from .canonical import (
    build_header_values,
    canonical_string,
    clean_path,
    format_timestamp,
    request_headers,
)

from .signer import (
    ChefSigner,
)

__all__ = [
    # Types
    'AuthConfig',
    'AuthVersion',
    'SignedHeaders',
    'normalize_version',
    'CHEF_VERSION',
    'SERVER_API_VERSION',
    'REQUEST_HEADERS',
    'SIGNED_HEADERS',
    'SIGN_MARKERS',
    # Body handling
    'RequestBody',
    'as_request_body',
    'detect_content_type',
    # Canonical headers
    'build_header_values',
    'canonical_string',
    'clean_path',
    'format_timestamp',
    'request_headers',
    # Signer
    'ChefSigner',
]
