"""
Type definitions for Chef Server request signing

The header orders below are part of the wire protocol: the server rebuilds
the canonical string in exactly this order to verify the signature.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

# Chef client version the SDK presents itself as
CHEF_VERSION = "14.0.0"
SERVER_API_VERSION = "1"
ACCEPT_JSON = "application/json"

AUTHORIZATION_HEADER_PREFIX = "X-Ops-Authorization-"
CONTENT_HASH_HEADER = "X-Ops-Content-Hash"
REQUEST_SOURCE_HEADER = "X-Ops-Request-Source"


class AuthVersion(str, Enum):
    """Supported authentication protocol versions"""
    V1_0 = "1.0"
    V1_3 = "1.3"


def normalize_version(version: object) -> str:
    """Return ``"1.3"`` for protocol 1.3 and ``"1.0"`` for any other value."""
    if version == AuthVersion.V1_3.value:
        return AuthVersion.V1_3.value
    return AuthVersion.V1_0.value


SIGN_MARKERS: Dict[str, str] = {
    AuthVersion.V1_0.value: "algorithm=sha1;version=1.0",
    AuthVersion.V1_3.value: "version=1.3",
}

# Headers written to the outgoing request, in order
REQUEST_HEADERS: Dict[str, Tuple[str, ...]] = {
    AuthVersion.V1_0.value: (
        "Method", "Accept", "X-Chef-Version", "X-Ops-Server-API-Version",
        "X-Ops-Timestamp", "X-Ops-UserId", "X-Ops-Sign", "X-Ops-Request-Source",
    ),
    AuthVersion.V1_3.value: (
        "Method", "Path", "Accept", "X-Chef-Version", "X-Ops-Server-API-Version",
        "X-Ops-Timestamp", "X-Ops-UserId", "X-Ops-Sign", "X-Ops-Request-Source",
    ),
}

# Headers covered by the signature, in canonical string order
SIGNED_HEADERS: Dict[str, Tuple[str, ...]] = {
    AuthVersion.V1_0.value: (
        "Method", "Hashed Path", "X-Ops-Content-Hash", "X-Ops-Timestamp", "X-Ops-UserId",
    ),
    AuthVersion.V1_3.value: (
        "Method", "Path", "X-Ops-Content-Hash", "X-Ops-Sign", "X-Ops-Timestamp",
        "X-Ops-UserId", "X-Ops-Server-API-Version",
    ),
}


@dataclass(frozen=True)
class AuthConfig:
    """
    Client identity used to sign requests

    Attributes:
        private_key: RSA private key of the client or user
        client_name: Name the key is registered under on the Chef server
        authentication_version: Protocol version, normalized to "1.0" or "1.3"
    """
    private_key: RSAPrivateKey
    client_name: str
    authentication_version: str = AuthVersion.V1_0.value

    def __post_init__(self):
        object.__setattr__(self, 'authentication_version', normalize_version(self.authentication_version))

    def __repr__(self) -> str:
        return (f"AuthConfig(client_name={self.client_name!r}, "
                f"authentication_version={self.authentication_version!r})")


@dataclass
class SignedHeaders:
    """
    Result of signing a request

    Attributes:
        version: Protocol version used
        canonical_string: Exact string that was signed
        headers: Protocol headers written to the request, in order
        authorization: Base64 signature lines, one per X-Ops-Authorization header
    """
    version: str
    canonical_string: str
    headers: "OrderedDict[str, str]" = field(default_factory=OrderedDict)
    authorization: List[str] = field(default_factory=list)

    def authorization_headers(self) -> "OrderedDict[str, str]":
        """X-Ops-Authorization-N headers numbered from 1"""
        return OrderedDict(
            (f"{AUTHORIZATION_HEADER_PREFIX}{index}", line)
            for index, line in enumerate(self.authorization, start=1)
        )
