"""
Digest, signature and encoding primitives for Chef Server authentication

Protocol 1.0 uses SHA-1 throughout, protocol 1.3 uses SHA-256. Signatures
are PKCS#1 v1.5 and are transported as base64 split into 60 character lines.
"""

import base64
import hashlib
from enum import Enum
from typing import List, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..exceptions import SigningError

SIGNATURE_LINE_WIDTH = 60


class DigestAlgorithm(str, Enum):
    """Digest algorithms used by the authentication protocol"""
    SHA1 = "sha1"
    SHA256 = "sha256"

    @classmethod
    def for_version(cls, version: str) -> "DigestAlgorithm":
        """Digest width matching an authentication protocol version"""
        return cls.SHA256 if version == "1.3" else cls.SHA1


def _hashlib_digest(algorithm: DigestAlgorithm, data: bytes) -> bytes:
    if algorithm == DigestAlgorithm.SHA256:
        return hashlib.sha256(data).digest()
    if algorithm == DigestAlgorithm.SHA1:
        return hashlib.sha1(data).digest()
    raise ValueError(f"Unsupported digest algorithm: {algorithm}")


def _cryptography_hash(algorithm: DigestAlgorithm) -> hashes.HashAlgorithm:
    if algorithm == DigestAlgorithm.SHA256:
        return hashes.SHA256()
    if algorithm == DigestAlgorithm.SHA1:
        return hashes.SHA1()
    raise ValueError(f"Unsupported digest algorithm: {algorithm}")


def hash_content(data: Union[str, bytes], algorithm: DigestAlgorithm = DigestAlgorithm.SHA1) -> str:
    """
    Base64 encoded digest of exact content bytes.

    Args:
        data: Content to hash, strings are UTF-8 encoded
        algorithm: SHA-1 or SHA-256

    Returns:
        str: Base64 digest; empty input hashes like ``b""``
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return base64.b64encode(_hashlib_digest(DigestAlgorithm(algorithm), data)).decode('ascii')


def sign(key: RSAPrivateKey, algorithm: DigestAlgorithm, content: Union[str, bytes]) -> bytes:
    """
    Sign content with PKCS#1 v1.5 over its SHA-1 or SHA-256 digest.

    Args:
        key: RSA private key
        algorithm: Digest algorithm, SHA-1 for protocol 1.0 and SHA-256 for 1.3
        content: Canonical string to sign

    Returns:
        bytes: Raw signature

    Raises:
        SigningError: If the key or digest cannot produce a signature
    """
    if isinstance(content, str):
        content = content.encode('utf-8')

    try:
        return key.sign(content, padding.PKCS1v15(), _cryptography_hash(DigestAlgorithm(algorithm)))
    except (ValueError, TypeError, AttributeError, UnsupportedAlgorithm) as e:
        raise SigningError(
            f"Message signing failed: {e}",
            details={"algorithm": str(algorithm), "original_error": str(e)}
        ) from e


def split_fixed_width(text: str, width: int = SIGNATURE_LINE_WIDTH) -> List[str]:
    """Split text into lines of ``width`` characters, the last one may be shorter."""
    if width <= 0:
        raise ValueError("width must be positive")
    return [text[i:i + width] for i in range(0, len(text), width)]


def chunk_base64(data: bytes, width: int = SIGNATURE_LINE_WIDTH) -> List[str]:
    """
    Base64 encode bytes and split the result into fixed-width lines.

    Args:
        data: Bytes to encode
        width: Line width, 60 for the X-Ops-Authorization headers

    Returns:
        list: Lines whose concatenation is the full base64 string
    """
    return split_fixed_width(base64.b64encode(data).decode('ascii'), width)
