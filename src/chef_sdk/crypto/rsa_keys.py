"""
RSA private key parsing for Chef clients

Chef servers issue PKCS#1 keys (``RSA PRIVATE KEY``); keys converted with
newer tooling are often PKCS#8 (``PRIVATE KEY``). Both are accepted as long
as the key is RSA.
"""

import logging
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..exceptions import InvalidKeyError

logger = logging.getLogger(__name__)

PEM_BEGIN_MARKER = b"-----BEGIN "
PEM_END_MARKER = b"-----END "

SUPPORTED_PEM_TYPES = (b"RSA PRIVATE KEY", b"PRIVATE KEY")


def _pem_block_type(data: bytes) -> bytes:
    start = data.find(PEM_BEGIN_MARKER)
    if start < 0 or data.find(PEM_END_MARKER, start) < 0:
        raise InvalidKeyError("private key block size invalid")

    label_start = start + len(PEM_BEGIN_MARKER)
    label_end = data.find(b"-----", label_start)
    if label_end < 0:
        raise InvalidKeyError("private key block size invalid")
    return data[label_start:label_end].strip()


def parse_private_key(pem: Union[str, bytes]) -> RSAPrivateKey:
    """
    Parse a PEM encoded RSA private key.

    Args:
        pem: PEM text holding a PKCS#1 or PKCS#8 unencrypted RSA key

    Returns:
        RSAPrivateKey: Parsed private key

    Raises:
        InvalidKeyError: If no PEM block is found, the block is malformed,
            neither encoding parses, or the key is not RSA
    """
    if isinstance(pem, str):
        pem = pem.encode('utf-8')
    if not isinstance(pem, bytes):
        raise InvalidKeyError("Private key must be str or bytes", "INVALID_KEY_TYPE")

    block_type = _pem_block_type(pem)
    if block_type not in SUPPORTED_PEM_TYPES:
        raise InvalidKeyError(
            f"unsupported PEM block type: {block_type.decode('ascii', 'replace')}",
            details={"block_type": block_type.decode('ascii', 'replace')}
        )

    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(
            "failed to parse private key",
            details={"original_error": str(e)}
        ) from e

    if not isinstance(key, RSAPrivateKey):
        raise InvalidKeyError(
            "found unknown private key type in PKCS#8 wrapping",
            details={"key_type": type(key).__name__}
        )

    logger.debug(f"Parsed {key.key_size}-bit RSA private key")
    return key
