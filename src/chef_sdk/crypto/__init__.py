"""
Cryptographic operations for the Chef Python SDK
"""

from .primitives import (
    DigestAlgorithm,
    SIGNATURE_LINE_WIDTH,
    hash_content,
    sign,
    chunk_base64,
    split_fixed_width,
)

from .rsa_keys import (
    parse_private_key,
)

__all__ = [
    'DigestAlgorithm',
    'SIGNATURE_LINE_WIDTH',
    'hash_content',
    'sign',
    'chunk_base64',
    'split_fixed_width',
    'parse_private_key',
]
