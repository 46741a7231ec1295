"""
Content type detection for request payloads

A small MIME sniffer in the spirit of the WHATWG sniffing algorithm: markup
and magic-number signatures are checked against the first 512 bytes, and
anything unrecognised is classified as text or binary.
"""

from typing import Callable, List, Tuple

SNIFF_LENGTH = 512

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"

_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)

_EXACT_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\x1aE\xdf\xa3", "video/webm"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"\x00asm", "application/wasm"),
]

# (prefix, offset of second marker, second marker, content type)
_RIFF_SIGNATURES = [
    (b"RIFF", 8, b"WEBPVP", "image/webp"),
    (b"RIFF", 8, b"WAVE", "audio/wave"),
    (b"RIFF", 8, b"AVI ", "video/avi"),
    (b"FORM", 8, b"AIFF", "audio/aiff"),
]

_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _match_html(data: bytes) -> str:
    data = _skip_whitespace(data)
    upper = data.upper()
    for tag in _HTML_TAGS:
        if upper.startswith(tag) and len(data) > len(tag) and data[len(tag)] in _TAG_TERMINATORS:
            return "text/html; charset=utf-8"
    return ""


def _match_xml(data: bytes) -> str:
    if _skip_whitespace(data).startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return ""


def _match_exact(data: bytes) -> str:
    for signature, content_type in _EXACT_SIGNATURES:
        if data.startswith(signature):
            return content_type
    return ""


def _match_riff(data: bytes) -> str:
    for prefix, offset, marker, content_type in _RIFF_SIGNATURES:
        if data.startswith(prefix) and data[offset:offset + len(marker)] == marker:
            return content_type
    return ""


def _match_text(data: bytes) -> str:
    if any(byte in _BINARY_BYTES for byte in data):
        return ""
    return "text/plain; charset=utf-8"


_MATCHERS: List[Callable[[bytes], str]] = [
    _match_html,
    _match_xml,
    _match_exact,
    _match_riff,
    _match_text,
]


def detect_content_type(data: bytes) -> str:
    """
    Detect the content type of a payload from its leading bytes.

    Args:
        data: Payload bytes; only the first 512 are inspected

    Returns:
        str: A MIME type, ``application/octet-stream`` when nothing matches
    """
    head = bytes(data[:SNIFF_LENGTH])
    for matcher in _MATCHERS:
        content_type = matcher(head)
        if content_type:
            return content_type
    return "application/octet-stream"
