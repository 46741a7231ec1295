"""
Canonical header construction for Chef Server authentication

Builds the value table for a request and renders the version-specific
canonical string that gets signed.
"""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional

from ..crypto.primitives import DigestAlgorithm, hash_content
from .types import (
    ACCEPT_JSON,
    CHEF_VERSION,
    SERVER_API_VERSION,
    SIGN_MARKERS,
    SIGNED_HEADERS,
    REQUEST_HEADERS,
    normalize_version,
)


def format_timestamp(moment: datetime) -> str:
    """
    Format a moment as an RFC 3339 UTC timestamp with second precision.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H:%M:%SZ')


def clean_path(path: str) -> str:
    """
    Lexically clean a URL path.

    Collapses repeated separators, resolves ``.`` and ``..`` elements and
    drops any trailing slash. An empty path is returned unchanged, a rooted
    path never climbs above ``/``.
    """
    if path == "":
        return path

    rooted = path.startswith("/")
    parts = []
    for element in path.split("/"):
        if element in ("", "."):
            continue
        if element == "..":
            if parts and parts[-1] != "..":
                parts.pop()
            elif not rooted:
                parts.append(element)
            continue
        parts.append(element)

    cleaned = "/".join(parts)
    if rooted:
        return "/" + cleaned
    return cleaned or "."


def build_header_values(
    method: str,
    path: str,
    user_id: str,
    content_hash: str,
    timestamp: str,
    version: str,
    request_source: str = "",
) -> Dict[str, str]:
    """
    Build the table of logical header values for a request.

    Args:
        method: HTTP method
        path: Cleaned request path
        user_id: Client or user name
        content_hash: Value of X-Ops-Content-Hash already set on the request
        timestamp: RFC 3339 timestamp
        version: Authentication protocol version
        request_source: Value of X-Ops-Request-Source, empty when unset

    Returns:
        dict: Logical header name to value
    """
    version = normalize_version(version)
    values = {
        "Method": method,
        "Accept": ACCEPT_JSON,
        "X-Chef-Version": CHEF_VERSION,
        "X-Ops-Server-API-Version": SERVER_API_VERSION,
        "X-Ops-Timestamp": timestamp,
        "X-Ops-Content-Hash": content_hash,
        "X-Ops-UserId": user_id,
        "X-Ops-Request-Source": request_source,
        "X-Ops-Sign": SIGN_MARKERS[version],
    }

    if version == "1.3":
        values["Path"] = path
    else:
        values["Hashed Path"] = hash_content(path, DigestAlgorithm.SHA1)
    return values


def canonical_string(values: Mapping[str, str], version: str) -> str:
    """
    Render the canonical string for a value table.

    Args:
        values: Logical header values from ``build_header_values``
        version: Authentication protocol version

    Returns:
        str: ``Key:Value`` lines in protocol order, no trailing newline
    """
    keys = SIGNED_HEADERS[normalize_version(version)]
    return "\n".join(f"{key}:{values.get(key, '')}" for key in keys)


def request_headers(values: Mapping[str, str], version: str) -> "OrderedDict[str, str]":
    """
    Protocol headers to write on the outgoing request, in protocol order.

    An empty X-Ops-Request-Source is left out.
    """
    headers = OrderedDict()
    for key in REQUEST_HEADERS[normalize_version(version)]:
        value = values.get(key, "")
        if key == "X-Ops-Request-Source" and not value:
            continue
        headers[key] = value
    return headers


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timestamp(clock: Optional[Callable[[], datetime]] = None) -> str:
    """Current timestamp from ``clock``, or from the system clock."""
    return format_timestamp((clock or utc_now)())
