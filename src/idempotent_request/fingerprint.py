"""Request fingerprinting for payload-mismatch detection.

A fingerprint is a SHA-256 digest of the canonical representation of a
request. Two requests carrying the same Idempotency-Key but a different
fingerprint are treated as key reuse across different payloads.
"""

import hashlib
import json
from urllib.parse import parse_qs, urlencode

from idempotent_request.utils.headers import canonicalize_headers

DEFAULT_FINGERPRINT_HEADERS = ["content-type"]


def compute_fingerprint(
    method: str,
    path: str,
    query_string: str,
    headers: dict[str, str],
    body: bytes,
    included_headers: list[str] | None = None,
) -> str:
    """Compute a deterministic fingerprint for a request.

    The fingerprint is computed from canonical representations of the request components:
    1. Canonical method: uppercase
    2. Canonical path: strip trailing / (except root)
    3. Sorted query params: parse, sort keys, re-encode
    4. Canonical headers: lowercase keys, filter to included set, sort, JSON
    5. Body SHA-256 digest
    6. Final: SHA-256 of concatenated components separated by newline

    Args:
        method: HTTP method (e.g., "POST", "PUT")
        path: URL path component
        query_string: Raw query string (without leading '?')
        headers: Request headers as key-value pairs
        body: Request body as bytes
        included_headers: List of header names to include in fingerprint.
                         Defaults to ["content-type"]

    Returns:
        Hexadecimal SHA-256 hash string (64 characters)

    Examples:
        >>> compute_fingerprint(
        ...     method="POST",
        ...     path="/api/hello",
        ...     query_string="",
        ...     headers={"Content-Type": "application/json"},
        ...     body=b'{"name": "Edison"}',
        ... )
        '5f0c...'  # SHA-256 hash
    """
    if included_headers is None:
        included_headers = DEFAULT_FINGERPRINT_HEADERS

    canonical_method = method.upper()

    canonical_path = path or "/"
    if canonical_path != "/" and canonical_path.endswith("/"):
        canonical_path = canonical_path.rstrip("/") or "/"

    canonical_query = _canonicalize_query_string(query_string)

    canonical_headers = json.dumps(
        canonicalize_headers(headers, included_headers),
        sort_keys=True,
        separators=(",", ":"),
    )

    body_digest = hashlib.sha256(body).hexdigest()

    fingerprint_input = "\n".join(
        [
            canonical_method,
            canonical_path,
            canonical_query,
            canonical_headers,
            body_digest,
        ]
    )

    return hashlib.sha256(fingerprint_input.encode("utf-8")).hexdigest()


def _canonicalize_query_string(query_string: str) -> str:
    """Canonicalize query string by parsing, sorting, and re-encoding.

    Args:
        query_string: Raw query string without leading '?'

    Returns:
        Canonicalized query string with sorted parameters
    """
    if not query_string or not query_string.strip():
        return ""

    parsed = parse_qs(query_string, keep_blank_values=True)

    sorted_params: list[tuple[str, str]] = []
    for key in sorted(parsed.keys()):
        for value in sorted(parsed[key]):
            sorted_params.append((key, value))

    return urlencode(sorted_params, doseq=False)
