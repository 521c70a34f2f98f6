"""Case-insensitive helpers for header dictionaries.

Requests and responses carry headers as plain ``dict[str, str]``. Names are
compared case-insensitively, and stored responses keep them lower-cased.
"""


def get_header_value(
    headers: dict[str, str],
    header_name: str,
    default: str | None = None,
) -> str | None:
    """Look up a header regardless of the case of its name.

    Example:
        >>> get_header_value({"Idempotency-Key": "abc"}, "idempotency-key")
        'abc'
    """
    wanted = header_name.lower()
    return next((value for name, value in headers.items() if name.lower() == wanted), default)


def set_header(headers: dict[str, str], header_name: str, value: str) -> dict[str, str]:
    """Return a copy of ``headers`` with ``header_name`` set to ``value``.

    Existing entries spelled in another case are dropped.

    Example:
        >>> set_header({"x-idempotency-status": "success"}, "X-Idempotency-Status", "error")
        {'X-Idempotency-Status': 'error'}
    """
    wanted = header_name.lower()
    result = {name: existing for name, existing in headers.items() if name.lower() != wanted}
    result[header_name] = value
    return result


def lowercase_headers(headers: dict[str, str]) -> dict[str, str]:
    return {name.lower(): value for name, value in headers.items()}


def canonicalize_headers(
    headers: dict[str, str],
    included_headers: list[str] | None = None,
) -> dict[str, str]:
    """Normalize headers for fingerprinting.

    Names are lower-cased and values stripped. When ``included_headers`` is
    given, only those names (case-insensitive) are kept.

    Example:
        >>> canonicalize_headers({"Content-Type": " application/json", "User-Agent": "curl"}, ["content-type"])
        {'content-type': 'application/json'}
    """
    canonical = {name.lower(): value.strip() for name, value in lowercase_headers(headers).items()}
    if included_headers is None:
        return canonical
    keep = {name.lower() for name in included_headers}
    return {name: value for name, value in canonical.items() if name in keep}


def expand_headers(
    headers: dict[str, str],
    raw_headers: list[tuple[str, str]] | None = None,
) -> list[tuple[str, str]]:
    """Return ``headers`` as a list, restoring repeated values from ``raw_headers``.

    A name repeated in ``raw_headers`` (``Set-Cookie`` typically) is emitted
    with all its raw values as long as ``headers`` still holds the last one.
    Values changed or added in ``headers`` win, and names no longer in
    ``headers`` are dropped.

    Example:
        >>> expand_headers({"set-cookie": "b=2"}, [("set-cookie", "a=1"), ("set-cookie", "b=2")])
        [('set-cookie', 'a=1'), ('set-cookie', 'b=2')]
    """
    if not raw_headers:
        return list(headers.items())

    raw_values: dict[str, list[str]] = {}
    for name, value in raw_headers:
        raw_values.setdefault(name.lower(), []).append(value)

    items: list[tuple[str, str]] = []
    for name, value in headers.items():
        values = raw_values.get(name.lower(), [])
        if len(values) > 1 and values[-1] == value:
            items.extend((name, raw_value) for raw_value in values)
        else:
            items.append((name, value))
    return items
