"""
Credential masking for diagnostic output.

Header values that carry credentials are replaced before anything is logged.
"""

from typing import Dict, Iterable, List, Mapping, Tuple, Union

MASK = "[MASKED]"

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "x-csrf-token",
        "csrf-token",
        "x-xsrf-token",
        "php-auth-pw",
        "basic-auth-password",
    }
)

HeaderSource = Union[Mapping[str, object], Iterable[Tuple[str, str]]]


def is_sensitive(name: str) -> bool:
    return name.strip().lower() in SENSITIVE_HEADERS


def mask_headers(headers: HeaderSource) -> Dict[str, List[str]]:
    """
    Return a copy of ``headers`` with credential values masked.

    Accepts a mapping (values may be strings or lists of strings) or an
    iterable of ``(name, value)`` pairs such as ``httpx.Headers.multi_items()``.
    Keys are lower-cased and repeated headers keep their order.
    """
    if isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = headers

    masked: Dict[str, List[str]] = {}
    for name, value in items:
        key = str(name).lower()
        values = value if isinstance(value, (list, tuple)) else [value]
        bucket = masked.setdefault(key, [])
        if is_sensitive(key):
            bucket.extend(MASK for _ in values)
        else:
            bucket.extend(str(v) for v in values)
    return masked
