"""
Result Transformer.

Normalizes one raw search hit: unwraps the package payload, rewrites remote
storage URLs into local paths and highlights the search term in the match
context.
"""

import logging
import re
from typing import Any, Dict, Mapping, Optional

from ..models.search import NormalizedDocument

logger = logging.getLogger("relay.transformer")

PAYLOAD_KEY = "package_search_response"
URL_FIELDS = ("package_path_url", "match_path_url")
MATCH_CONTEXT_FIELD = "match_context"
DEFAULT_HIGHLIGHT_CLASS = "bg-yellow-100 text-black font-semibold not-italic"


def rewrite_url(url: Optional[str], remote_base_url: str, local_prefix: str = "/") -> Optional[str]:
    """
    Replace the remote base URL prefix of ``url`` with ``local_prefix``.

    URLs that do not start with the remote base (including already-local
    paths) are returned unchanged.
    """
    if url is None:
        return None
    base = remote_base_url.rstrip("/")
    if not base or not url.startswith(base):
        return url

    rest = url[len(base):]
    if rest and rest[0] not in "/?#":
        # Prefix match inside a longer host or segment, e.g. ".../v1" vs ".../v10".
        return url
    return local_prefix.rstrip("/") + "/" + rest.lstrip("/")


def highlight(text: str, term: str, css_class: str = DEFAULT_HIGHLIGHT_CLASS) -> str:
    """Wrap every case-insensitive literal occurrence of ``term`` in an <em> marker."""
    if not term or not text:
        return text
    pattern = re.compile(re.escape(term), re.IGNORECASE)
    open_tag = f'<em class="{css_class}">' if css_class else "<em>"
    return pattern.sub(lambda m: f"{open_tag}{m.group(0)}</em>", text)


def _unwrap(raw: Mapping[str, Any]) -> Dict[str, Any]:
    nested = raw.get(PAYLOAD_KEY)
    if isinstance(nested, Mapping):
        return dict(nested)
    return dict(raw)


def _match_context(payload: Mapping[str, Any], raw: Mapping[str, Any]) -> str:
    # Payload first, then the document root.
    for source in (payload, raw):
        value = source.get(MATCH_CONTEXT_FIELD)
        if value not in (None, ""):
            return value if isinstance(value, str) else str(value)
    return ""


def normalize(
    raw: Mapping[str, Any],
    term: Optional[str],
    local_base_url: str = "/",
    remote_base_url: str = "",
    css_class: str = DEFAULT_HIGHLIGHT_CLASS,
) -> NormalizedDocument:
    payload = _unwrap(raw)

    for field in URL_FIELDS:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            logger.debug("Dropping non-string %s: %r", field, value)
            value = None
        payload[field] = rewrite_url(value, remote_base_url, local_base_url)

    context = _match_context(payload, raw)
    if term and context:
        payload[MATCH_CONTEXT_FIELD] = highlight(context, term, css_class)
    else:
        payload[MATCH_CONTEXT_FIELD] = context

    return NormalizedDocument.model_validate(payload)
