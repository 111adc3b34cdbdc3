"""
Core logic package.

Provides the auth guard, cookie renewal, result transformation and JWT helpers.
"""

from .auth_guard import ensure_valid
from .cookies import extract_renewed_cookie
from .pagination import page_to_start, total_pages
from .security import create_access_token, verify_token
from .transformer import normalize, rewrite_url

__all__ = [
    "ensure_valid",
    "extract_renewed_cookie",
    "page_to_start",
    "total_pages",
    "create_access_token",
    "verify_token",
    "normalize",
    "rewrite_url",
]
