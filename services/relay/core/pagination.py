"""
Page arithmetic shared by the search routes.

``rows`` is the page size; it has to stay the same for every page of one
logical search or the offsets stop lining up.
"""

import math


def page_to_start(page: int, rows: int) -> int:
    """1-based page number to a 0-based result offset."""
    if rows <= 0:
        raise ValueError("rows must be positive")
    return (max(page, 1) - 1) * rows


def total_pages(num_found: int, rows: int) -> int:
    if rows <= 0:
        raise ValueError("rows must be positive")
    return max(1, math.ceil(max(num_found, 0) / rows))


def clamp_page(page: int, num_found: int, rows: int) -> int:
    return min(max(page, 1), total_pages(num_found, rows))
