"""Page arithmetic for newest-first rating listings."""

import math
from dataclasses import dataclass

from src.errors import ValidationError


@dataclass(frozen=True)
class PageWindow:
    """Resolved page request: clamped size plus LIMIT/OFFSET."""

    page: int
    page_size: int

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def resolve_window(page: int, page_size: int, max_page_size: int) -> PageWindow:
    """Validate a 1-based page number and clamp the page size.

    Raises:
        ValidationError: If ``page`` is below 1.
    """
    if page < 1:
        raise ValidationError(f"Invalid page {page}. Pages are 1-based.")
    size = max(1, min(page_size, max_page_size))
    return PageWindow(page=page, page_size=size)


def page_flags(window: PageWindow, total_count: int) -> dict[str, int | bool]:
    """Compute total_pages / has_next / has_previous for a window.

    A page past the end is not an error: it simply has no next page.
    """
    total_pages = math.ceil(total_count / window.page_size) if total_count else 0
    return {
        "total_pages": total_pages,
        "has_next": window.page < total_pages,
        "has_previous": window.page > 1,
    }
