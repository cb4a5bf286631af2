"""Page arithmetic for search results."""

from dataclasses import dataclass


def page_offset(page: int, limit: int) -> int:
    """Index of the first hit on ``page`` (1-based)."""
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    """``ceil(total / limit)``, or 0 when there is nothing to page."""
    if total <= 0:
        return 0
    return (total + limit - 1) // limit


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    total: int
    pages: int
    offset: int

    @property
    def is_beyond_last(self) -> bool:
        """True for a page past the last one; it holds no items."""
        return self.page > self.pages


def paginate(total: int, page: int, limit: int) -> PageWindow:
    """Derive page metadata for ``total`` hits viewed ``limit`` at a time.

    A page past the end is not an error: its window is simply empty.
    """
    if page < 1 or limit < 1:
        raise ValueError(f"page and limit must be positive (page={page}, limit={limit})")
    return PageWindow(
        page=page,
        limit=limit,
        total=max(total, 0),
        pages=total_pages(total, limit),
        offset=page_offset(page, limit),
    )
