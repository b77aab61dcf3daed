"""Pagination window.

Computes the sequence of page buttons to render: the first and last
page, a width-3 window around the current page and ``...`` markers
where pages are skipped.
"""

from types import EllipsisType

PageToken = int | EllipsisType

MAX_UNCOLLAPSED_PAGES = 5
WINDOW_RADIUS = 1


def compute_pagination_window(total_pages: int, current_page: int) -> list[PageToken]:
    """Compute the pagination tokens for a result set.

    Args:
        total_pages: Number of pages (>= 0).
        current_page: Zero-based current page (>= 0). Values past the
            end are clamped to the last page.

    Returns:
        Page indexes and ``...`` markers in display order. Empty when
        no pagination control is needed.

    Raises:
        ValueError: If either argument is negative.

    Example:
        >>> compute_pagination_window(12, 5)
        [0, Ellipsis, 4, 5, 6, Ellipsis, 11]
    """
    if total_pages < 0 or current_page < 0:
        raise ValueError(
            f"total_pages and current_page must be non-negative, got {total_pages}, {current_page}"
        )
    if total_pages <= 1:
        return []
    if total_pages <= MAX_UNCOLLAPSED_PAGES:
        return list(range(total_pages))

    last = total_pages - 1
    current = min(current_page, last)
    # window of 3 kept inside [1, last - 1]
    start = min(max(current - WINDOW_RADIUS, 1), last - 1 - 2 * WINDOW_RADIUS)
    pages = [0, *range(start, start + 2 * WINDOW_RADIUS + 1), last]

    tokens: list[PageToken] = []
    previous: int | None = None
    for page in pages:
        if previous is not None:
            gap = page - previous
            if gap == 2:
                tokens.append(previous + 1)
            elif gap > 2:
                tokens.append(...)
        tokens.append(page)
        previous = page
    return tokens
