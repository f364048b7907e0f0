from typing import AsyncIterator, Awaitable, Callable, Optional

from storemetrics.services.platform_connector import FeedPage

PageFetcher = Callable[[Optional[str]], Awaitable[FeedPage]]


async def iterate_pages(fetch_page: PageFetcher, page_size: int) -> AsyncIterator[FeedPage]:
    """
    Yield feed pages until the listing is exhausted.

    `fetch_page(cursor)` is called with None first and then with each returned
    cursor. Iteration ends after an empty page, a page shorter than
    `page_size`, or a page without a next cursor.
    """
    cursor: Optional[str] = None
    while True:
        page = await fetch_page(cursor)
        if not page.items:
            return
        yield page
        if len(page.items) < page_size or not page.next_cursor:
            return
        cursor = page.next_cursor
