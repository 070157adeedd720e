"""Offset pagination and id batching for marketplace listings."""

import logging
from typing import Callable, Iterable, List, TypeVar

from ..connectors.base import Page, MIRAKL_MAX_RESULTS_PER_PAGE

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fetch_all_pages(
    fetch_page: Callable[[int], Page],
    page_size: int = MIRAKL_MAX_RESULTS_PER_PAGE,
) -> List:
    """Walk a listing from offset 0 until the server-reported total is reached.

    The offset advances by ``page_size`` whatever the page actually held, so
    short pages before the last one are tolerated. Errors raised by
    ``fetch_page`` propagate; there is no per-page retry here.

    Args:
        fetch_page: Called with the offset, returns one page.
        page_size: Offset increment; must match the page size requested.

    Returns:
        All items in server order.
    """
    items: List = []
    offset = 0
    pages = 0
    while True:
        page = fetch_page(offset)
        pages += 1
        items.extend(page.items)
        if page.total_count <= len(items):
            break
        if not page.items:
            # An empty page would otherwise loop forever
            logger.warning(
                f"Listing returned an empty page at offset {offset} with "
                f"{len(items)}/{page.total_count} items fetched, stopping"
            )
            break
        offset += page_size
    logger.debug(f"Fetched {len(items)} items in {pages} pages")
    return items


def partition(ids: Iterable[T], size: int = MIRAKL_MAX_RESULTS_PER_PAGE) -> List[List[T]]:
    """Split ids into de-duplicated chunks of at most ``size`` elements.

    Raises:
        ValueError: If size is not positive.
    """
    if size <= 0:
        raise ValueError(f"Partition size must be positive, got {size}")
    unique = list(dict.fromkeys(ids))
    return [unique[i:i + size] for i in range(0, len(unique), size)]
