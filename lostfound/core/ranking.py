"""
Similarity-ordered claim retrieval and recency-ordered item retrieval.

Both listings validate pagination, ask the store for one ordered page and
shape the rows into views. Scores are read as persisted; nothing here calls
the embedding backend.
"""

from typing import Optional, Tuple, Union

from . import config as config_module
from .dao import LostFoundDAO
from .errors import InvalidInput, InvalidPagination
from .schema import ClaimFilter, ClaimSort, ItemFilter, ItemSort
from .views import ClaimPage, ClaimView, ItemPage, ItemView


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def page_bounds(page: int, page_size: int, max_page_size: Optional[int] = None) -> Tuple[int, int]:
    """
    Translate a 1-indexed page into (skip, take).

    Raises:
        InvalidPagination: If page or page_size is not a positive integer, or
            page_size exceeds the configured maximum
    """
    if not _is_positive_int(page):
        raise InvalidPagination(f"page must be a positive integer, got {page!r}", page=page, page_size=page_size)
    if not _is_positive_int(page_size):
        raise InvalidPagination(f"page_size must be a positive integer, got {page_size!r}",
                                page=page, page_size=page_size)

    limit = max_page_size if max_page_size is not None else config_module.MAX_PAGE_SIZE
    if page_size > limit:
        raise InvalidPagination(f"page_size must be at most {limit}, got {page_size}",
                                page=page, page_size=page_size)

    return (page - 1) * page_size, page_size


def _coerce_sort(sort, enum_type):
    try:
        return enum_type(sort)
    except ValueError:
        valid = [s.value for s in enum_type]
        raise InvalidInput(f"Unknown sort {sort!r}; expected one of {valid}")


def list_claims(dao: LostFoundDAO, claim_filter: Optional[ClaimFilter] = None,
                sort: Union[ClaimSort, str] = ClaimSort.SIMILARITY_DESCENDING,
                page: int = 1, page_size: Optional[int] = None) -> ClaimPage:
    """
    One page of claims in the requested order.

    Args:
        dao: Store handle
        claim_filter: Optional item / claimant filters, AND-combined
        sort: Ordering key; ties break on claim id ascending
        page: 1-indexed page number
        page_size: Claims per page (defaults to DEFAULT_PAGE_SIZE)

    Returns:
        ClaimPage with claim projections

    Raises:
        InvalidPagination: For non-positive page or page_size
        DependencyFailure: If the store fails
    """
    if page_size is None:
        page_size = config_module.DEFAULT_PAGE_SIZE
    skip, take = page_bounds(page, page_size)
    sort = _coerce_sort(sort, ClaimSort)

    records = dao.fetch_claims(claim_filter or ClaimFilter(), sort, skip, take)
    return ClaimPage(page=page, page_size=page_size,
                     claims=[ClaimView.from_record(r) for r in records])


def list_items(dao: LostFoundDAO, item_filter: Optional[ItemFilter] = None,
               sort: Union[ItemSort, str] = ItemSort.OLDEST_FIRST,
               page: int = 1, page_size: Optional[int] = None) -> ItemPage:
    """One page of lost items by recency, each with its derived claimed_on."""
    if page_size is None:
        page_size = config_module.DEFAULT_PAGE_SIZE
    skip, take = page_bounds(page, page_size)
    sort = _coerce_sort(sort, ItemSort)

    records = dao.fetch_items(item_filter or ItemFilter(), sort, skip, take)
    return ItemPage(page=page, page_size=page_size,
                    items=[ItemView.from_record(r) for r in records])
