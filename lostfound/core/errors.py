"""
Exception types raised by the claim matching core.

Everything derives from LostFoundError so callers at the HTTP boundary can
translate the whole family in one place.
"""

from typing import Optional


class LostFoundError(Exception):
    """Base exception for all lostfound errors."""
    pass


class InvalidInput(LostFoundError):
    """
    Caller supplied an argument the core cannot act on.

    Raised when:
    - Text to embed is empty or whitespace only
    - A required identifier or description is missing
    """
    pass


class InvalidPagination(InvalidInput):
    """Page number or page size is not a positive integer within bounds."""

    def __init__(self, message: str, page=None, page_size=None):
        super().__init__(message)
        self.page = page
        self.page_size = page_size


class DimensionMismatch(LostFoundError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector length mismatch: {left} != {right}")
        self.left = left
        self.right = right


class DegenerateVector(LostFoundError):
    """A vector with zero (or non-finite) norm cannot be normalized."""
    pass


class BackendUnavailable(LostFoundError):
    """
    The embedding backend could not produce a vector.

    Raised when:
    - Backend is unreachable or the request times out
    - Backend returns an error response
    - Response does not contain a usable embedding
    """

    def __init__(self, message: str, provider: Optional[str] = None,
                 model: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code


class DependencyFailure(LostFoundError):
    """The persistent store failed; the driver error is chained as __cause__."""
    pass


class NotFound(LostFoundError):
    """Referenced item or claim does not exist."""
    pass


class DuplicateAction(LostFoundError):
    """Item is already past the lifecycle stage the action requires."""
    pass


class NotAuthorized(LostFoundError):
    """Acting user is not allowed to perform the action on this item."""
    pass


class StaleWrite(LostFoundError):
    """
    Scores were computed against state that changed before they were written.

    Raised when:
    - The item description changed between scoring a claim and inserting it
    - Claims were added to an item while its description was being re-scored
    """
    pass
