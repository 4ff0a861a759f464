"""
Records and enums exchanged between the store and the retrieval layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence


class ItemStatus(str, Enum):
    LOST = "LOST"
    FOUND = "FOUND"
    STORED = "STORED"
    CLAIMED = "CLAIMED"
    RETURNED = "RETURNED"

    @property
    def rank(self) -> int:
        """Position in the item lifecycle; later stages rank higher."""
        return STATUS_RANK[self]


STATUS_RANK = {
    ItemStatus.LOST: 0,
    ItemStatus.FOUND: 1,
    ItemStatus.STORED: 2,
    ItemStatus.CLAIMED: 3,
    ItemStatus.RETURNED: 4,
}


class ClaimSort(str, Enum):
    OLDEST_FIRST = "OLDEST_FIRST"
    NEWEST_FIRST = "NEWEST_FIRST"
    SIMILARITY_ASCENDING = "SIMILARITY_ASCENDING"
    SIMILARITY_DESCENDING = "SIMILARITY_DESCENDING"


class ItemSort(str, Enum):
    OLDEST_FIRST = "OLDEST_FIRST"
    NEWEST_FIRST = "NEWEST_FIRST"


@dataclass
class UserRef:
    id: str
    name: str


@dataclass
class ClaimRecord:
    id: str
    item_id: str
    claimer: UserRef
    description: str
    success: bool
    similarity: float
    created_at: datetime
    embed_model: Optional[str] = None


@dataclass
class LostItemRecord:
    id: str
    name: str
    description: str
    status: ItemStatus
    created_at: datetime
    lost_on: Optional[datetime] = None
    found_on: Optional[datetime] = None
    stored_on: Optional[datetime] = None
    returned_on: Optional[datetime] = None
    lost_by: Optional[UserRef] = None
    found_by: Optional[UserRef] = None
    stored_by: Optional[UserRef] = None
    claimed_on: Optional[datetime] = None  # derived: earliest successful claim


@dataclass
class ClaimFilter:
    """Claim filters, AND-combined. Empty collections apply no filter."""
    item_id: Optional[str] = None
    claimant_ids: Sequence[str] = field(default_factory=tuple)


@dataclass
class ItemFilter:
    """Item filters, AND-combined. Empty collections apply no filter."""
    statuses: Sequence[ItemStatus] = field(default_factory=tuple)
    lost_by_ids: Sequence[str] = field(default_factory=tuple)
