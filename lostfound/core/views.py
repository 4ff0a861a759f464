"""
Read projections handed back to callers of the retrieval layer.

Users are only ever exposed as id + name.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .schema import ClaimRecord, ItemStatus, LostItemRecord, UserRef


class UserView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str

    @classmethod
    def from_ref(cls, ref: Optional[UserRef]) -> Optional["UserView"]:
        if ref is None:
            return None
        return cls(id=ref.id, name=ref.name)


class ClaimView(BaseModel):
    id: str
    description: str
    created_at: datetime
    claimer: UserView
    success: bool
    similarity: float

    @classmethod
    def from_record(cls, record: ClaimRecord) -> "ClaimView":
        return cls(
            id=record.id,
            description=record.description,
            created_at=record.created_at,
            claimer=UserView.from_ref(record.claimer),
            success=record.success,
            similarity=record.similarity,
        )


class ItemView(BaseModel):
    id: str
    name: str
    description: str
    status: ItemStatus
    lost_on: Optional[datetime] = None
    found_on: Optional[datetime] = None
    stored_on: Optional[datetime] = None
    claimed_on: Optional[datetime] = None
    returned_on: Optional[datetime] = None
    lost_by: Optional[UserView] = None
    found_by: Optional[UserView] = None
    stored_by: Optional[UserView] = None

    @classmethod
    def from_record(cls, record: LostItemRecord) -> "ItemView":
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            status=record.status,
            lost_on=record.lost_on,
            found_on=record.found_on,
            stored_on=record.stored_on,
            claimed_on=record.claimed_on,
            returned_on=record.returned_on,
            lost_by=UserView.from_ref(record.lost_by),
            found_by=UserView.from_ref(record.found_by),
            stored_by=UserView.from_ref(record.stored_by),
        )


class ClaimPage(BaseModel):
    page: int
    page_size: int
    claims: List[ClaimView]


class ItemPage(BaseModel):
    page: int
    page_size: int
    items: List[ItemView]
