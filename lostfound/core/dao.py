"""
Store collaborator for users, lost items and claims.

All reads and writes go through LostFoundDAO, which wraps every sqlite3
error in DependencyFailure so callers only ever see the core's error family.
"""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Mapping, Optional

from .db import Database
from .errors import DependencyFailure, NotFound, StaleWrite
from .schema import (
    ClaimFilter, ClaimRecord, ClaimSort, ItemFilter, ItemSort, ItemStatus, LostItemRecord, UserRef
)
from ..util.logging import logger

CLAIM_ORDER_CLAUSES = {
    ClaimSort.OLDEST_FIRST: "c.created_at ASC, c.id ASC",
    ClaimSort.NEWEST_FIRST: "c.created_at DESC, c.id ASC",
    ClaimSort.SIMILARITY_ASCENDING: "c.similarity ASC, c.id ASC",
    ClaimSort.SIMILARITY_DESCENDING: "c.similarity DESC, c.id ASC",
}

ITEM_ORDER_CLAUSES = {
    ItemSort.OLDEST_FIRST: "i.created_at ASC, i.id ASC",
    ItemSort.NEWEST_FIRST: "i.created_at DESC, i.id ASC",
}

UPDATABLE_ITEM_COLUMNS = {
    "name", "description", "status", "lost_by_id", "found_by_id", "stored_by_id",
    "lost_on", "found_on", "stored_on", "returned_on",
}

CLAIM_SELECT = '''
    SELECT c.id, c.lost_item_id, c.description, c.success, c.similarity, c.embed_model, c.created_at,
           u.id AS claimer_id, u.name AS claimer_name
    FROM claims c
    JOIN users u ON u.id = c.claimer_id
'''

ITEM_SELECT = '''
    SELECT i.id, i.name, i.description, i.status, i.created_at,
           i.lost_on, i.found_on, i.stored_on, i.returned_on,
           i.lost_by_id, lb.name AS lost_by_name,
           i.found_by_id, fb.name AS found_by_name,
           i.stored_by_id, sb.name AS stored_by_name,
           (SELECT MIN(cc.created_at) FROM claims cc
             WHERE cc.lost_item_id = i.id AND cc.success = 1) AS claimed_on
    FROM lost_items i
    LEFT JOIN users lb ON lb.id = i.lost_by_id
    LEFT JOIN users fb ON fb.id = i.found_by_id
    LEFT JOIN users sb ON sb.id = i.stored_by_id
'''


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as UTC ISO-8601 text; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _placeholders(values) -> str:
    return ", ".join("?" for _ in values)


def _user_ref(user_id: Optional[str], name: Optional[str]) -> Optional[UserRef]:
    if user_id is None:
        return None
    return UserRef(id=user_id, name=name)


def _claim_from_row(row: sqlite3.Row) -> ClaimRecord:
    return ClaimRecord(
        id=row["id"],
        item_id=row["lost_item_id"],
        claimer=UserRef(id=row["claimer_id"], name=row["claimer_name"]),
        description=row["description"],
        success=bool(row["success"]),
        similarity=row["similarity"],
        created_at=from_db_timestamp(row["created_at"]),
        embed_model=row["embed_model"],
    )


def _item_from_row(row: sqlite3.Row) -> LostItemRecord:
    return LostItemRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        status=ItemStatus(row["status"]),
        created_at=from_db_timestamp(row["created_at"]),
        lost_on=from_db_timestamp(row["lost_on"]),
        found_on=from_db_timestamp(row["found_on"]),
        stored_on=from_db_timestamp(row["stored_on"]),
        returned_on=from_db_timestamp(row["returned_on"]),
        lost_by=_user_ref(row["lost_by_id"], row["lost_by_name"]),
        found_by=_user_ref(row["found_by_id"], row["found_by_name"]),
        stored_by=_user_ref(row["stored_by_id"], row["stored_by_name"]),
        claimed_on=from_db_timestamp(row["claimed_on"]),
    )


class LostFoundDAO:
    """Data access object over a Database handle."""

    def __init__(self, db: Database):
        self.db = db

    @contextmanager
    def _cursor(self, operation: str):
        """Cursor inside one committed transaction; sqlite errors become DependencyFailure."""
        try:
            with self.db.connect() as conn:
                cursor = conn.cursor()
                yield cursor
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Database error during {operation}: {e}")
            raise DependencyFailure(f"Store operation '{operation}' failed: {e}") from e

    # Users

    def add_user(self, name: str, user_id: Optional[str] = None) -> str:
        user_id = user_id or uuid.uuid4().hex
        with self._cursor("add_user") as cursor:
            cursor.execute(
                "INSERT INTO users (id, name, created_at) VALUES (?, ?, ?)",
                (user_id, name, to_db_timestamp(utc_now()))
            )
        return user_id

    def get_user(self, user_id: str) -> Optional[UserRef]:
        with self._cursor("get_user") as cursor:
            cursor.execute("SELECT id, name FROM users WHERE id = ?", (user_id,))
            row = cursor.fetchone()
        return UserRef(id=row["id"], name=row["name"]) if row else None

    # Lost items

    def add_item(self, name: str, description: str, status: ItemStatus,
                 lost_by_id: Optional[str] = None, found_by_id: Optional[str] = None,
                 lost_on: Optional[datetime] = None, found_on: Optional[datetime] = None,
                 created_at: Optional[datetime] = None, item_id: Optional[str] = None) -> str:
        item_id = item_id or uuid.uuid4().hex
        with self._cursor("add_item") as cursor:
            cursor.execute(
                '''INSERT INTO lost_items
                   (id, name, description, status, lost_by_id, found_by_id, lost_on, found_on, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)''',
                (item_id, name, description, ItemStatus(status).value, lost_by_id, found_by_id,
                 to_db_timestamp(lost_on), to_db_timestamp(found_on),
                 to_db_timestamp(created_at or utc_now()))
            )
        return item_id

    def get_item(self, item_id: str) -> Optional[LostItemRecord]:
        with self._cursor("get_item") as cursor:
            cursor.execute(ITEM_SELECT + " WHERE i.id = ?", (item_id,))
            row = cursor.fetchone()
        return _item_from_row(row) if row else None

    def update_item(self, item_id: str, **fields) -> None:
        """Update item columns; datetimes and statuses are serialized for storage."""
        unknown = set(fields) - UPDATABLE_ITEM_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update item columns: {sorted(unknown)}")
        if not fields:
            return

        values = []
        for column, value in fields.items():
            if isinstance(value, datetime):
                value = to_db_timestamp(value)
            elif isinstance(value, ItemStatus):
                value = value.value
            values.append(value)

        assignments = ", ".join(f"{column} = ?" for column in fields)
        with self._cursor("update_item") as cursor:
            cursor.execute(f"UPDATE lost_items SET {assignments} WHERE id = ?", (*values, item_id))
            if cursor.rowcount == 0:
                raise NotFound(f"Lost item does not exist: {item_id}")

    def fetch_items(self, item_filter: ItemFilter, sort: ItemSort, skip: int, take: int) -> List[LostItemRecord]:
        """Filtered, ordered page of items with the derived claimed_on."""
        clauses, params = [], []
        if item_filter.statuses:
            statuses = [ItemStatus(s).value for s in item_filter.statuses]
            clauses.append(f"i.status IN ({_placeholders(statuses)})")
            params.extend(statuses)
        if item_filter.lost_by_ids:
            clauses.append(f"i.lost_by_id IN ({_placeholders(item_filter.lost_by_ids)})")
            params.extend(item_filter.lost_by_ids)

        query = ITEM_SELECT
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += f" ORDER BY {ITEM_ORDER_CLAUSES[sort]} LIMIT ? OFFSET ?"

        with self._cursor("fetch_items") as cursor:
            cursor.execute(query, (*params, take, skip))
            rows = cursor.fetchall()

        logger.log_store_query("lost_items", {"statuses": list(item_filter.statuses),
                                              "lost_by_ids": list(item_filter.lost_by_ids)},
                               sort.value, skip, take, len(rows))
        return [_item_from_row(row) for row in rows]

    # Claims

    def add_claim(self, item_id: str, claimer_id: str, description: str, similarity: float,
                  embed_model: Optional[str] = None, created_at: Optional[datetime] = None,
                  claim_id: Optional[str] = None, scored_against: Optional[str] = None) -> str:
        """
        Insert a claim with its similarity score.

        When scored_against is given the row is only written while the item
        description still equals it; otherwise StaleWrite is raised.
        """
        claim_id = claim_id or uuid.uuid4().hex
        values = (claim_id, item_id, claimer_id, description, float(similarity), embed_model,
                  to_db_timestamp(created_at or utc_now()))
        with self._cursor("add_claim") as cursor:
            if scored_against is None:
                cursor.execute(
                    '''INSERT INTO claims
                       (id, lost_item_id, claimer_id, description, success, similarity, embed_model, created_at)
                       VALUES (?, ?, ?, ?, 0, ?, ?, ?)''',
                    values
                )
            else:
                cursor.execute(
                    '''INSERT INTO claims
                       (id, lost_item_id, claimer_id, description, success, similarity, embed_model, created_at)
                       SELECT ?, ?, ?, ?, 0, ?, ?, ?
                       FROM lost_items WHERE id = ? AND description = ?''',
                    (*values, item_id, scored_against)
                )
                if cursor.rowcount == 0:
                    raise StaleWrite(f"Description of item {item_id} changed while the claim was scored")
        return claim_id

    def get_claim(self, claim_id: str) -> Optional[ClaimRecord]:
        with self._cursor("get_claim") as cursor:
            cursor.execute(CLAIM_SELECT + " WHERE c.id = ?", (claim_id,))
            row = cursor.fetchone()
        return _claim_from_row(row) if row else None

    def list_claims_for_item(self, item_id: str) -> List[ClaimRecord]:
        """Every claim against one item, unpaginated, by id."""
        with self._cursor("list_claims_for_item") as cursor:
            cursor.execute(CLAIM_SELECT + " WHERE c.lost_item_id = ? ORDER BY c.id ASC", (item_id,))
            rows = cursor.fetchall()
        return [_claim_from_row(row) for row in rows]

    def fetch_claims(self, claim_filter: ClaimFilter, sort: ClaimSort, skip: int, take: int) -> List[ClaimRecord]:
        """Filtered, ordered page of claims; ties always break on claim id ascending."""
        clauses, params = [], []
        if claim_filter.item_id:
            clauses.append("c.lost_item_id = ?")
            params.append(claim_filter.item_id)
        if claim_filter.claimant_ids:
            clauses.append(f"c.claimer_id IN ({_placeholders(claim_filter.claimant_ids)})")
            params.extend(claim_filter.claimant_ids)

        query = CLAIM_SELECT
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += f" ORDER BY {CLAIM_ORDER_CLAUSES[sort]} LIMIT ? OFFSET ?"

        with self._cursor("fetch_claims") as cursor:
            cursor.execute(query, (*params, take, skip))
            rows = cursor.fetchall()

        logger.log_store_query("claims", {"item_id": claim_filter.item_id,
                                          "claimant_ids": list(claim_filter.claimant_ids)},
                               sort.value, skip, take, len(rows))
        return [_claim_from_row(row) for row in rows]

    def save_similarity(self, claim_id: str, similarity: float, embed_model: Optional[str] = None) -> None:
        """Persist a similarity score against a claim."""
        with self._cursor("save_similarity") as cursor:
            cursor.execute(
                "UPDATE claims SET similarity = ?, embed_model = ? WHERE id = ?",
                (float(similarity), embed_model, claim_id)
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Claim does not exist: {claim_id}")

    def update_description_and_scores(self, item_id: str, description: str,
                                      scores: Mapping[str, float], embed_model: Optional[str]) -> None:
        """
        Write a new item description and its claims' new scores in one transaction.

        The description update opens the write transaction before the claim ids
        are read, so no claim can be added between the check and the commit.

        Raises:
            NotFound: If the item does not exist
            StaleWrite: If the item's claims differ from the scored set
        """
        with self._cursor("update_description_and_scores") as cursor:
            cursor.execute("UPDATE lost_items SET description = ? WHERE id = ?", (description, item_id))
            if cursor.rowcount == 0:
                raise NotFound(f"Lost item does not exist: {item_id}")

            cursor.execute("SELECT id FROM claims WHERE lost_item_id = ?", (item_id,))
            current = {row["id"] for row in cursor.fetchall()}
            if current != set(scores):
                raise StaleWrite(f"Claims on item {item_id} changed while they were re-scored")

            cursor.executemany(
                "UPDATE claims SET similarity = ?, embed_model = ? WHERE id = ? AND lost_item_id = ?",
                [(float(s), embed_model, claim_id, item_id) for claim_id, s in scores.items()]
            )

    def mark_claim_success(self, claim_id: str, item_id: str, owner_id: str) -> None:
        """Mark a claim successful and hand its item to the claimer, atomically."""
        with self._cursor("mark_claim_success") as cursor:
            cursor.execute("UPDATE claims SET success = 1 WHERE id = ?", (claim_id,))
            if cursor.rowcount == 0:
                raise NotFound(f"Claim does not exist: {claim_id}")
            cursor.execute(
                "UPDATE lost_items SET status = ?, lost_by_id = ? WHERE id = ?",
                (ItemStatus.CLAIMED.value, owner_id, item_id)
            )

    def count_claims(self) -> int:
        with self._cursor("count_claims") as cursor:
            cursor.execute("SELECT COUNT(*) FROM claims")
            return cursor.fetchone()[0]
