"""
Lost item lifecycle: report, store, re-describe, collect.

Status only moves forward through LOST < FOUND < STORED < CLAIMED < RETURNED.
"""

from datetime import datetime
from typing import Optional

from . import config as config_module
from .dao import LostFoundDAO, utc_now
from .errors import DuplicateAction, InvalidInput, NotAuthorized, NotFound, StaleWrite
from .schema import ItemStatus, LostItemRecord
from ..util.logging import logger
from ..vector.engine import SimilarityEngine


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} must be a non-empty string")
    return value.strip()


def get_item_or_raise(dao: LostFoundDAO, item_id: str) -> LostItemRecord:
    item = dao.get_item(item_id)
    if item is None:
        raise NotFound(f"Lost item does not exist: {item_id}")
    return item


def report_lost_item(dao: LostFoundDAO, reporter_id: str, name: str, description: str,
                     lost_on: Optional[datetime] = None) -> str:
    """Record an item its owner has lost; the description becomes the comparison anchor for claims."""
    item_id = dao.add_item(
        name=_require_text(name, "name"),
        description=_require_text(description, "description"),
        status=ItemStatus.LOST,
        lost_by_id=reporter_id,
        lost_on=lost_on,
    )
    logger.log_claim_operation("item_reported_lost", item_id, {"reporter_id": reporter_id, "name": name})
    return item_id


def report_found_item(dao: LostFoundDAO, finder_id: str, name: str, description: str,
                      found_on: Optional[datetime] = None) -> str:
    """Record an item someone has found without knowing the owner."""
    item_id = dao.add_item(
        name=_require_text(name, "name"),
        description=_require_text(description, "description"),
        status=ItemStatus.FOUND,
        found_by_id=finder_id,
        found_on=found_on,
    )
    logger.log_claim_operation("item_reported_found", item_id, {"finder_id": finder_id, "name": name})
    return item_id


def store_item(dao: LostFoundDAO, item_id: str, finder_id: str, warden_id: str) -> None:
    """
    Hand an item over to a warden for safekeeping.

    Raises:
        NotFound: If the item does not exist
        DuplicateAction: If the item is already stored or further along
    """
    item = get_item_or_raise(dao, item_id)
    if item.status.rank >= ItemStatus.STORED.rank:
        raise DuplicateAction("Item has already been processed")

    now = utc_now()
    dao.update_item(
        item_id,
        status=ItemStatus.STORED,
        found_by_id=finder_id,
        stored_by_id=warden_id,
        found_on=item.found_on or now,
        stored_on=now,
    )
    logger.log_claim_operation("item_stored", item_id, {"finder_id": finder_id, "warden_id": warden_id})


def update_item_description(dao: LostFoundDAO, engine: SimilarityEngine, item_id: str, description: str,
                            timeout: Optional[float] = None) -> int:
    """
    Replace an item's canonical description and re-score every claim against it.

    Scores are computed before anything is written; if the backend fails the
    old description and scores stay in place. A claim added while the new
    description is being scored makes the write fail with StaleWrite, and the
    whole batch is scored again with the newcomer included.

    Returns:
        Number of claims re-scored
    """
    description = _require_text(description, "description")
    get_item_or_raise(dao, item_id)

    attempts = config_module.STALE_WRITE_RETRIES
    for attempt in range(1, attempts + 1):
        claims = dao.list_claims_for_item(item_id)
        scores = engine.score_many(description, [c.description for c in claims], timeout=timeout)
        try:
            dao.update_description_and_scores(
                item_id, description, {c.id: s for c, s in zip(claims, scores)}, engine.model_name
            )
            break
        except StaleWrite:
            if attempt == attempts:
                raise
            logger.warning(f"Claims on item {item_id} changed while re-scoring, retrying")

    logger.log_claim_operation("item_redescribed", item_id, {"rescored_claims": len(claims)})
    return len(claims)


def collect_item(dao: LostFoundDAO, item_id: str, collector_id: str) -> None:
    """
    Record that the owner has collected a claimed item.

    Raises:
        NotFound: If the item does not exist
        DuplicateAction: If the item is not waiting for collection
        NotAuthorized: If the collector is not the item's owner
    """
    item = get_item_or_raise(dao, item_id)
    if item.status != ItemStatus.CLAIMED:
        raise DuplicateAction("Item is not ready for collection")
    if item.lost_by is None or item.lost_by.id != collector_id:
        raise NotAuthorized("Only the owner of the item can collect it")

    dao.update_item(item_id, status=ItemStatus.RETURNED, returned_on=utc_now())
    logger.log_claim_operation("item_collected", item_id, {"collector_id": collector_id})
