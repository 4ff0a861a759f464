"""
Claim lifecycle: create a scored claim, mark the rightful owner, preview ranking.

The similarity score is computed before the claim row is written, so an
embedding failure blocks claim creation instead of storing an unranked claim.
The row is only written while the item still carries the description the
score was computed against.
"""

from typing import List, Optional

from . import config as config_module
from .dao import LostFoundDAO
from .errors import DuplicateAction, InvalidInput, NotFound, StaleWrite
from .items import get_item_or_raise
from .schema import ItemStatus
from ..util.logging import logger
from ..vector.engine import SimilarityEngine
from ..vector.types import ScoredCandidate


def create_claim(dao: LostFoundDAO, engine: SimilarityEngine, claimer_id: str, item_id: str,
                 description: str, timeout: Optional[float] = None) -> str:
    """
    Record a claim of ownership scored against the item's canonical description.

    Args:
        dao: Store handle
        engine: Similarity engine used to score the claim
        claimer_id: Already authenticated claimant
        item_id: Item being claimed
        description: Claimant's free-text description of the item
        timeout: Seconds allowed for each embedding call

    Returns:
        Id of the new claim

    Raises:
        InvalidInput: If the description is empty
        NotFound: If the claimant or the item does not exist
        DuplicateAction: If the item has already been claimed or collected
        BackendUnavailable: If the embedding backend fails (no claim is written)
        StaleWrite: If the item description kept changing while the claim was scored
    """
    if not isinstance(description, str) or not description.strip():
        raise InvalidInput("Claim description must be a non-empty string")
    if dao.get_user(claimer_id) is None:
        raise NotFound(f"User does not exist: {claimer_id}")

    attempts = config_module.STALE_WRITE_RETRIES
    for attempt in range(1, attempts + 1):
        item = get_item_or_raise(dao, item_id)
        if item.status.rank >= ItemStatus.CLAIMED.rank:
            raise DuplicateAction("Item has already been claimed or collected")

        similarity = engine.similarity_of(description, item.description, timeout=timeout)
        try:
            claim_id = dao.add_claim(
                item_id=item_id,
                claimer_id=claimer_id,
                description=description,
                similarity=similarity,
                embed_model=engine.model_name,
                scored_against=item.description,
            )
            break
        except StaleWrite:
            if attempt == attempts:
                raise
            logger.warning(f"Item {item_id} was re-described while a claim was scored, retrying")

    logger.log_claim_operation("claim_created", claim_id, {
        "item_id": item_id,
        "claimer_id": claimer_id,
        "similarity": round(similarity, 4),
    })
    return claim_id


def mark_owner(dao: LostFoundDAO, claim_id: str) -> None:
    """
    Accept a claim: the claim succeeds and its claimer becomes the item's owner.

    Raises:
        NotFound: If the claim does not exist
        DuplicateAction: If the item is not stored and waiting for its owner
    """
    claim = dao.get_claim(claim_id)
    if claim is None:
        raise NotFound(f"Claim does not exist: {claim_id}")

    item = get_item_or_raise(dao, claim.item_id)
    if item.status != ItemStatus.STORED:
        raise DuplicateAction("Item is not available for claiming")

    dao.mark_claim_success(claim_id, claim.item_id, claim.claimer.id)
    logger.log_claim_operation("owner_marked", claim_id, {"item_id": claim.item_id, "owner_id": claim.claimer.id})


def rank_claims_live(dao: LostFoundDAO, engine: SimilarityEngine, item_id: str,
                     timeout: Optional[float] = None) -> List[ScoredCandidate]:
    """
    Re-score every claim on an item against its current description without persisting.

    The item description is embedded once for the whole batch.
    """
    item = get_item_or_raise(dao, item_id)
    claims = dao.list_claims_for_item(item_id)
    return engine.rank(item.description, {c.id: c.description for c in claims}, timeout=timeout)
