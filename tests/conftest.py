"""
Shared fixtures: a fresh SQLite store per test and a table-driven embedding provider.
"""

from datetime import datetime, timedelta, timezone

import pytest

from lostfound.core.dao import LostFoundDAO
from lostfound.core.db import Database
from lostfound.core.schema import ItemStatus
from lostfound.vector.embeddings import IEmbeddingProvider

BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class TableEmbedding(IEmbeddingProvider):
    """Returns fixed vectors per text and records every call.

    on_embed, when set, is called with each text before its vector is returned,
    which lets a test change the store while an embedding is in flight.
    """

    provider_name = "table"
    model_name = "table-v1"

    def __init__(self, vectors, on_embed=None):
        self.vectors = vectors
        self.on_embed = on_embed
        self.calls = []
        self.timeouts = []

    def _embed(self, text, timeout=None):
        self.calls.append(text)
        self.timeouts.append(timeout)
        if self.on_embed is not None:
            self.on_embed(text)
        return list(self.vectors[text])

    def get_dimension(self):
        return len(next(iter(self.vectors.values())))


@pytest.fixture
def dao(tmp_path):
    db = Database(str(tmp_path / "lostfound.db"))
    db.init_db()
    return LostFoundDAO(db)


@pytest.fixture
def users(dao):
    return {
        "asha": dao.add_user("Asha", user_id="u-asha"),
        "ben": dao.add_user("Ben", user_id="u-ben"),
        "chen": dao.add_user("Chen", user_id="u-chen"),
        "warden": dao.add_user("Warden Rao", user_id="u-warden"),
    }


@pytest.fixture
def item_id(dao, users):
    return dao.add_item(
        name="Wallet",
        description="black leather wallet with a red stitch",
        status=ItemStatus.FOUND,
        found_by_id=users["warden"],
        created_at=BASE_TIME,
        item_id="item-wallet",
    )


def seed_claims(dao, item_id, claimer_ids, similarities, start=BASE_TIME):
    """Insert one claim per similarity, one minute apart, cycling through claimers."""
    claim_ids = []
    for i, similarity in enumerate(similarities):
        claim_ids.append(dao.add_claim(
            item_id=item_id,
            claimer_id=claimer_ids[i % len(claimer_ids)],
            description=f"claim number {i}",
            similarity=similarity,
            embed_model="table-v1",
            created_at=start + timedelta(minutes=i),
            claim_id=f"claim-{i:02d}",
        ))
    return claim_ids
