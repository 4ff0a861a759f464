"""
Similarity engine: composes an embedding provider with normalize and score.

The engine holds no state beyond its provider reference, so one instance can
serve concurrent requests. Every operation takes an optional timeout that is
handed to each backend call it makes. It never caches vectors and never substitutes a
default score; any failure from the provider, the normalizer or the scorer
propagates to the caller unchanged.
"""

from typing import List, Mapping, Optional, Sequence

import numpy as np

from .embeddings import IEmbeddingProvider
from .similarity import normalize, score
from .types import ScoredCandidate
from ..util.logging import logger


class SimilarityEngine:
    """
    Scores texts against each other through an injected embedding provider.

    Example:
        >>> engine = SimilarityEngine(DeterministicHashEmbedding())
        >>> round(engine.similarity_of("black wallet", "black wallet"), 6)
        1.0
    """

    def __init__(self, provider: IEmbeddingProvider):
        self.provider = provider

    @property
    def model_name(self) -> str:
        """Model whose vectors produced the scores; persisted next to each score."""
        return self.provider.model_name

    def embed_normalized(self, text: str, timeout: Optional[float] = None) -> np.ndarray:
        """Embed one text and rescale it to unit length."""
        return normalize(self.provider.embed_text(text, timeout=timeout))

    def similarity_of(self, text_a: str, text_b: str, timeout: Optional[float] = None) -> float:
        """
        Cosine similarity between two texts.

        Performs two backend calls. When one text is compared against many
        others use score_many instead.
        """
        a = self.embed_normalized(text_a, timeout)
        b = self.embed_normalized(text_b, timeout)
        result = score(a, b)

        logger.log_similarity("pairwise", self.model_name, 1, details={"score": round(result, 4)})
        return result

    def score_many(self, anchor_text: str, texts: Sequence[str], timeout: Optional[float] = None) -> List[float]:
        """
        Score every text against one anchor, embedding the anchor once.

        Args:
            anchor_text: Text every candidate is compared with (e.g. an item's
                canonical description)
            texts: Candidate texts (e.g. claim descriptions)
            timeout: Seconds allowed for each backend call

        Returns:
            Scores in the same order as texts
        """
        if not texts:
            return []

        anchor = self.embed_normalized(anchor_text, timeout)
        scores = [score(anchor, self.embed_normalized(text, timeout)) for text in texts]

        logger.log_similarity("batch", self.model_name, len(scores))
        return scores

    def rank(self, anchor_text: str, candidates: Mapping[str, str],
             timeout: Optional[float] = None) -> List[ScoredCandidate]:
        """
        Score candidates against an anchor and order them best first.

        Args:
            anchor_text: Text every candidate is compared with
            candidates: Mapping of candidate id to candidate text

        Returns:
            ScoredCandidate list by score descending, id ascending on ties
        """
        ids = list(candidates.keys())
        scores = self.score_many(anchor_text, [candidates[i] for i in ids], timeout)

        ranked = [ScoredCandidate(id=i, score=s) for i, s in zip(ids, scores)]
        ranked.sort(key=lambda c: (-c.score, c.id))
        return ranked
