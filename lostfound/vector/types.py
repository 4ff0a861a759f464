"""
Value types returned by the similarity engine.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate text scored against an anchor text."""

    id: str
    """Identifier of the candidate (e.g. a claim id)"""

    score: float
    """Cosine similarity to the anchor, unclamped"""
