"""
Semantic similarity engine: embedding providers, normalization, scoring.
"""

from .embeddings import IEmbeddingProvider, OllamaEmbedding, DeterministicHashEmbedding, SentenceTransformerEmbedding
from .similarity import normalize, score
from .engine import SimilarityEngine
from .types import ScoredCandidate

__all__ = [
    'IEmbeddingProvider',
    'OllamaEmbedding',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'normalize',
    'score',
    'SimilarityEngine',
    'ScoredCandidate'
]
