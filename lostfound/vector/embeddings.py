"""
Embedding providers: text in, fixed-length vector out.

OllamaEmbedding is the production backend. DeterministicHashEmbedding gives
reproducible vectors without a model, for tests and offline development.
SentenceTransformerEmbedding runs a local model when the `local` extra is
installed.
"""

from abc import ABC, abstractmethod
import hashlib
import time
from typing import Optional

import httpx
import ollama
from pydantic import ValidationError

from ..core.errors import BackendUnavailable, InvalidInput
from ..util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    provider_name = "abstract"
    model_name = "unknown"

    def embed_text(self, text: str, timeout: Optional[float] = None) -> list[float]:
        """
        Generate an embedding vector for the given text.

        Args:
            text: Text to embed
            timeout: Seconds allowed for this call; providers without a network
                round trip ignore it

        Raises:
            InvalidInput: If text is empty or whitespace only
            BackendUnavailable: If the backend cannot produce a vector
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInput("Text to embed must be a non-empty string")
        return self._embed(text, timeout)

    @abstractmethod
    def _embed(self, text: str, timeout: Optional[float] = None) -> list[float]:
        """Produce the vector for already validated text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class OllamaEmbedding(IEmbeddingProvider):
    """Embedding provider backed by an Ollama server's embeddings endpoint.

    The request is {model, prompt} and the response carries {embedding}.
    Transport failures, error statuses and malformed responses all surface
    as BackendUnavailable; nothing is retried here. The timeout given at
    construction applies unless a call passes its own.
    """

    provider_name = "ollama"

    def __init__(self, model_name: str = "nomic-embed-text", host: str = "http://localhost:11434",
                 timeout: Optional[float] = 30.0, client: Optional[ollama.Client] = None):
        self.model_name = model_name
        self.host = host
        self.timeout = timeout
        self._client = client
        self._dimension = None

    @property
    def client(self) -> ollama.Client:
        if self._client is None:
            self._client = ollama.Client(host=self.host, timeout=self.timeout)
        return self._client

    def client_for(self, timeout: Optional[float] = None) -> ollama.Client:
        """Client for one call; a per-call timeout gets its own short-lived client."""
        if timeout is None:
            return self.client
        return ollama.Client(host=self.host, timeout=timeout)

    def _embed(self, text: str, timeout: Optional[float] = None) -> list[float]:
        start_time = time.perf_counter()
        try:
            response = self.client_for(timeout).embeddings(model=self.model_name, prompt=text)
        except ollama.ResponseError as e:
            logger.log_embedding_call(self.provider_name, self.model_name, text, status="failed")
            raise BackendUnavailable(
                f"Ollama embeddings error: {e.status_code} - {e.error}",
                provider=self.provider_name,
                model=self.model_name,
                status_code=e.status_code,
            ) from e
        except (ConnectionError, httpx.HTTPError) as e:
            logger.log_embedding_call(self.provider_name, self.model_name, text, status="failed")
            raise BackendUnavailable(
                f"Failed to reach Ollama at {self.host}: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e
        except ValidationError as e:
            logger.log_embedding_call(self.provider_name, self.model_name, text, status="failed")
            raise BackendUnavailable(
                f"Malformed embeddings response from Ollama: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e

        vector = self._parse_embedding(response)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.log_embedding_call(self.provider_name, self.model_name, text,
                                  dimension=len(vector), duration_ms=duration_ms)
        return vector

    def _parse_embedding(self, response) -> list[float]:
        """Extract the embedding from a response mapping, rejecting anything unusable."""
        embedding = response.get("embedding") if response is not None else None
        if not embedding:
            raise BackendUnavailable(
                "Ollama response did not contain an embedding",
                provider=self.provider_name,
                model=self.model_name,
            )
        try:
            return [float(value) for value in embedding]
        except (TypeError, ValueError) as e:
            raise BackendUnavailable(
                f"Ollama embedding contains non-numeric values: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors (probes the model once)."""
        if self._dimension is None:
            self._dimension = len(self.embed_text("dimension probe"))
        return self._dimension


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    Identical text always yields the identical vector, so a text scored
    against itself has similarity 1. Different texts give unrelated vectors;
    there is no semantic signal.
    """

    provider_name = "hash"

    def __init__(self, dimension: int = 384):
        self.dimension = dimension
        self.model_name = f"sha256-{dimension}"

    def _embed(self, text: str, timeout: Optional[float] = None) -> list[float]:
        vector = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode()).digest()
            for i in range(0, len(digest), 4):
                value = int.from_bytes(digest[i:i + 4], "big")
                # Map to [-1, 1]
                vector.append((value / 2**32) * 2 - 1)
            counter += 1

        return vector[:self.dimension]

    def get_dimension(self) -> int:
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models."""

    provider_name = "sentence_transformers"

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise ImportError("sentence-transformers not installed. Install the 'local' extra.")
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def _embed(self, text: str, timeout: Optional[float] = None) -> list[float]:
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def get_dimension(self) -> int:
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension
