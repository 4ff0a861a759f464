"""
Tests for the embedding providers.
"""

from unittest.mock import MagicMock, patch

import httpx
import ollama
import pytest

from lostfound.core.errors import BackendUnavailable, InvalidInput
from lostfound.vector.embeddings import IEmbeddingProvider, DeterministicHashEmbedding, OllamaEmbedding


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.embeddings.return_value = {"embedding": [0.1, 0.2, 0.3, 0.4]}
    return client


@pytest.fixture
def provider(mock_client):
    return OllamaEmbedding(model_name="nomic-embed-text", client=mock_client)


def test_embedding_interface():
    """Both providers implement the interface."""
    assert isinstance(DeterministicHashEmbedding(dimension=16), IEmbeddingProvider)
    assert isinstance(OllamaEmbedding(client=MagicMock()), IEmbeddingProvider)


def test_deterministic_embedding():
    """The same input always produces the same output, across instances."""
    vector1 = DeterministicHashEmbedding(dimension=384).embed_text("Hello, world!")
    vector2 = DeterministicHashEmbedding(dimension=384).embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 384
    assert all(-1.0 <= v <= 1.0 for v in vector1)


def test_different_inputs_produce_different_vectors():
    embedder = DeterministicHashEmbedding(dimension=64)
    assert embedder.embed_text("blue umbrella") != embedder.embed_text("red umbrella")


@pytest.mark.parametrize("dimension", [1, 7, 8, 64, 513])
def test_hash_embedding_dimensions(dimension):
    embedder = DeterministicHashEmbedding(dimension=dimension)
    assert len(embedder.embed_text("test")) == dimension
    assert embedder.get_dimension() == dimension


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_text_is_rejected(text, provider, mock_client):
    """Empty text is a caller error and never reaches the backend."""
    with pytest.raises(InvalidInput):
        provider.embed_text(text)
    with pytest.raises(InvalidInput):
        DeterministicHashEmbedding(dimension=8).embed_text(text)

    mock_client.embeddings.assert_not_called()


def test_non_string_text_is_rejected(provider):
    with pytest.raises(InvalidInput):
        provider.embed_text(None)


def test_ollama_request_shape(provider, mock_client):
    """The backend is called with {model, prompt} and the embedding is returned as floats."""
    vector = provider.embed_text("black leather wallet")

    mock_client.embeddings.assert_called_once_with(model="nomic-embed-text", prompt="black leather wallet")
    assert vector == [0.1, 0.2, 0.3, 0.4]
    assert all(isinstance(v, float) for v in vector)


def test_ollama_response_error_is_backend_unavailable(provider, mock_client):
    mock_client.embeddings.side_effect = ollama.ResponseError("model not found", status_code=404)

    with pytest.raises(BackendUnavailable) as exc_info:
        provider.embed_text("wallet")

    assert exc_info.value.status_code == 404
    assert exc_info.value.provider == "ollama"
    assert exc_info.value.model == "nomic-embed-text"
    assert isinstance(exc_info.value.__cause__, ollama.ResponseError)


def test_ollama_unreachable_is_backend_unavailable(provider, mock_client):
    mock_client.embeddings.side_effect = ConnectionError("Failed to connect to Ollama")

    with pytest.raises(BackendUnavailable):
        provider.embed_text("wallet")


def test_ollama_timeout_is_backend_unavailable(provider, mock_client):
    mock_client.embeddings.side_effect = httpx.ReadTimeout("timed out")

    with pytest.raises(BackendUnavailable):
        provider.embed_text("wallet")


@pytest.mark.parametrize("response", [
    {},
    {"embedding": []},
    {"embedding": None},
    {"embedding": ["a", "b"]},
    {"embedding": [0.1, None]},
    None,
])
def test_ollama_malformed_response_is_backend_unavailable(response, provider, mock_client):
    mock_client.embeddings.return_value = response

    with pytest.raises(BackendUnavailable):
        provider.embed_text("wallet")


def test_ollama_interrupt_is_not_swallowed(provider, mock_client):
    """Cancellation from the caller propagates through the provider untouched."""
    mock_client.embeddings.side_effect = KeyboardInterrupt()

    with pytest.raises(KeyboardInterrupt):
        provider.embed_text("wallet")


def test_ollama_no_retry(provider, mock_client):
    mock_client.embeddings.side_effect = ConnectionError("down")

    with pytest.raises(BackendUnavailable):
        provider.embed_text("wallet")

    assert mock_client.embeddings.call_count == 1


def test_ollama_dimension_probed_once(provider, mock_client):
    assert provider.get_dimension() == 4
    assert provider.get_dimension() == 4
    assert mock_client.embeddings.call_count == 1


def test_ollama_client_built_lazily():
    """Constructing the provider does not contact the backend."""
    embedder = OllamaEmbedding(model_name="nomic-embed-text", host="http://ollama.invalid:11434", timeout=2.0)
    assert embedder._client is None
    assert isinstance(embedder.client, ollama.Client)


def test_ollama_per_call_timeout():
    """A caller-supplied timeout gets a client bounded by it; the default client is untouched."""
    with patch("lostfound.vector.embeddings.ollama.Client") as mock_client_cls:
        mock_client_cls.return_value.embeddings.return_value = {"embedding": [0.5, 0.5]}
        embedder = OllamaEmbedding(host="http://ollama.internal:11434", timeout=30.0)

        vector = embedder.embed_text("wallet", timeout=2.5)

    assert vector == [0.5, 0.5]
    mock_client_cls.assert_called_once_with(host="http://ollama.internal:11434", timeout=2.5)
    assert embedder._client is None


def test_ollama_default_timeout_uses_shared_client(provider, mock_client):
    provider.embed_text("wallet")
    provider.embed_text("keys")
    assert mock_client.embeddings.call_count == 2
