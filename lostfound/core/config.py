"""
Environment driven configuration for the claim matching core.

Values are read once at import; a .env file in the working directory is
loaded first so local development does not need exported variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from ..util.logging import logger

load_dotenv()

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/lostfound.db")

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
logger.set_debug(DEBUG)

# Embedding backend configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "ollama")  # ollama|hash|sentence_transformers
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
EMBED_MODEL = os.getenv("EMBED_MODEL", "nomic-embed-text")
EMBED_TIMEOUT_SEC = float(os.getenv("EMBED_TIMEOUT_SEC", "30"))
EMBED_DIM = int(os.getenv("EMBED_DIM", "384"))  # hash provider only

# Retrieval configuration
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

# Attempts at scoring and writing when the item description changes underneath
STALE_WRITE_RETRIES = int(os.getenv("STALE_WRITE_RETRIES", "3"))

VALID_EMBED_PROVIDERS = ["ollama", "hash", "sentence_transformers"]


def get_embedding_provider(provider: str = None):
    """Build the configured embedding provider."""
    provider = provider or EMBED_PROVIDER

    if provider == "ollama":
        from lostfound.vector.embeddings import OllamaEmbedding
        return OllamaEmbedding(model_name=EMBED_MODEL, host=OLLAMA_HOST, timeout=EMBED_TIMEOUT_SEC)
    elif provider == "hash":
        from lostfound.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=EMBED_DIM)
    elif provider == "sentence_transformers":
        from lostfound.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(model_name=EMBED_MODEL)
    else:
        raise ValueError(f"Unknown EMBED_PROVIDER: {provider} (expected one of {VALID_EMBED_PROVIDERS})")


def ensure_db_directory(path: str = None):
    """Ensure the database directory exists."""
    Path(path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if EMBED_PROVIDER not in VALID_EMBED_PROVIDERS:
        issues.append(f"Invalid EMBED_PROVIDER: {EMBED_PROVIDER}")

    if not EMBED_MODEL.strip():
        issues.append("EMBED_MODEL must not be empty")

    if EMBED_TIMEOUT_SEC <= 0:
        issues.append("EMBED_TIMEOUT_SEC must be > 0")

    if EMBED_DIM < 1:
        issues.append("EMBED_DIM must be >= 1")

    if MAX_PAGE_SIZE < 1:
        issues.append("MAX_PAGE_SIZE must be >= 1")

    if not 1 <= DEFAULT_PAGE_SIZE <= MAX_PAGE_SIZE:
        issues.append("DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE")

    if STALE_WRITE_RETRIES < 1:
        issues.append("STALE_WRITE_RETRIES must be >= 1")

    return issues
