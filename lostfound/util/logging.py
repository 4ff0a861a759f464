"""
Structured logging for embedding calls, similarity scoring, store queries
and claim lifecycle operations.
"""

import logging
from typing import Any, Dict, Optional


def _truncate(text: str, limit: int = 50) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class StructuredLogger:
    """Structured logger shared by the vector and core packages."""

    def __init__(self, name: str = "lostfound"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def set_debug(self, enabled: bool) -> None:
        self.logger.setLevel(logging.DEBUG if enabled else logging.INFO)

    def log_operation(self, operation: str, status: str, details: Optional[Dict[str, Any]] = None,
                      level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_embedding_call(self, provider: str, model: str, text: str, dimension: Optional[int] = None,
                           duration_ms: Optional[float] = None, status: str = "success"):
        """Log one round trip to an embedding backend."""
        details = {"provider": provider, "model": model, "text": _truncate(text)}
        if dimension is not None:
            details["dimension"] = dimension
        if duration_ms is not None:
            details["duration_ms"] = duration_ms

        level = logging.DEBUG if status == "success" else logging.ERROR
        self.log_operation("embedding.embed", status, details, level=level)

    def log_similarity(self, operation: str, model: str, scores: int, status: str = "success",
                       details: Optional[Dict[str, Any]] = None):
        """Log a similarity computation (pairwise or batch)."""
        log_details = {"model": model, "scores": scores}
        if details:
            log_details.update(details)

        self.log_operation(f"similarity.{operation}", status, log_details, level=logging.DEBUG)

    def log_store_query(self, table: str, filters: Dict[str, Any], sort: str, skip: int, take: int, rows: int):
        """Log a paginated store read."""
        details = {
            "filters": {k: v for k, v in filters.items() if v},
            "sort": sort,
            "skip": skip,
            "take": take,
            "rows": rows
        }
        self.log_operation(f"store.{table}.fetch", "success", details, level=logging.DEBUG)

    def log_claim_operation(self, operation: str, target_id: str, details: Optional[Dict[str, Any]] = None,
                            status: str = "success"):
        """Log a claim or item lifecycle change."""
        log_details = {"target_id": target_id}
        if details:
            for k, v in details.items():
                log_details[k] = _truncate(v) if isinstance(v, str) else v

        self.log_operation(f"lifecycle.{operation}", status, log_details)

    # Standard logging methods
    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


# Global logger instance
logger = StructuredLogger()
