"""
Structured operation logging for the vector space backends.
"""

import logging
from typing import Any, Dict, Iterable

from ..core.config import DEBUG


class StructuredLogger:
    """Structured logger for namespace, vector and index rebuild operations."""

    def __init__(self, name: str = "vectorspace", debug: bool = DEBUG):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status == "failed":
            level = logging.WARNING
        self.logger.log(level, message)

    def log_namespace_operation(self, operation: str, namespace: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a namespace lifecycle operation."""
        log_details = {"namespace": namespace}
        if details:
            log_details.update(details)

        self.log_operation(f"namespace.{operation}", status, log_details)

    def log_vector_operation(self, operation: str, namespace: str, record_ids: Iterable[int] = (), details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector operation; long id lists are truncated."""
        ids = list(record_ids)
        log_details = {"namespace": namespace, "count": len(ids)}
        if ids:
            log_details["record_ids"] = ids[:5] + ["..."] if len(ids) > 5 else ids
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_rebuild(self, collection: str, size: int, start_time: float, end_time: float, status: str = "success", details: Dict[str, Any] = None):
        """Log an index rebuild with its duration."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"collection": collection, "size": size, "duration_ms": duration_ms}
        if details:
            log_details.update(details)

        # Successful rebuilds log at DEBUG; failures still warn
        self.log_operation("index.rebuild", status, log_details, level=logging.DEBUG)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)

# Global logger instance
logger = StructuredLogger()
