"""
Error taxonomy shared by every VectorSpace backend.
Backends raise these instead of leaking FAISS, Qdrant or provider exceptions.
"""

from typing import Iterable, Optional


class VectorSpaceError(Exception):
    """Base class for all vector space failures."""


class InvalidNamespace(VectorSpaceError):
    """Namespace name is empty, not ASCII or not a string."""

    def __init__(self, message: str = "Invalid namespace"):
        super().__init__(message)


class KeyCollision(VectorSpaceError):
    """A namespace or id is already present."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key {key} is already present")


class KeyNotFound(VectorSpaceError):
    """A namespace or one or more ids are absent."""

    def __init__(self, key: str, missing: Optional[Iterable[int]] = None):
        self.key = key
        self.missing = list(missing) if missing is not None else []
        super().__init__(f"Key {key} not found")


class BackendFailure(VectorSpaceError):
    """Index build/search failed, or the remote vector service returned an error."""


class RenderFailure(VectorSpaceError):
    """An object could not be converted to text."""


class EmbeddingFailure(VectorSpaceError):
    """The embedding provider failed or broke its dimension contract."""
