"""
vectorspace: store arbitrary objects and retrieve them by semantic similarity.
"""

from .core.errors import (
    BackendFailure,
    EmbeddingFailure,
    InvalidNamespace,
    KeyCollision,
    KeyNotFound,
    RenderFailure,
    VectorSpaceError,
)
from .vector import (
    DeterministicHashEmbedding,
    Embeddable,
    FaissVectorSpace,
    IEmbeddingProvider,
    Input,
    Namespace,
    TextItem,
    VectorSpace,
)

__version__ = "0.1.0"
