"""
Object contracts and value types for the vector space.
Anything stored must render to text; stored items also expose a key used for identity.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from functools import singledispatch
from typing import Any

from ..core.errors import RenderFailure

# Ids fit both FAISS int64 labels and Qdrant unsigned point ids.
ID_MASK = (1 << 63) - 1

LIST_SEPARATOR = "===\n"


class DistanceMetric(str, Enum):
    """Distance metric for vector similarity."""
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"


class Input(ABC):
    """An object that can be rendered to text for embedding."""

    @abstractmethod
    def render(self) -> str:
        """Return a text representation suitable for an embedding model."""
        pass

    def hash(self) -> int:
        """Content id of the rendered text."""
        return content_id(self.render())


class Embeddable(Input):
    """An Input that can be stored in a vector space.

    key() returns the sub-object that identifies the item; it is rendered and
    hashed to address the item on insert and delete. Without an explicit key
    the object is its own key.
    """

    def key(self) -> Any:
        return self


@dataclass(frozen=True)
class TextItem(Embeddable):
    """Plain text item; the text is both the content and the key."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass
class SearchHit:
    """Represents a search result from an index collection."""

    id: int
    """Identifier of the matching vector"""

    score: float
    """Similarity (cosine, dot product) or squared distance (euclidean)"""


def content_id(text: str) -> int:
    """Deterministic 63-bit id of a piece of rendered text."""
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") & ID_MASK


@singledispatch
def render_value(value: Any) -> str:
    """Render any supported value to text, raising RenderFailure otherwise."""
    raise RenderFailure(f"Cannot render object of type {type(value).__name__}")


@render_value.register
def _(value: Input) -> str:
    try:
        return value.render()
    except RenderFailure:
        raise
    except (TypeError, ValueError) as e:
        raise RenderFailure(f"Failed to render {type(value).__name__}: {e}") from e


@render_value.register
def _(value: str) -> str:
    return value


@render_value.register
def _(value: bool) -> str:
    return "true" if value else "false"


@render_value.register(int)
@render_value.register(float)
def _(value) -> str:
    return str(value)


@render_value.register(type(None))
def _(value) -> str:
    return ""


@render_value.register(list)
@render_value.register(tuple)
def _(value) -> str:
    return LIST_SEPARATOR.join(render_value(item) for item in value)


@render_value.register
def _(value: dict) -> str:
    try:
        return json.dumps(value, indent=2, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise RenderFailure(f"Failed to serialize value: {e}") from e


@singledispatch
def key_of(item: Any) -> Any:
    """Key sub-object of a stored item."""
    return item


@key_of.register
def _(item: Embeddable) -> Any:
    return item.key()


def item_id(item: Any) -> int:
    """Id under which an item is stored: the content id of its rendered key."""
    return content_id(render_value(key_of(item)))
