"""
VectorSpace: the operation set every backend implements identically.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Union

from .namespace import Namespace

NamespaceLike = Union[Namespace, str]


class VectorSpace(ABC):
    """Abstract namespaced store of embeddable items searchable by similarity.

    Items must be renderable and keyable (see vectorspace.vector.types); the
    rendered key determines the id an item is stored and deleted under.
    """

    @abstractmethod
    async def namespace_exists(self, namespace: NamespaceLike) -> bool:
        """Check whether a namespace exists. Raises InvalidNamespace if malformed."""
        pass

    @abstractmethod
    async def create_namespace(self, namespace: NamespaceLike) -> None:
        """Create an empty namespace. Raises KeyCollision if it already exists."""
        pass

    @abstractmethod
    async def delete_namespace(self, namespace: NamespaceLike) -> None:
        """Delete a namespace and everything in it. Raises KeyNotFound if absent."""
        pass

    @abstractmethod
    async def add_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        """Embed and store a batch of items. Raises KeyNotFound if the namespace is absent."""
        pass

    async def add_item(self, namespace: NamespaceLike, item: Any) -> None:
        """Embed and store a single item."""
        await self.add_items(namespace, [item])

    @abstractmethod
    async def delete_items(self, namespace: NamespaceLike, items: Iterable[Any]) -> None:
        """Delete a batch of items by key; nothing is deleted if any key is missing."""
        pass

    async def delete_item(self, namespace: NamespaceLike, item: Any) -> None:
        """Delete one item by key. Raises KeyNotFound if it is not stored."""
        await self.delete_items(namespace, [item])

    @abstractmethod
    async def knn(self, namespace: NamespaceLike, query: Any, k: int) -> List[Any]:
        """Return up to k stored items closest to the rendered query, best first."""
        pass

    @abstractmethod
    async def count(self, namespace: NamespaceLike) -> int:
        """Number of items stored in a namespace."""
        pass
