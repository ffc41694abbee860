"""
Namespaces group related items in a vector space.
Each namespace owns an independent index; names are validated on every call.
"""

from dataclasses import dataclass
from typing import Union

from ..core.errors import InvalidNamespace


@dataclass(frozen=True)
class Namespace:
    """Validated, immutable namespace name."""

    name: str

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise InvalidNamespace(f"Namespace must be a string, got {type(self.name).__name__}")
        if not self.name:
            raise InvalidNamespace("Namespace cannot be empty")
        if not self.name.isascii():
            raise InvalidNamespace("Only ascii characters are allowed")

    @classmethod
    def validate(cls, name: str) -> "Namespace":
        """Build a Namespace from a raw string, raising InvalidNamespace if malformed."""
        return cls(name)

    @classmethod
    def coerce(cls, value: Union["Namespace", str]) -> "Namespace":
        """Accept either an existing Namespace or a raw name."""
        if isinstance(value, Namespace):
            return value
        return cls(value)

    def __str__(self) -> str:
        return self.name
