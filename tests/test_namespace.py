"""
Tests for namespace validation and value semantics.
"""

import pytest

from vectorspace.core.errors import InvalidNamespace
from vectorspace.vector.namespace import Namespace


@pytest.mark.parametrize("name", ["docs", "namespace1", "a", "tenant_123", "with space", "UPPER-lower.dots"])
def test_valid_names_round_trip(name):
    """Any non-empty ASCII string is accepted and converts back to itself."""
    ns = Namespace.validate(name)

    assert str(ns) == name
    assert ns.name == name


@pytest.mark.parametrize("name", ["", "café", "名前", "emoji🙂"])
def test_invalid_names_rejected(name):
    """Empty and non-ASCII names fail with InvalidNamespace."""
    with pytest.raises(InvalidNamespace):
        Namespace.validate(name)


def test_non_string_rejected():
    with pytest.raises(InvalidNamespace):
        Namespace(42)


def test_value_equality_and_hashing():
    """Namespaces with the same name are interchangeable as mapping keys."""
    a = Namespace("docs")
    b = Namespace("docs")

    assert a == b
    assert hash(a) == hash(b)
    assert {a: 1}[b] == 1
    assert Namespace("docs") != Namespace("other")


def test_namespace_is_immutable():
    ns = Namespace("docs")

    with pytest.raises(AttributeError):
        ns.name = "changed"


def test_coerce_accepts_namespace_or_string():
    ns = Namespace("docs")

    assert Namespace.coerce(ns) is ns
    assert Namespace.coerce("docs") == ns

    with pytest.raises(InvalidNamespace):
        Namespace.coerce("")
