from __future__ import annotations

import pytest

from surreal_access.errors import ConfigurationError
from surreal_access.references import is_record, parse_reference, validate_relation

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("reference", "expected"),
    [
        ("item", ("item", None)),
        ("item:1", ("item", 1)),
        ("item:abc", ("item", "abc")),
        ("item:⟨a-b c⟩", ("item", "a-b c")),
        ("item:`x.y`", ("item", "x.y")),
        ("__health__:probe", ("__health__", "probe")),
    ],
)
def test_parse_reference(reference: str, expected: tuple[str, object]) -> None:
    assert parse_reference(reference) == expected


@pytest.mark.parametrize("reference", ["", "item:", ":1", "1item", "item:1;DELETE item", "a b"])
def test_invalid_references_are_rejected(reference: str) -> None:
    with pytest.raises(ConfigurationError, match="Invalid record reference"):
        parse_reference(reference)


def test_is_record() -> None:
    assert is_record("item:1") is True
    assert is_record("item") is False


def test_relation_names_must_be_identifiers() -> None:
    assert validate_relation("likes") == "likes"
    with pytest.raises(ConfigurationError):
        validate_relation("likes->evil")
