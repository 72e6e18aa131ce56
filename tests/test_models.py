from datetime import datetime

import pytest

from modbreeze.exceptions import ConfigValidationError, InvalidLoaderError
from modbreeze.models.api import _parse_date
from modbreeze.models import (
    CurseForgeId,
    ModLoader,
    ModReference,
    ModrinthId,
    ModSide,
)


def test_reference_equality_by_id_only():
    a = ModReference("A", ModrinthId("x"), ModSide.CLIENT)
    b = ModReference("B", ModrinthId("x"), ModSide.SERVER, ignore_loader=True)
    assert a == b
    assert len({a, b}) == 1


def test_registry_namespaces_are_distinct():
    assert CurseForgeId(1) != ModrinthId("1")
    assert str(CurseForgeId(1)) == str(ModrinthId("1"))


def test_dependency_inherits_flags():
    parent = ModReference(
        "Parent", ModrinthId("p"), ModSide.CLIENT, ignore_loader=True, ignore_version=True
    )
    dep = parent.dependency(CurseForgeId(7))

    assert dep.name == "Dependency of Parent"
    assert dep.id == CurseForgeId(7)
    assert dep.side == ModSide.CLIENT
    assert dep.ignore_loader and dep.ignore_version


def test_loader_parsing():
    assert ModLoader.from_str(" FORGE ") == ModLoader.FORGE
    with pytest.raises(InvalidLoaderError):
        ModLoader.from_str("neoforge")


def test_side_parsing():
    assert ModSide.from_str("c") == ModSide.CLIENT
    with pytest.raises(ConfigValidationError):
        ModSide.from_str("resourcepack")


def test_error_serialization():
    error = InvalidLoaderError("rift")
    data = error.to_dict()

    assert data["code"] == "E103"
    assert data["context"] == {"loader": "rift"}
    assert str(error).startswith("[E103]")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-01T10:20:50.5Z", datetime(2024, 1, 1, 10, 20, 50, 500000)),
        ("2024-01-01T10:20:50.1234567Z", datetime(2024, 1, 1, 10, 20, 50, 123456)),
        ("2024-01-01T10:20:50Z", datetime(2024, 1, 1, 10, 20, 50)),
        ("garbage", datetime.min),
        (None, datetime.min),
    ],
)
def test_parse_date_accepts_any_fraction_length(value, expected):
    assert _parse_date(value) == expected
