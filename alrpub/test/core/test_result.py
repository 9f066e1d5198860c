"""Tests for alrpub.core.result module."""

import pytest

from alrpub.core.result import Err, Ok, Result


def test_ok_frozen() -> None:
    result = Ok(42)
    with pytest.raises(AttributeError):
        result.value = 0  # type: ignore[misc]


def test_repr() -> None:
    assert repr(Ok("x")) == "Ok('x')"
    assert repr(Err("boom")) == "Err('boom')"


def test_equality() -> None:
    assert Ok(42) == Ok(42)
    assert Ok(42) != Ok(0)
    assert Ok("x") != Err("x")


def test_pattern_matching() -> None:
    result: Result[int, str] = Err("missing")
    match result:
        case Ok(value):
            pytest.fail(f"unexpected value {value}")
        case Err(error):
            assert error == "missing"
