"""Tests for rgpt.core.result module."""

import pytest

from rgpt.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_flags(self) -> None:
        result = Ok("x")
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_unwrap_err_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap_err on Ok"):
            Ok(42).unwrap_err()

    def test_map(self) -> None:
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_map_err_is_noop(self) -> None:
        assert Ok(42).map_err(lambda e: f"error: {e}") == Ok(42)

    def test_flat_map(self) -> None:
        result: Result[int, str] = Ok(21)
        assert result.flat_map(lambda x: Ok(x * 2)) == Ok(42)
        assert result.flat_map(lambda _x: Err("boom")) == Err("boom")

    def test_repr(self) -> None:
        assert repr(Ok("a")) == "Ok('a')"


class TestErr:
    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("bad").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        assert Err("bad").unwrap_or(7) == 7

    def test_unwrap_err(self) -> None:
        assert Err("bad").unwrap_err() == "bad"

    def test_map_is_noop(self) -> None:
        assert Err("bad").map(lambda x: x * 2) == Err("bad")

    def test_map_err(self) -> None:
        assert Err("bad").map_err(str.upper) == Err("BAD")

    def test_pattern_matching(self) -> None:
        result: Result[int, str] = Err("nope")
        match result:
            case Ok(value):
                pytest.fail(f"unexpected Ok({value})")
            case Err(error):
                assert error == "nope"


def test_type_guards() -> None:
    assert is_ok(Ok(1))
    assert not is_ok(Err(1))
    assert is_err(Err(1))
    assert not is_err(Ok(1))
