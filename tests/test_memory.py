import pytest

from moonrt.memory import (
    MAX_SIZET,
    MINSIZEARRAY,
    MemoryLimitError,
    check_block_size,
    grow_size,
)
from moonrt.objects import LuaError


def test_grow_from_empty_uses_minimum():
    assert grow_size(0, 1000, "x") == MINSIZEARRAY
    assert grow_size(1, 1000, "x") == MINSIZEARRAY


def test_grow_doubles():
    for size in range(MINSIZEARRAY, 400):
        assert grow_size(size, 1000, "x") == 2 * size


def test_grow_caps_at_limit():
    assert grow_size(60, 100, "x") == 100
    assert grow_size(99, 100, "x") == 100


def test_grow_beyond_limit_raises_with_message():
    with pytest.raises(MemoryLimitError, match="too many local variables"):
        grow_size(100, 100, "too many local variables")


def test_memory_limit_error_is_lua_error():
    with pytest.raises(LuaError):
        grow_size(5, 5, "full")


def test_block_size_product():
    assert check_block_size(3, 8) == 3 * 8
    assert check_block_size(0, 16) == 0


def test_block_too_big():
    with pytest.raises(MemoryLimitError, match="block too big"):
        check_block_size(MAX_SIZET, 2)


def test_block_size_rejects_bad_element_size():
    with pytest.raises(ValueError):
        check_block_size(1, 0)