"""Size rules used when growing and allocating runtime arrays."""

from __future__ import annotations

import sys

from moonrt.objects import LuaError

__all__ = ["MemoryLimitError", "grow_size", "check_block_size", "MEMERRMSG"]

MEMERRMSG = "not enough memory"
MINSIZEARRAY = 4
MAX_SIZET = sys.maxsize * 2 + 1


class MemoryLimitError(LuaError):
    """Raised when an allocation request exceeds its limit."""


def grow_size(size: int, limit: int, errormsg: str) -> int:
    """Return the next size for a growing array, doubling up to ``limit``."""
    if size >= limit // 2:
        if size >= limit:
            raise MemoryLimitError(errormsg)
        return limit
    return max(size * 2, MINSIZEARRAY)


def check_block_size(count: int, elem_size: int) -> int:
    """Return the byte size of ``count`` elements, or raise if it is too big."""
    if elem_size <= 0:
        raise ValueError("element size must be positive")
    if count + 1 > MAX_SIZET // elem_size:
        raise MemoryLimitError("memory allocation error: block too big")
    return count * elem_size