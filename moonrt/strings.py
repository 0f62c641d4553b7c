"""Interning table holding one shared copy of every runtime string."""

from __future__ import annotations

__all__ = ["StringTable", "string_hash", "MINSTRTABSIZE"]

MINSTRTABSIZE = 32
_MAX_INT = 2**31 - 3
_MASK32 = 0xFFFFFFFF


def _as_bytes(data: bytes | bytearray | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def string_hash(data: bytes | bytearray | str) -> int:
    """Hash a string, sampling at most about 32 of its bytes."""
    raw = _as_bytes(data)
    length = len(raw)
    h = length & _MASK32
    step = (length >> 5) + 1
    l1 = length
    while l1 >= step:
        h = (h ^ (((h << 5) & _MASK32) + (h >> 2) + raw[l1 - 1])) & _MASK32
        l1 -= step
    return h


class StringTable:
    """A chained hash table that interns byte strings."""

    def __init__(self, size: int = MINSTRTABSIZE) -> None:
        self._check_size(size)
        self.size = size
        self._buckets: list[list[bytes]] = [[] for _ in range(size)]
        self._count = 0

    @staticmethod
    def _check_size(size: int) -> None:
        if size <= 0 or size & (size - 1):
            raise ValueError("table size must be a positive power of two")

    def intern(self, data: bytes | bytearray | str) -> bytes:
        """Return the shared copy of ``data``, adding it if it is new."""
        raw = _as_bytes(data)
        h = string_hash(raw)
        bucket = self._buckets[h & (self.size - 1)]
        for existing in bucket:
            if existing == raw:
                return existing
        bucket.insert(0, raw)
        self._count += 1
        if self._count > self.size and self.size <= _MAX_INT // 2:
            self.resize(self.size * 2)
        return raw

    def resize(self, newsize: int) -> None:
        """Rehash every entry into ``newsize`` buckets."""
        self._check_size(newsize)
        buckets: list[list[bytes]] = [[] for _ in range(newsize)]
        for bucket in self._buckets:
            for entry in bucket:
                buckets[string_hash(entry) & (newsize - 1)].insert(0, entry)
        self._buckets = buckets
        self.size = newsize

    def __len__(self) -> int:
        return self._count

    def __contains__(self, data: object) -> bool:
        if not isinstance(data, (bytes, bytearray, str)):
            return False
        raw = _as_bytes(data)
        return raw in self._buckets[string_hash(raw) & (self.size - 1)]