import pytest

from moonrt.strings import MINSTRTABSIZE, StringTable, string_hash


def test_hash_is_deterministic_and_32_bit():
    for text in [b"", b"a", b"hello world", b"x" * 1000]:
        h = string_hash(text)
        assert h == string_hash(bytes(text))
        assert 0 <= h < 2**32


def test_hash_of_empty_string():
    assert string_hash(b"") == 0


def test_hash_accepts_str():
    assert string_hash("abc") == string_hash(b"abc")


def test_long_strings_only_sample_some_bytes():
    base = bytearray(b"a" * 64)
    other = bytearray(base)
    other[1] = ord("z")
    assert string_hash(bytes(base)) == string_hash(bytes(other))


def test_intern_returns_shared_object():
    table = StringTable()
    first = table.intern(b"hello")
    second = table.intern(bytearray(b"hello"))
    assert first is second
    assert len(table) == 1


def test_intern_distinct_strings():
    table = StringTable()
    table.intern(b"one")
    table.intern("two")
    assert len(table) == 2
    assert b"one" in table
    assert "two" in table
    assert b"three" not in table
    assert 5 not in table


def test_table_grows_when_crowded():
    table = StringTable()
    assert table.size == MINSTRTABSIZE
    for n in range(MINSTRTABSIZE + 1):
        table.intern(f"s{n}")
    assert table.size == 2 * MINSTRTABSIZE
    assert len(table) == MINSTRTABSIZE + 1
    assert all(f"s{n}" in table for n in range(MINSTRTABSIZE + 1))


def test_explicit_resize_keeps_entries():
    table = StringTable(4)
    kept = [table.intern(f"w{n}") for n in range(4)]
    table.resize(16)
    assert table.size == 16
    for entry in kept:
        assert table.intern(entry) is entry
    assert len(table) == 4


def test_resize_requires_power_of_two():
    table = StringTable()
    with pytest.raises(ValueError):
        table.resize(24)
    with pytest.raises(ValueError):
        StringTable(0)