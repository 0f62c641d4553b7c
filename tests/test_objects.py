import pytest

from moonrt.objects import (
    LuaError,
    ceil_log2,
    chunk_id,
    fb_to_int,
    format_message,
    int_to_fb,
    log2,
    raw_equal,
    str_to_number,
)


def test_small_values_encode_as_themselves():
    for x in range(8):
        assert int_to_fb(x) == x
        assert fb_to_int(x) == x


def test_fb_round_trip_over_byte_range():
    for y in range(256):
        assert int_to_fb(fb_to_int(y)) == y


def test_int_to_fb_never_underestimates():
    for x in range(5000):
        assert fb_to_int(int_to_fb(x)) >= x


def test_int_to_fb_rejects_negative():
    with pytest.raises(ValueError):
        int_to_fb(-1)


def test_log2_bounds():
    for x in range(1, 3000):
        k = log2(x)
        assert 2**k <= x < 2 ** (k + 1)


def test_log2_of_zero():
    assert log2(0) == -1


def test_ceil_log2_invariants():
    for k in range(20):
        assert ceil_log2(2**k) == k
    for x in range(1, 3000):
        k = ceil_log2(x)
        assert 2**k >= x
        if k > 0:
            assert 2 ** (k - 1) < x


def test_raw_equal():
    assert raw_equal(None, None)
    assert raw_equal(3, 3.0)
    assert not raw_equal(True, 1)
    assert raw_equal(False, False)
    assert raw_equal("abc", "abc")
    assert not raw_equal("1", 1)
    a, b = [], []
    assert raw_equal(a, a)
    assert not raw_equal(a, b)


def test_str_to_number_decimal():
    assert str_to_number("10") == 10.0
    assert str_to_number("  42  ") == 42.0
    assert str_to_number("1e2") == 100.0


def test_str_to_number_hex():
    assert str_to_number("0x10") == 16.0
    assert str_to_number("0XfF") == str_to_number("0xff")


def test_str_to_number_failures():
    assert str_to_number("abc") is None
    assert str_to_number("5x") is None
    assert str_to_number("") is None
    assert str_to_number("1 2") is None
    assert str_to_number("0x") is None


def test_format_message():
    assert format_message("%s: %s", "file", "oops") == "file: oops"
    assert format_message("line %d", 7) == "line 7"
    assert format_message("100%%") == "100%"
    assert format_message("%s", None) == "(null)"
    assert format_message("%c", ord("x")) == "x"
    assert format_message("%f", 1.5) == "1.5"
    assert format_message("%q") == "%q"


def test_format_message_pointer_is_hex():
    assert format_message("%p", 255).startswith("0x")


def test_format_message_missing_argument():
    with pytest.raises(ValueError):
        format_message("%s")


def test_chunk_id_forms():
    assert chunk_id("=stdin") == "stdin"
    assert chunk_id("@script.lua") == "script.lua"
    assert chunk_id("print(1)") == '[string "print(1)"]'
    assert chunk_id("a = 1\nb = 2") == '[string "a = 1..."]'


def test_chunk_id_long_file_name_keeps_tail():
    name = "d" * 200 + "/tail.lua"
    out = chunk_id("@" + name, 80)
    assert out.startswith("...")
    assert out.endswith("tail.lua")
    assert len(out) < 80


def test_chunk_id_long_string_truncated():
    out = chunk_id("x" * 200, 80)
    assert out.endswith('..."]')
    assert len(out) < 80


def test_lua_error_carries_message():
    err = LuaError("boom")
    assert str(err) == "boom"
    assert err.args == ("boom",)