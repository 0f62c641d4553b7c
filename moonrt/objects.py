"""Generic helpers over runtime values: numeric encodings, equality, conversions."""

from __future__ import annotations

import re

__all__ = [
    "LuaError",
    "int_to_fb",
    "fb_to_int",
    "log2",
    "ceil_log2",
    "raw_equal",
    "str_to_number",
    "format_message",
    "chunk_id",
]

NUMBER_FMT = "%.14g"
_C_SPACE = " \t\n\v\f\r"
_ULONG_MAX = 2**64 - 1

_DECIMAL = re.compile(r"[ \t\n\v\f\r]*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_HEX = re.compile(r"[ \t\n\v\f\r]*([+-]?)(0[xX])?([0-9a-fA-F]*)")


class LuaError(Exception):
    """An error raised by the runtime, carrying a message."""


def int_to_fb(x: int) -> int:
    """Encode a non-negative integer as a 'floating point byte' (eeeeexxx)."""
    if x < 0:
        raise ValueError("value must be non-negative")
    e = 0
    while x >= 16:
        x = (x + 1) >> 1
        e += 1
    if x < 8:
        return x
    return ((e + 1) << 3) | (x - 8)


def fb_to_int(x: int) -> int:
    """Decode a 'floating point byte' back into an integer."""
    e = (x >> 3) & 31
    if e == 0:
        return x
    return ((x & 7) + 8) << (e - 1)


def log2(x: int) -> int:
    """Integer floor of log2(x); -1 for zero."""
    if x < 0:
        raise ValueError("value must be non-negative")
    return x.bit_length() - 1


def ceil_log2(x: int) -> int:
    """Integer ceiling of log2(x) for x >= 1."""
    if x < 1:
        raise ValueError("value must be positive")
    return log2(x - 1) + 1


def _is_number(v: object) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def raw_equal(a: object, b: object) -> bool:
    """Primitive equality without metamethods."""
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) or _is_number(b):
        return _is_number(a) and _is_number(b) and a == b
    if isinstance(a, (str, bytes)) and type(a) is type(b):
        return a == b
    return a is b


def _strtoul16(s: str) -> tuple[int, int]:
    """Parse like strtoul(s, 16); return (value, end index)."""
    m = _HEX.match(s)
    sign, prefix, digits = m.group(1), m.group(2), m.group(3)
    if not digits:
        if prefix:
            # only the leading "0" is consumed
            return 0, m.start(2) + 1
        return 0, 0
    value = min(int(digits, 16), _ULONG_MAX)
    if sign == "-":
        value = (-value) & _ULONG_MAX
    return value, m.end()


def str_to_number(s: str) -> float | None:
    """Convert a string to a number as the runtime does; None on failure."""
    m = _DECIMAL.match(s)
    if m is None:
        return None
    result = float(m.group(1))
    end = m.end()
    if end < len(s) and s[end] in "xX":
        value, end = _strtoul16(s)
        result = float(value)
    if s[end:].strip(_C_SPACE):
        return None
    return result


def format_message(fmt: str, *args: object) -> str:
    """Format with the runtime's reduced printf: %d, %c, %f, %p, %s and %%."""
    parts: list[str] = []
    remaining = iter(args)

    def take() -> object:
        try:
            return next(remaining)
        except StopIteration:
            raise ValueError("missing argument for format") from None

    pos = 0
    while True:
        e = fmt.find("%", pos)
        if e < 0:
            break
        parts.append(fmt[pos:e])
        spec = fmt[e + 1 : e + 2]
        if spec == "s":
            value = take()
            parts.append("(null)" if value is None else str(value))
        elif spec == "c":
            parts.append(chr(int(take())))  # type: ignore[arg-type]
        elif spec in ("d", "f"):
            value = take()
            if spec == "d":
                value = int(value)  # type: ignore[arg-type]
            parts.append(NUMBER_FMT % float(value))  # type: ignore[arg-type]
        elif spec == "p":
            value = take()
            address = value if isinstance(value, int) else id(value)
            parts.append(f"{address:#x}")
        elif spec == "%":
            parts.append("%")
        else:
            parts.append("%" + spec)
        pos = e + 2
    parts.append(fmt[pos:])
    return "".join(parts)


def chunk_id(source: str, bufflen: int = 80) -> str:
    """Build a printable chunk name that fits in a buffer of ``bufflen`` bytes."""
    if source.startswith("="):
        return source[1:bufflen][: max(bufflen - 1, 0)]
    if source.startswith("@"):
        name = source[1:]
        room = max(bufflen - len(" '...' ") - 1, 0)
        if len(name) > room:
            return "..." + name[len(name) - room :]
        return name
    cut = len(source)
    for ch in "\n\r":
        idx = source.find(ch)
        if 0 <= idx < cut:
            cut = idx
    room = max(bufflen - len(' [string "..."] ') - 1, 0)
    length = min(cut, room)
    if length < len(source):
        return '[string "' + source[:length] + '..."]'
    return '[string "' + source + '"]'