"""String functions: slicing, case, repetition, bytes and printf-style formatting."""

from __future__ import annotations

from collections.abc import Mapping

from moonrt.objects import NUMBER_FMT, LuaError, str_to_number

__all__ = [
    "length",
    "sub",
    "reverse",
    "lower",
    "upper",
    "rep",
    "byte",
    "char",
    "quote",
    "format",
]

FLAGS = "-+ #0"
_UNSIGNED_MASK = 2**64 - 1
_NO_VALUE = object()

_LOWER = {code: code + 32 for code in range(ord("A"), ord("Z") + 1)}
_UPPER = {code: code - 32 for code in range(ord("a"), ord("z") + 1)}


def _typename(value: object) -> str:
    if value is _NO_VALUE:
        return "no value"
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (str, bytes)):
        return "string"
    if isinstance(value, Mapping):
        return "table"
    if callable(value):
        return "function"
    return "userdata"


def _arg_error(pos: int, fname: str, msg: str) -> LuaError:
    return LuaError(f"bad argument #{pos} to '{fname}' ({msg})")


def _check_string(value: object, pos: int, fname: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return NUMBER_FMT % value
    raise _arg_error(pos, fname, f"string expected, got {_typename(value)}")


def _check_number(value: object, pos: int, fname: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        number = str_to_number(value)
        if number is not None:
            return number
    raise _arg_error(pos, fname, f"number expected, got {_typename(value)}")


def _check_int(value: object, pos: int, fname: str) -> int:
    return int(_check_number(value, pos, fname))


def _posrelat(pos: int, length: int) -> int:
    """Relative string position: negative means back from the end."""
    return pos if pos >= 0 else length + pos + 1


def length(s: str) -> int:
    """Length of a string."""
    return len(_check_string(s, 1, "len"))


def sub(s: str, i: int, j: int = -1) -> str:
    """Substring from position ``i`` to ``j`` inclusive, 1-based, negatives from the end."""
    text = _check_string(s, 1, "sub")
    start = _posrelat(_check_int(i, 2, "sub"), len(text))
    end = _posrelat(_check_int(j, 3, "sub"), len(text))
    start = max(start, 1)
    end = min(end, len(text))
    if start <= end:
        return text[start - 1 : end]
    return ""


def reverse(s: str) -> str:
    """The string reversed."""
    return _check_string(s, 1, "reverse")[::-1]


def lower(s: str) -> str:
    """ASCII letters converted to lower case."""
    return _check_string(s, 1, "lower").translate(_LOWER)


def upper(s: str) -> str:
    """ASCII letters converted to upper case."""
    return _check_string(s, 1, "upper").translate(_UPPER)


def rep(s: str, n: int) -> str:
    """The string repeated ``n`` times; empty when ``n`` is not positive."""
    text = _check_string(s, 1, "rep")
    return text * max(_check_int(n, 2, "rep"), 0)


def byte(s: str, i: int = 1, j: int | None = None) -> tuple[int, ...]:
    """Character codes of positions ``i`` through ``j`` (default ``i``)."""
    text = _check_string(s, 1, "byte")
    posi = _posrelat(_check_int(i, 2, "byte"), len(text))
    pose = posi if j is None else _posrelat(_check_int(j, 3, "byte"), len(text))
    posi = max(posi, 1)
    pose = min(pose, len(text))
    if posi > pose:
        return ()
    return tuple(ord(c) for c in text[posi - 1 : pose])


def char(*args: int) -> str:
    """Build a string from character codes in 0..255."""
    chars = []
    for pos, value in enumerate(args, start=1):
        code = _check_int(value, pos, "char")
        if not 0 <= code <= 255:
            raise _arg_error(pos, "char", "invalid value")
        chars.append(chr(code))
    return "".join(chars)


def quote(s: str) -> str:
    """Quote a string so that it can be read back by the lexer."""
    text = _check_string(s, 1, "format")
    out = ['"']
    for c in text:
        if c in '"\\\n':
            out.append("\\" + c)
        elif c == "\r":
            out.append("\\r")
        elif c == "\0":
            out.append("\\000")
        else:
            out.append(c)
    out.append('"')
    return "".join(out)


def _scan_format(fmt: str, start: int) -> tuple[str, str, str | None, int]:
    """Read flags, width and precision; return (flags, width, precision, end)."""
    n = len(fmt)
    p = start
    while p < n and fmt[p] in FLAGS:
        p += 1
    if p - start >= len(FLAGS) + 1:
        raise LuaError("invalid format (repeated flags)")
    flags = fmt[start:p]

    def digits(pos: int) -> int:
        for _ in range(2):
            if pos < n and fmt[pos].isdigit():
                pos += 1
        return pos

    width_end = digits(p)
    width = fmt[p:width_end]
    p = width_end
    precision = None
    if p < n and fmt[p] == ".":
        prec_end = digits(p + 1)
        precision = fmt[p + 1 : prec_end]
        p = prec_end
    if p < n and fmt[p].isdigit():
        raise LuaError("invalid format (width or precision too long)")
    return flags, width, precision, p


def _alternate_octal(value: int, flags: str, width: str, precision: str | None) -> str:
    body = ("%." + precision + "o") % value if precision is not None else "%o" % value
    if not body.startswith("0"):
        body = "0" + body
    size = int(width) if width else 0
    if len(body) >= size:
        return body
    if "-" in flags:
        return body.ljust(size)
    if "0" in flags and precision is None:
        return body.rjust(size, "0")
    return body.rjust(size)


def format(fmt: str, *args: object) -> str:
    """Format values following a printf-like format string."""
    text = _check_string(fmt, 1, "format")
    out: list[str] = []
    n = len(text)
    pos = 0
    arg = 1
    while pos < n:
        c = text[pos]
        if c != "%":
            out.append(c)
            pos += 1
            continue
        pos += 1
        if pos < n and text[pos] == "%":
            out.append("%")
            pos += 1
            continue
        arg += 1
        flags, width, precision, pos = _scan_format(text, pos)
        conv = text[pos] if pos < n else ""
        pos += 1
        form = "%" + flags + width + ("" if precision is None else "." + precision)
        value = args[arg - 2] if arg - 2 < len(args) else _NO_VALUE
        if conv == "c":
            item = (form + "c") % (_check_int(value, arg, "format") & 0xFF)
        elif conv in ("d", "i"):
            item = (form + "d") % _check_int(value, arg, "format")
        elif conv in ("o", "u", "x", "X"):
            number = _check_int(value, arg, "format") & _UNSIGNED_MASK
            if conv == "o" and "#" in flags:
                item = _alternate_octal(number, flags, width, precision)
            else:
                item = (form + ("d" if conv == "u" else conv)) % number
        elif conv in ("e", "E", "f", "g", "G"):
            item = (form + conv) % _check_number(value, arg, "format")
        elif conv == "q":
            out.append(quote(_check_string(value, arg, "format")))
            continue
        elif conv == "s":
            string = _check_string(value, arg, "format")
            if precision is None and len(string) >= 100:
                out.append(string)
                continue
            item = (form + "s") % string
        else:
            raise LuaError(f"invalid option '%{conv}' to 'format'")
        out.append(item.split("\0", 1)[0])
    return "".join(out)