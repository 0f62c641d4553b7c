"""Mathematical functions with C library behaviour on domain errors and overflow."""

from __future__ import annotations

import math as _m
import random as _random

from moonrt.objects import LuaError, str_to_number

__all__ = [
    "PI",
    "HUGE",
    "abs",
    "acos",
    "asin",
    "atan",
    "atan2",
    "ceil",
    "cos",
    "cosh",
    "deg",
    "exp",
    "floor",
    "fmod",
    "frexp",
    "ldexp",
    "log",
    "log10",
    "max",
    "min",
    "modf",
    "pow",
    "rad",
    "random",
    "randomseed",
    "sin",
    "sinh",
    "sqrt",
    "tan",
    "tanh",
]

PI = 3.14159265358979323846
HUGE = _m.inf
RADIANS_PER_DEGREE = PI / 180.0

_NAN = _m.nan
_NO_VALUE = object()
_rng = _random.Random()


def _typename(value: object) -> str:
    if value is _NO_VALUE:
        return "no value"
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (str, bytes)):
        return "string"
    if isinstance(value, dict):
        return "table"
    if callable(value):
        return "function"
    return "userdata"


def _arg_error(pos: int, fname: str, msg: str) -> LuaError:
    return LuaError(f"bad argument #{pos} to '{fname}' ({msg})")


def _check_number(value: object, pos: int, fname: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        number = str_to_number(value)
        if number is not None:
            return number
    raise _arg_error(pos, fname, f"number expected, got {_typename(value)}")


def _check_int(value: object, pos: int, fname: str) -> int:
    number = _check_number(value, pos, fname)
    if not _m.isfinite(number):
        raise _arg_error(pos, fname, "number has no integer representation")
    return int(number)


def _odd_integer(y: float) -> bool:
    return _m.isfinite(y) and y == _m.floor(y) and _m.fmod(y, 2.0) != 0.0


def abs(x):
    """Absolute value."""
    return _m.fabs(_check_number(x, 1, "abs"))


def sin(x):
    """Sine; NaN for infinite arguments."""
    try:
        return _m.sin(_check_number(x, 1, "sin"))
    except ValueError:
        return _NAN


def cos(x):
    """Cosine; NaN for infinite arguments."""
    try:
        return _m.cos(_check_number(x, 1, "cos"))
    except ValueError:
        return _NAN


def tan(x):
    """Tangent; NaN for infinite arguments."""
    try:
        return _m.tan(_check_number(x, 1, "tan"))
    except ValueError:
        return _NAN


def sinh(x):
    """Hyperbolic sine; signed infinity on overflow."""
    value = _check_number(x, 1, "sinh")
    try:
        return _m.sinh(value)
    except OverflowError:
        return _m.copysign(HUGE, value)


def cosh(x):
    """Hyperbolic cosine; infinity on overflow."""
    try:
        return _m.cosh(_check_number(x, 1, "cosh"))
    except OverflowError:
        return HUGE


def tanh(x):
    """Hyperbolic tangent."""
    return _m.tanh(_check_number(x, 1, "tanh"))


def asin(x):
    """Arc sine; NaN outside [-1, 1]."""
    try:
        return _m.asin(_check_number(x, 1, "asin"))
    except ValueError:
        return _NAN


def acos(x):
    """Arc cosine; NaN outside [-1, 1]."""
    try:
        return _m.acos(_check_number(x, 1, "acos"))
    except ValueError:
        return _NAN


def atan(x):
    """Arc tangent."""
    return _m.atan(_check_number(x, 1, "atan"))


def atan2(y, x):
    """Arc tangent of y/x using the signs of both."""
    return _m.atan2(_check_number(y, 1, "atan2"), _check_number(x, 2, "atan2"))


def ceil(x):
    """Smallest integral value not below x, as a float."""
    value = _check_number(x, 1, "ceil")
    return float(_m.ceil(value)) if _m.isfinite(value) else value


def floor(x):
    """Largest integral value not above x, as a float."""
    value = _check_number(x, 1, "floor")
    return float(_m.floor(value)) if _m.isfinite(value) else value


def fmod(x, y):
    """Remainder of x/y with the sign of x; NaN for a zero divisor."""
    try:
        return _m.fmod(_check_number(x, 1, "fmod"), _check_number(y, 2, "fmod"))
    except ValueError:
        return _NAN


def modf(x):
    """Split x into (integral part, fractional part)."""
    fp, ip = _m.modf(_check_number(x, 1, "modf"))
    return ip, fp


def sqrt(x):
    """Square root; NaN for negative arguments."""
    try:
        return _m.sqrt(_check_number(x, 1, "sqrt"))
    except ValueError:
        return _NAN


def pow(x, y):
    """x raised to y, with C results on overflow and domain errors."""
    base = _check_number(x, 1, "pow")
    expo = _check_number(y, 2, "pow")
    try:
        return _m.pow(base, expo)
    except OverflowError:
        return -HUGE if base < 0 and _odd_integer(expo) else HUGE
    except ValueError:
        if base == 0:
            return _m.copysign(HUGE, base) if _odd_integer(expo) else HUGE
        return _NAN


def log(x):
    """Natural logarithm; -inf at zero, NaN for negatives."""
    value = _check_number(x, 1, "log")
    try:
        return _m.log(value)
    except ValueError:
        return -HUGE if value == 0 else _NAN


def log10(x):
    """Base-10 logarithm; -inf at zero, NaN for negatives."""
    value = _check_number(x, 1, "log10")
    try:
        return _m.log10(value)
    except ValueError:
        return -HUGE if value == 0 else _NAN


def exp(x):
    """e raised to x; infinity on overflow."""
    try:
        return _m.exp(_check_number(x, 1, "exp"))
    except OverflowError:
        return HUGE


def deg(x):
    """Convert radians to degrees."""
    return _check_number(x, 1, "deg") / RADIANS_PER_DEGREE


def rad(x):
    """Convert degrees to radians."""
    return _check_number(x, 1, "rad") * RADIANS_PER_DEGREE


def frexp(x):
    """Split x into a mantissa in [0.5, 1) and a power of two."""
    mantissa, exponent = _m.frexp(_check_number(x, 1, "frexp"))
    return mantissa, exponent


def ldexp(m, e):
    """Return m * 2**e, the exponent truncated to an integer."""
    mantissa = _check_number(m, 1, "ldexp")
    exponent = _check_int(e, 2, "ldexp")
    try:
        return _m.ldexp(mantissa, exponent)
    except OverflowError:
        return _m.copysign(HUGE, mantissa)


def min(*args):
    """Smallest of one or more numbers."""
    first = args[0] if args else _NO_VALUE
    result = _check_number(first, 1, "min")
    for pos, value in enumerate(args[1:], start=2):
        number = _check_number(value, pos, "min")
        if number < result:
            result = number
    return result


def max(*args):
    """Largest of one or more numbers."""
    first = args[0] if args else _NO_VALUE
    result = _check_number(first, 1, "max")
    for pos, value in enumerate(args[1:], start=2):
        number = _check_number(value, pos, "max")
        if number > result:
            result = number
    return result


def random(*args):
    """A number in [0, 1), or an integer in [1, u] or [l, u], as a float."""
    r = _rng.random()
    if not args:
        return r
    if len(args) == 1:
        upper = _check_int(args[0], 1, "random")
        if upper < 1:
            raise _arg_error(1, "random", "interval is empty")
        return float(_m.floor(r * upper) + 1)
    if len(args) == 2:
        lower = _check_int(args[0], 1, "random")
        upper = _check_int(args[1], 2, "random")
        if lower > upper:
            raise _arg_error(2, "random", "interval is empty")
        return float(_m.floor(r * (upper - lower + 1)) + lower)
    raise LuaError("wrong number of arguments")


def randomseed(seed):
    """Seed the generator used by random()."""
    _rng.seed(_check_int(seed, 1, "randomseed"))