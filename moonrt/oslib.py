"""Operating-system functions: processes, files, environment, time and locale."""

from __future__ import annotations

import locale as _locale
import os
import shutil
import tempfile
import time as _time
from collections.abc import Mapping

from moonrt.objects import LuaError, str_to_number

__all__ = [
    "execute",
    "remove",
    "rename",
    "tmpname",
    "getenv",
    "clock",
    "date",
    "time",
    "difftime",
    "setlocale",
    "exit",
]

_DATE_BUFFER = 256

_CATEGORIES = {
    "all": _locale.LC_ALL,
    "collate": _locale.LC_COLLATE,
    "ctype": _locale.LC_CTYPE,
    "monetary": _locale.LC_MONETARY,
    "numeric": _locale.LC_NUMERIC,
    "time": _locale.LC_TIME,
}


def _raise_os_error(err: OSError, filename: str) -> None:
    code = err.errno or 0
    raise OSError(code, f"{filename}: {os.strerror(code)}") from err


def execute(command: str | None = None) -> int:
    """Run ``command`` through the shell and return its status.

    Without a command, return nonzero when a shell is available.
    """
    if command is None:
        if os.name == "nt":
            return 1 if os.environ.get("COMSPEC") else 0
        return 1 if shutil.which("sh") else 0
    return os.system(command)


def remove(filename: str) -> None:
    """Remove a file or an empty directory; OSError on failure."""
    try:
        if os.path.isdir(filename) and not os.path.islink(filename):
            os.rmdir(filename)
        else:
            os.remove(filename)
    except OSError as err:
        _raise_os_error(err, filename)


def rename(fromname: str, toname: str) -> None:
    """Rename a file; OSError on failure."""
    try:
        os.rename(fromname, toname)
    except OSError as err:
        _raise_os_error(err, fromname)


def tmpname() -> str:
    """Create a fresh temporary file and return its name."""
    try:
        fd, name = tempfile.mkstemp()
    except OSError as err:
        raise LuaError("unable to generate a unique filename") from err
    os.close(fd)
    return name


def getenv(name: str) -> str | None:
    """Return an environment variable, or None if it is not set."""
    return os.environ.get(name)


def clock() -> float:
    """Return processor time used by the program, in seconds."""
    return _time.process_time()


def date(fmt: str = "%c", t: float | None = None) -> str | dict | None:
    """Format a time; a leading '!' means UTC and '*t' returns a field table.

    Returns None when the time cannot be represented.
    """
    when = int(_time.time()) if t is None else int(t)
    if fmt.startswith("!"):
        convert = _time.gmtime
        fmt = fmt[1:]
    else:
        convert = _time.localtime
    try:
        stm = convert(when)
    except (OverflowError, OSError, ValueError):
        return None
    if fmt == "*t":
        fields: dict = {
            "sec": stm.tm_sec,
            "min": stm.tm_min,
            "hour": stm.tm_hour,
            "day": stm.tm_mday,
            "month": stm.tm_mon,
            "year": stm.tm_year,
            "wday": (stm.tm_wday + 1) % 7 + 1,
            "yday": stm.tm_yday,
        }
        if stm.tm_isdst >= 0:
            fields["isdst"] = bool(stm.tm_isdst)
        return fields
    try:
        result = _time.strftime(fmt, stm)
    except ValueError as err:
        raise LuaError("'date' format too long") from err
    if not result or len(result.encode("utf-8")) >= _DATE_BUFFER:
        raise LuaError("'date' format too long")
    return result


def _to_integer(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        number = str_to_number(value)
        return None if number is None else int(number)
    return None


def _get_field(fields: Mapping, key: str, default: int) -> int:
    value = _to_integer(fields.get(key))
    if value is not None:
        return value
    if default < 0:
        raise LuaError(f"field '{key}' missing in date table")
    return default


def _get_bool_field(fields: Mapping, key: str) -> int:
    value = fields.get(key)
    if value is None:
        return -1
    return 0 if value is False else 1


def time(fields: Mapping | None = None) -> int | None:
    """Return the current time, or the time described by a date table.

    Returns None when the date cannot be represented.
    """
    if fields is None:
        return int(_time.time())
    if not isinstance(fields, Mapping):
        raise TypeError(f"table expected, got {type(fields).__name__}")
    sec = _get_field(fields, "sec", 0)
    minute = _get_field(fields, "min", 0)
    hour = _get_field(fields, "hour", 12)
    day = _get_field(fields, "day", -1)
    month = _get_field(fields, "month", -1)
    year = _get_field(fields, "year", -1)
    isdst = _get_bool_field(fields, "isdst")
    try:
        t = _time.mktime((year, month, day, hour, minute, sec, 0, 1, isdst))
    except (OverflowError, OSError, ValueError):
        return None
    if t == -1:
        return None
    return int(t)


def difftime(t2: float, t1: float = 0) -> float:
    """Return the number of seconds from ``t1`` to ``t2``."""
    return float(int(t2) - int(t1))


def setlocale(locale_name: str | None = None, category: str = "all") -> str | None:
    """Set or query the locale of a category; None if the request fails."""
    try:
        cat = _CATEGORIES[category]
    except KeyError:
        raise ValueError(f"invalid option '{category}'") from None
    try:
        return _locale.setlocale(cat, locale_name)
    except _locale.Error:
        return None


def exit(code: int = 0) -> None:
    """Terminate the program with ``code``."""
    raise SystemExit(int(code))