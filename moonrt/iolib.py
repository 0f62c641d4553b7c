"""File handles and the standard input/output library.

Strings are read and written byte for byte: bytes come back as ``str`` decoded
as Latin-1, and ``str`` values are written as Latin-1 when they fit (UTF-8
otherwise). ``bytes`` may also be written directly.
"""

from __future__ import annotations

import errno as _errno
import os
import subprocess
import sys
import tempfile
from collections.abc import Callable, Iterator, Mapping
from typing import BinaryIO

from moonrt.objects import NUMBER_FMT, LuaError

__all__ = ["LuaIOError", "LuaFile", "IOLibrary", "BUFFERSIZE"]

BUFFERSIZE = 8192

_WHENCE = {"set": os.SEEK_SET, "cur": os.SEEK_CUR, "end": os.SEEK_END}
_VBUF_MODES = ("no", "full", "line")
_FILE_MODES = ("r", "w", "a", "r+", "w+", "a+")
_WHITESPACE = b" \t\n\v\f\r"


class LuaIOError(LuaError):
    """An operating-system failure during a file operation."""

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errno = errno


def _typename(value: object) -> str:
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


def _error_code(err: BaseException) -> int:
    code = getattr(err, "errno", None)
    if code:
        return code
    return _errno.EINVAL if isinstance(err, ValueError) and not isinstance(err, OSError) else _errno.EBADF


def _io_error(err: BaseException, filename: str | None = None) -> LuaIOError:
    code = _error_code(err)
    message = os.strerror(code)
    if filename is not None:
        message = f"{filename}: {message}"
    return LuaIOError(message, code)


def _encode(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


def _decode(data: bytes) -> str:
    return data.decode("latin-1")


def _python_mode(mode: str) -> str:
    base = mode.replace("b", "")
    if base not in _FILE_MODES:
        raise OSError(_errno.EINVAL, os.strerror(_errno.EINVAL))
    return base[0] + "b" + base[1:]


def _open_file(filename: str, mode: str) -> "LuaFile":
    fh = open(filename, _python_mode(mode))  # noqa: SIM115 - owned by LuaFile
    return LuaFile(fh, filename)


def _is_digit(c: bytes) -> bool:
    return len(c) == 1 and c.isdigit()


class LuaFile:
    """A file handle; it stays usable until closed."""

    def __init__(
        self,
        fh: BinaryIO,
        name: str | None = None,
        closer: Callable[[], None] | None = None,
        standard: bool = False,
    ) -> None:
        self._fh: BinaryIO | None = fh
        self.name = name
        self.standard = standard
        self._closer = closer
        self._pushback = b""
        self._vbuf = "full"

    # -- low-level helpers --------------------------------------------------

    def _check(self) -> BinaryIO:
        if self._fh is None:
            raise LuaError("attempt to use a closed file")
        return self._fh

    def _drop_pushback(self) -> None:
        if self._pushback and self._fh is not None and self._fh.seekable():
            self._fh.seek(-len(self._pushback), os.SEEK_CUR)
        self._pushback = b""

    def _getc(self) -> bytes:
        if self._pushback:
            c, self._pushback = self._pushback, b""
            return c
        return self._fh.read(1)  # type: ignore[union-attr]

    def _ungetc(self, c: bytes) -> None:
        if c:
            self._pushback = c

    def _read_bytes(self, n: int | None) -> bytes:
        data = self._pushback
        self._pushback = b""
        if n is None:
            return data + self._fh.read()  # type: ignore[union-attr]
        if data:
            n -= len(data)
        if n > 0:
            data += self._fh.read(n)  # type: ignore[union-attr]
        return data

    def _read_line(self) -> str | None:
        if self._pushback == b"\n":
            self._pushback = b""
            return ""
        line = self._read_bytes(0) + self._fh.readline()  # type: ignore[union-attr]
        if not line:
            return None
        if line.endswith(b"\n"):
            line = line[:-1]
        return _decode(line)

    def _read_number(self) -> float | None:
        c = self._getc()
        while c and c in _WHITESPACE:
            c = self._getc()
        buf = b""
        if c and c in b"+-":
            buf += c
            c = self._getc()
        if c == b"0":
            buf += c
            c = self._getc()
            if c and c in b"xX":
                buf += c
                c = self._getc()
                while c and c in b"0123456789abcdefABCDEF":
                    buf += c
                    c = self._getc()
                self._ungetc(c)
                try:
                    return float(int(buf.replace(b"x", b"").replace(b"X", b""), 16))
                except ValueError:
                    return None
        while _is_digit(c):
            buf += c
            c = self._getc()
        if c == b".":
            buf += c
            c = self._getc()
            while _is_digit(c):
                buf += c
                c = self._getc()
        if c and c in b"eE" and any(ch in b"0123456789" for ch in buf):
            buf += c
            c = self._getc()
            if c and c in b"+-":
                buf += c
                c = self._getc()
            while _is_digit(c):
                buf += c
                c = self._getc()
        self._ungetc(c)
        try:
            return float(buf)
        except ValueError:
            return None

    def _test_eof(self) -> str | None:
        c = self._getc()
        self._ungetc(c)
        return "" if c else None

    def _read_one(self, fmt: object, pos: int, fname: str) -> str | float | None:
        if isinstance(fmt, (int, float)) and not isinstance(fmt, bool):
            n = int(fmt)
            if n == 0:
                return self._test_eof()
            data = self._read_bytes(None if n < 0 else n)
            return _decode(data) if data else None
        if not isinstance(fmt, str) or not fmt.startswith("*"):
            raise LuaError(f"bad argument #{pos} to '{fname}' (invalid option)")
        kind = fmt[1:2]
        if kind == "n":
            return self._read_number()
        if kind == "l":
            return self._read_line()
        if kind == "a":
            return _decode(self._read_bytes(None))
        raise LuaError(f"bad argument #{pos} to '{fname}' (invalid format)")

    def _read(self, args: tuple, first: int, fname: str):
        self._check()
        try:
            if not args:
                return self._read_line()
            results: list = []
            for pos, fmt in enumerate(args, start=first):
                value = self._read_one(fmt, pos, fname)
                results.append(value)
                if value is None:
                    break
        except (OSError, ValueError) as err:
            if isinstance(err, LuaError):
                raise
            raise _io_error(err) from err
        return results[0] if len(args) == 1 else tuple(results)

    def _write(self, args: tuple, first: int, fname: str) -> bool:
        fh = self._check()
        chunks = []
        for pos, value in enumerate(args, start=first):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                chunks.append(_encode(NUMBER_FMT % value))
            elif isinstance(value, (str, bytes, bytearray)):
                chunks.append(_encode(value))
            else:
                raise LuaError(
                    f"bad argument #{pos} to '{fname}' "
                    f"(string expected, got {_typename(value)})"
                )
        try:
            self._drop_pushback()
            for chunk in chunks:
                fh.write(chunk)
                if self._vbuf == "no" or (self._vbuf == "line" and b"\n" in chunk):
                    fh.flush()
        except (OSError, ValueError) as err:
            raise _io_error(err) from err
        return True

    def _lines(self, close_at_eof: bool) -> Iterator[str]:
        while True:
            if self._fh is None:
                raise LuaError("file is already closed")
            try:
                line = self._read_line()
            except (OSError, ValueError) as err:
                raise _io_error(err) from err
            if line is None:
                if close_at_eof:
                    self.close()
                return
            yield line

    # -- public methods -----------------------------------------------------

    def read(self, *args):
        """Read by formats ("*n", "*l", "*a" or a byte count).

        With no format a line is read. One format gives one value; several give
        a tuple that ends at the first failed read, which is None.
        """
        return self._read(args, 2, "read")

    def write(self, *args) -> bool:
        """Write strings and numbers; True on success."""
        return self._write(args, 2, "write")

    def lines(self) -> Iterator[str]:
        """Iterate over the remaining lines without closing the file."""
        self._check()
        return self._lines(False)

    def seek(self, whence: str = "cur", offset: int = 0) -> int:
        """Move the file position and return it, measured from the start."""
        fh = self._check()
        if whence not in _WHENCE:
            raise LuaError(f"bad argument #2 to 'seek' (invalid option '{whence}')")
        try:
            self._drop_pushback()
            fh.seek(int(offset), _WHENCE[whence])
            return fh.tell()
        except (OSError, ValueError) as err:
            raise _io_error(err) from err

    def setvbuf(self, mode: str, size: int = BUFFERSIZE) -> bool:
        """Choose when writes are flushed: "no", "full" or "line"."""
        self._check()
        if mode not in _VBUF_MODES:
            raise LuaError(f"bad argument #2 to 'setvbuf' (invalid option '{mode}')")
        if int(size) < 0:
            raise LuaIOError(os.strerror(_errno.EINVAL), _errno.EINVAL)
        self._vbuf = mode
        return True

    def flush(self) -> bool:
        """Write out buffered data."""
        fh = self._check()
        try:
            fh.flush()
        except (OSError, ValueError) as err:
            raise _io_error(err) from err
        return True

    def close(self) -> bool:
        """Close the file; later use raises LuaError."""
        fh = self._check()
        self._fh = None
        self._pushback = b""
        try:
            if self._closer is not None:
                self._closer()
            else:
                fh.close()
        except (OSError, ValueError) as err:
            raise _io_error(err) from err
        return True

    def closed(self) -> bool:
        """Whether the file has been closed."""
        return self._fh is None

    def __str__(self) -> str:
        if self._fh is None:
            return "file (closed)"
        return f"file (0x{id(self._fh):08x})"


class IOLibrary:
    """The io library: default input and output files and file creation."""

    def __init__(
        self,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ) -> None:
        self.stdin = LuaFile(
            stdin if stdin is not None else getattr(sys.stdin, "buffer", sys.stdin),
            "stdin",
            standard=True,
        )
        self.stdout = LuaFile(
            stdout if stdout is not None else getattr(sys.stdout, "buffer", sys.stdout),
            "stdout",
            standard=True,
        )
        self.stderr = LuaFile(
            stderr if stderr is not None else getattr(sys.stderr, "buffer", sys.stderr),
            "stderr",
            standard=True,
        )
        self._input = self.stdin
        self._output = self.stdout

    @staticmethod
    def _check_file(obj: object, pos: int, fname: str) -> LuaFile:
        if not isinstance(obj, LuaFile):
            raise LuaError(
                f"bad argument #{pos} to '{fname}' (FILE* expected, got {_typename(obj)})"
            )
        obj._check()
        return obj

    @staticmethod
    def _check_name(value: object, pos: int, fname: str) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return NUMBER_FMT % value
        raise LuaError(
            f"bad argument #{pos} to '{fname}' (string expected, got {_typename(value)})"
        )

    def _default(self, current: LuaFile, label: str) -> LuaFile:
        if current.closed():
            raise LuaError(f"standard {label} file is closed")
        return current

    def _set_default(self, file: object, mode: str, fname: str) -> LuaFile:
        if isinstance(file, str):
            try:
                return _open_file(file, mode)
            except OSError as err:
                code = _error_code(err)
                raise LuaError(
                    f"bad argument #1 to '{fname}' ({file}: {os.strerror(code)})"
                ) from err
        return self._check_file(file, 1, fname)

    def open(self, filename: str, mode: str = "r") -> LuaFile:
        """Open a file in a C-style mode; LuaIOError if it cannot be opened."""
        name = self._check_name(filename, 1, "open")
        try:
            return _open_file(name, mode)
        except OSError as err:
            raise _io_error(err, name) from err

    def popen(self, command: str, mode: str = "r") -> LuaFile:
        """Start a shell command and return a file reading or writing its pipe."""
        cmd = self._check_name(command, 1, "popen")
        kind = mode.replace("b", "")
        if kind not in ("r", "w"):
            raise LuaIOError(f"{cmd}: {os.strerror(_errno.EINVAL)}", _errno.EINVAL)
        try:
            if kind == "r":
                proc = subprocess.Popen(cmd, shell=True, stdout=subprocess.PIPE)
                pipe = proc.stdout
            else:
                proc = subprocess.Popen(cmd, shell=True, stdin=subprocess.PIPE)
                pipe = proc.stdin
        except OSError as err:
            raise _io_error(err, cmd) from err

        def closer() -> None:
            pipe.close()  # type: ignore[union-attr]
            proc.wait()

        return LuaFile(pipe, cmd, closer)  # type: ignore[arg-type]

    def tmpfile(self) -> LuaFile:
        """Create an anonymous temporary file open for update."""
        try:
            return LuaFile(tempfile.TemporaryFile("w+b"))
        except OSError as err:
            raise _io_error(err) from err

    def input(self, file: object = None) -> LuaFile:
        """Set the default input (a file name or a file) and return it."""
        if file is not None:
            self._input = self._set_default(file, "r", "input")
        return self._input

    def output(self, file: object = None) -> LuaFile:
        """Set the default output (a file name or a file) and return it."""
        if file is not None:
            self._output = self._set_default(file, "w", "output")
        return self._output

    def read(self, *args):
        """Read from the default input, like LuaFile.read."""
        return self._default(self._input, "input")._read(args, 1, "read")

    def write(self, *args) -> bool:
        """Write to the default output, like LuaFile.write."""
        return self._default(self._output, "output")._write(args, 1, "write")

    def lines(self, filename: str | None = None) -> Iterator[str]:
        """Iterate over lines of a named file (closed at the end) or the default input."""
        if filename is None:
            return self._check_file(self._input, 1, "lines")._lines(False)
        name = self._check_name(filename, 1, "lines")
        try:
            file = _open_file(name, "r")
        except OSError as err:
            code = _error_code(err)
            raise LuaError(
                f"bad argument #1 to 'lines' ({name}: {os.strerror(code)})"
            ) from err
        return file._lines(True)

    def close(self, file: LuaFile | None = None) -> bool:
        """Close a file, or the default output."""
        target = self._output if file is None else file
        return self._check_file(target, 1, "close").close()

    def flush(self) -> bool:
        """Flush the default output."""
        return self._default(self._output, "output").flush()

    def type(self, obj: object) -> str | None:
        """Return "file", "closed file", or None for anything else."""
        if not isinstance(obj, LuaFile):
            return None
        return "closed file" if obj.closed() else "file"