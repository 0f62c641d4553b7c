import errno
import io
import sys

import pytest

from moonrt.iolib import IOLibrary, LuaFile, LuaIOError
from moonrt.objects import LuaError


@pytest.fixture
def lib():
    return IOLibrary(stdin=io.BytesIO(b"first\nsecond\n"), stdout=io.BytesIO(), stderr=io.BytesIO())


def _make(tmp_path, content: bytes):
    path = tmp_path / "data.txt"
    path.write_bytes(content)
    return str(path)


def test_open_missing_file_raises(lib, tmp_path):
    name = str(tmp_path / "missing.txt")
    with pytest.raises(LuaIOError) as info:
        lib.open(name)
    assert info.value.errno == errno.ENOENT
    assert str(info.value).startswith(name + ": ")


def test_open_invalid_mode(lib, tmp_path):
    name = _make(tmp_path, b"x")
    with pytest.raises(LuaIOError) as info:
        lib.open(name, "q")
    assert info.value.errno == errno.EINVAL


def test_write_then_read_all(lib, tmp_path):
    name = str(tmp_path / "out.txt")
    f = lib.open(name, "w")
    assert f.write("abc", "def") is True
    f.close()
    g = lib.open(name)
    assert g.read("*a") == "abcdef"
    assert g.read("*a") == ""
    g.close()


def test_read_lines_default_format(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"one\ntwo\n"))
    assert f.read() == "one"
    assert f.read("*l") == "two"
    assert f.read() is None


def test_read_number_then_chars(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"  12.5 abc"))
    assert f.read("*n") == 12.5
    assert f.read("*n") is None
    assert f.read(3) == "abc"


def test_read_several_formats(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"1 2 rest"))
    assert f.read("*n", "*n") == (1.0, 2.0)


def test_read_stops_at_failure(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"7"))
    assert f.read("*n", "*l", "*n") == (7.0, None)


def test_read_zero_checks_eof(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"z"))
    assert f.read(0) == ""
    assert f.read(1) == "z"
    assert f.read(0) is None


def test_read_invalid_options(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"z"))
    with pytest.raises(LuaError, match="invalid option"):
        f.read("x")
    with pytest.raises(LuaError, match="invalid format"):
        f.read("*z")


def test_seek(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"hello"), "r+")
    assert f.seek("set", 1) == 1
    assert f.read(2) == "el"
    assert f.seek() == 3
    assert f.seek("end") == len("hello")
    with pytest.raises(LuaError, match="invalid option"):
        f.seek("bad")


def test_closed_file(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"x"))
    assert lib.type(f) == "file"
    assert str(f).startswith("file (0x")
    assert f.close() is True
    assert f.closed() is True
    assert lib.type(f) == "closed file"
    assert str(f) == "file (closed)"
    with pytest.raises(LuaError, match="attempt to use a closed file"):
        f.write("y")
    with pytest.raises(LuaError, match="attempt to use a closed file"):
        f.read()


def test_type_of_non_file(lib):
    assert lib.type("x") is None
    assert lib.type(None) is None


def test_lines_from_filename_closes(lib, tmp_path):
    name = _make(tmp_path, b"a\nb\nc")
    assert list(lib.lines(name)) == ["a", "b", "c"]


def test_lines_missing_file(lib, tmp_path):
    with pytest.raises(LuaError, match="bad argument #1 to 'lines'"):
        lib.lines(str(tmp_path / "nope"))


def test_file_lines_keeps_open(lib, tmp_path):
    f = lib.open(_make(tmp_path, b"a\nb\n"))
    assert list(f.lines()) == ["a", "b"]
    assert f.closed() is False


def test_default_input_and_output():
    out = io.BytesIO()
    lib = IOLibrary(stdin=io.BytesIO(b"line1\nline2"), stdout=out, stderr=io.BytesIO())
    assert lib.read() == "line1"
    assert list(lib.lines()) == ["line2"]
    assert lib.write("x", 1.5) is True
    assert out.getvalue() == b"x1.5"


def test_input_from_filename(lib, tmp_path):
    name = _make(tmp_path, b"hello\n")
    current = lib.input(name)
    assert lib.input() is current
    assert lib.read() == "hello"


def test_output_to_filename(lib, tmp_path):
    name = str(tmp_path / "o.txt")
    lib.output(name)
    lib.write("data")
    lib.close()
    with open(name, "rb") as fh:
        assert fh.read() == b"data"


def test_close_default_output(lib):
    assert lib.close() is True
    with pytest.raises(LuaError, match="standard output file is closed"):
        lib.write("x")


def test_input_rejects_non_file(lib):
    with pytest.raises(LuaError, match="FILE\\* expected"):
        lib.input(object())


def test_write_rejects_boolean(lib, tmp_path):
    f = lib.open(str(tmp_path / "w.txt"), "w")
    with pytest.raises(LuaError, match="string expected, got boolean"):
        f.write(True)


def test_tmpfile_round_trip(lib):
    f = lib.tmpfile()
    f.write("abc\n", 3)
    assert f.seek("set") == 0
    assert f.read("*l", "*n") == ("abc", 3.0)
    f.close()
    assert f.closed()


def test_setvbuf(lib, tmp_path):
    name = str(tmp_path / "v.txt")
    f = lib.open(name, "w")
    assert f.setvbuf("no") is True
    f.write("q")
    with open(name, "rb") as fh:
        assert fh.read() == b"q"
    with pytest.raises(LuaError, match="invalid option"):
        f.setvbuf("sometimes")


def test_popen_reads_output(lib):
    command = '"' + sys.executable + '" -c "print(42)"'
    f = lib.popen(command)
    assert f.read("*n") == 42.0
    assert f.close() is True


def test_wrap_existing_stream():
    f = LuaFile(io.BytesIO(b"abc"))
    assert f.read(2) == "ab"
    assert f.flush() is True