import locale
import os

import pytest

from moonrt import oslib
from moonrt.objects import LuaError


def test_getenv_reads_environment(monkeypatch):
    monkeypatch.setenv("MOONRT_SAMPLE_VAR", "hello")
    assert oslib.getenv("MOONRT_SAMPLE_VAR") == "hello"


def test_getenv_missing_is_none(monkeypatch):
    monkeypatch.delenv("MOONRT_SAMPLE_VAR", raising=False)
    assert oslib.getenv("MOONRT_SAMPLE_VAR") is None


def test_remove_file(tmp_path):
    target = tmp_path / "data.txt"
    target.write_text("x")
    oslib.remove(str(target))
    assert not target.exists()


def test_remove_empty_directory(tmp_path):
    target = tmp_path / "sub"
    target.mkdir()
    oslib.remove(str(target))
    assert not target.exists()


def test_remove_missing_file_reports_name(tmp_path):
    target = str(tmp_path / "missing.txt")
    with pytest.raises(OSError) as info:
        oslib.remove(target)
    assert info.value.errno == 2
    assert str(info.value).find(target) >= 0


def test_rename_moves_file(tmp_path):
    src = tmp_path / "a.txt"
    dst = tmp_path / "b.txt"
    src.write_text("content")
    oslib.rename(str(src), str(dst))
    assert not src.exists()
    assert dst.read_text() == "content"


def test_rename_missing_source_raises(tmp_path):
    src = str(tmp_path / "nope.txt")
    with pytest.raises(OSError) as info:
        oslib.rename(src, str(tmp_path / "other.txt"))
    assert src in str(info.value)


def test_tmpname_creates_distinct_files():
    first = oslib.tmpname()
    second = oslib.tmpname()
    try:
        assert first != second
        assert os.path.exists(first)
        assert os.path.exists(second)
    finally:
        os.remove(first)
        os.remove(second)


def test_clock_is_monotone():
    c1 = oslib.clock()
    c2 = oslib.clock()
    assert 0 <= c1 <= c2


def test_date_utc_epoch():
    assert oslib.date("!%Y-%m-%d", 0) == "1970-01-01"


def test_date_table_round_trips_through_time():
    t = 1_000_000_000
    fields = oslib.date("*t", t)
    assert oslib.time(fields) == t


def test_date_utc_table_fields():
    fields = oslib.date("!*t", 0)
    assert fields["year"] == 1970
    assert fields["month"] == 1
    assert fields["day"] == 1
    assert fields["yday"] == 1
    assert fields["isdst"] is False


def test_date_empty_result_is_error():
    with pytest.raises(LuaError, match="'date' format too long"):
        oslib.date("", 0)


def test_date_overlong_result_is_error():
    with pytest.raises(LuaError, match="format too long"):
        oslib.date("x" * 300, 0)


def test_time_without_argument_is_close_to_now():
    import time as stdtime

    before = int(stdtime.time())
    now = oslib.time()
    after = int(stdtime.time())
    assert before <= now <= after


def test_time_missing_field_raises():
    with pytest.raises(LuaError, match="field 'day' missing in date table"):
        oslib.time({"year": 2000, "month": 1})


def test_time_rejects_non_table():
    with pytest.raises(TypeError):
        oslib.time(42)


def test_time_default_hour_is_noon():
    noon = oslib.time({"year": 2001, "month": 5, "day": 3, "hour": 12})
    default = oslib.time({"year": 2001, "month": 5, "day": 3})
    assert noon == default


def test_time_accepts_numeric_strings():
    as_numbers = oslib.time({"year": 2001, "month": 5, "day": 3})
    as_strings = oslib.time({"year": "2001", "month": "5", "day": "3"})
    assert as_numbers == as_strings


def test_difftime_is_antisymmetric():
    assert oslib.difftime(500, 200) == -oslib.difftime(200, 500)
    assert oslib.difftime(123) == float(123)


def test_setlocale_query_matches_locale_module():
    assert oslib.setlocale(None) == locale.setlocale(locale.LC_ALL)


def test_setlocale_invalid_category():
    with pytest.raises(ValueError, match="invalid option 'bogus'"):
        oslib.setlocale(None, "bogus")


def test_setlocale_unknown_locale_is_none():
    assert oslib.setlocale("no_such_locale.UTF-99", "numeric") is None


def test_execute_success_status():
    assert oslib.execute("exit 0") == 0


def test_execute_without_command_reports_shell():
    status = oslib.execute()
    assert status != 0
    assert oslib.execute(None) == status


def test_exit_raises_system_exit():
    with pytest.raises(SystemExit) as info:
        oslib.exit(3)
    assert info.value.code == 3