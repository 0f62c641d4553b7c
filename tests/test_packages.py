import pytest

from moonrt.objects import LuaError
from moonrt.packages import (
    ModuleNotFound,
    Package,
    c_function_name,
    expand_path,
    package_name,
    path_templates,
    search_path,
)


def test_expand_path_unset_uses_default():
    assert expand_path(None, "d/?.x") == "d/?.x"


def test_expand_path_double_separator_inserts_default():
    assert expand_path("a;;b", "D") == "a;D;b"
    assert expand_path("a;b", "D") == "a;b"


def test_path_templates_skips_empty():
    assert path_templates(";a;;b;") == ["a", "b"]


def test_search_path_finds_file(tmp_path):
    (tmp_path / "mod.lua").write_text("x")
    path = f"{tmp_path}/none/?.lua;{tmp_path}/?.lua"
    filename, message = search_path("mod", path)
    assert filename == f"{tmp_path}/mod.lua"
    assert message == ""


def test_search_path_reports_tried(tmp_path):
    path = f"{tmp_path}/?.lua"
    filename, message = search_path("missing", path)
    assert filename is None
    assert message == f"\n\tno file '{tmp_path}/missing.lua'"


def test_c_function_name():
    assert c_function_name("a.b") == "luaopen_a_b"
    assert c_function_name("v2-mod.x") == "luaopen_mod_x"


def test_package_name():
    assert package_name("a.b.c") == "a.b."
    assert package_name("a") == ""


def test_require_preload_cached():
    pkg = Package(path="", cpath="")
    calls = []

    def loader(name):
        calls.append(name)
        return {"answer": 42}

    pkg.preload["m"] = loader
    first = pkg.require("m")
    second = pkg.require("m")
    assert first == {"answer": 42}
    assert second is first
    assert calls == ["m"]


def test_require_none_result_becomes_true():
    pkg = Package(path="", cpath="")
    pkg.preload["m"] = lambda name: None
    assert pkg.require("m") is True
    assert pkg.loaded["m"] is True


def test_require_loop_detected():
    pkg = Package(path="", cpath="")
    pkg.preload["m"] = lambda name: pkg.require("m")
    with pytest.raises(LuaError, match="loop or previous error loading module 'm'"):
        pkg.require("m")


def test_require_not_found_message(tmp_path):
    pkg = Package(path=f"{tmp_path}/?.lua", cpath="")
    with pytest.raises(ModuleNotFound) as info:
        pkg.require("nope")
    message = str(info.value)
    assert message.startswith("module 'nope' not found:")
    assert "no field package.preload['nope']" in message
    assert f"no file '{tmp_path}/nope.lua'" in message


def test_require_from_file(tmp_path):
    (tmp_path / "mod.lua").write_text("source")
    seen = []

    def compile_file(filename):
        seen.append(filename)
        return lambda name: {"name": name}

    pkg = Package(path=f"{tmp_path}/?.lua", cpath="", compile_file=compile_file)
    assert pkg.require("mod") == {"name": "mod"}
    assert seen == [f"{tmp_path}/mod.lua"]


def test_compile_error_wrapped(tmp_path):
    (tmp_path / "bad.lua").write_text("source")

    def compile_file(filename):
        raise LuaError("syntax problem")

    pkg = Package(path=f"{tmp_path}/?.lua", cpath="", compile_file=compile_file)
    with pytest.raises(LuaError, match="error loading module 'bad' from file"):
        pkg.require("bad")


def test_native_library_cannot_load(tmp_path):
    (tmp_path / "nat.so").write_text("")
    pkg = Package(path=f"{tmp_path}/none/?.lua", cpath=f"{tmp_path}/?.so")
    with pytest.raises(LuaError, match="dynamic libraries not enabled"):
        pkg.require("nat")


def test_preload_must_be_table():
    pkg = Package(path="", cpath="")
    pkg.preload = "oops"
    with pytest.raises(LuaError, match="'package.preload' must be a table"):
        pkg.require("x")


def test_module_initialises_fields():
    pkg = Package(path="", cpath="")
    table = pkg.module("a.b")
    assert table["_NAME"] == "a.b"
    assert table["_PACKAGE"] == "a."
    assert table["_M"] is table
    assert pkg.loaded["a.b"] is table
    assert pkg.globals["a"]["b"] is table


def test_module_reuses_and_applies_options():
    pkg = Package(path="", cpath="")
    applied = []
    first = pkg.module("m")
    second = pkg.module("m", applied.append)
    assert second is first
    assert applied == [first]


def test_module_name_conflict():
    pkg = Package(path="", cpath="")
    pkg.globals["x"] = 5
    with pytest.raises(LuaError, match="name conflict for module 'x.y'"):
        pkg.module("x.y")


def test_seeall_sets_index_to_globals():
    pkg = Package(path="", cpath="")
    table = pkg.module("m")
    metatable = pkg.seeall(table)
    assert metatable["__index"] is pkg.globals
    assert pkg.metatables[id(table)] is metatable


def test_seeall_requires_table():
    pkg = Package(path="", cpath="")
    with pytest.raises(LuaError, match="table expected, got number"):
        pkg.seeall(3)


def test_config_lists_separators():
    pkg = Package(path="", cpath="")
    lines = pkg.config.split("\n")
    assert lines[1:] == [";", "?", "!", "-"]