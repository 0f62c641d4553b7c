"""Module loading: search paths, ``require``, ``module`` and ``seeall``."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any

from moonrt.objects import LuaError

__all__ = [
    "ModuleNotFound",
    "Package",
    "expand_path",
    "path_templates",
    "search_path",
    "c_function_name",
    "package_name",
    "PATHSEP",
    "PATH_MARK",
    "EXECDIR",
    "IGMARK",
    "DIRSEP",
    "OPEN_PREFIX",
    "DLMSG",
]

PATHSEP = ";"
PATH_MARK = "?"
EXECDIR = "!"
IGMARK = "-"
DIRSEP = os.sep
OPEN_PREFIX = "luaopen_"
OPEN_SEP = "_"
AUXMARK = "\1"
DLMSG = "dynamic libraries not enabled; check your installation"

PATH_ENV = "MOONRT_PATH"
CPATH_ENV = "MOONRT_CPATH"
PATH_DEFAULT = "./?.lua"
CPATH_DEFAULT = "./?.so"


class ModuleNotFound(LuaError):
    """No loader could find the requested module."""


class _Sentinel:
    """Marks a module whose loading is in progress."""

    def __repr__(self) -> str:
        return "<loading>"


_LOADING = _Sentinel()


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


def _check_name(value: object, fname: str) -> str:
    if isinstance(value, str):
        return value
    raise LuaError(
        f"bad argument #1 to '{fname}' (string expected, got {_typename(value)})"
    )


def expand_path(env_value: str | None, default: str) -> str:
    """Return ``default`` if unset; otherwise put ``default`` where ';;' appears."""
    if env_value is None:
        return default
    marked = env_value.replace(PATHSEP + PATHSEP, PATHSEP + AUXMARK + PATHSEP)
    return marked.replace(AUXMARK, default)


def path_templates(path: str) -> list[str]:
    """Split a search path into its non-empty templates."""
    return [template for template in path.split(PATHSEP) if template]


def _readable(filename: str) -> bool:
    try:
        with open(filename, "rb"):
            return True
    except OSError:
        return False


def search_path(name: str, path: str) -> tuple[str | None, str]:
    """Find the first readable file for ``name`` along ``path``.

    Returns ``(filename, "")`` on success, or ``(None, message)`` where the
    message lists every file that was tried.
    """
    name = name.replace(".", DIRSEP)
    tried = []
    for template in path_templates(path):
        filename = template.replace(PATH_MARK, name)
        if _readable(filename):
            return filename, ""
        tried.append(f"\n\tno file '{filename}'")
    return None, "".join(tried)


def c_function_name(modname: str) -> str:
    """Name of the open function for a native module."""
    _, mark, rest = modname.partition(IGMARK)
    if mark:
        modname = rest
    return OPEN_PREFIX + modname.replace(".", OPEN_SEP)


def package_name(modname: str) -> str:
    """The module name minus its last part, keeping the final dot."""
    dot = modname.rfind(".")
    return modname[: dot + 1] if dot >= 0 else ""


def _load_error(name: str, filename: str, msg: str) -> LuaError:
    return LuaError(
        f"error loading module '{name}' from file '{filename}':\n\t{msg}"
    )


class Package:
    """The package library: loaded modules, preloads, loaders and paths."""

    def __init__(
        self,
        path: str | None = None,
        cpath: str | None = None,
        compile_file: Callable[[str], Callable] | None = None,
    ) -> None:
        self.path = path if path is not None else expand_path(
            os.environ.get(PATH_ENV), PATH_DEFAULT
        )
        self.cpath = cpath if cpath is not None else expand_path(
            os.environ.get(CPATH_ENV), CPATH_DEFAULT
        )
        self.compile_file = compile_file
        self.config = "\n".join((DIRSEP, PATHSEP, PATH_MARK, EXECDIR, IGMARK))
        self.loaded: dict[str, Any] = {}
        self.preload: dict[str, Any] = {}
        self.loaders: list[Callable[[str], Any]] = [
            self.preload_loader,
            self.file_loader,
            self._c_loader,
            self._croot_loader,
        ]
        self.globals: dict[str, Any] = {"require": self.require, "module": self.module}
        self.metatables: dict[int, dict[str, Any]] = {}

    # -- loaders ------------------------------------------------------------

    def _find(self, name: str, field: str) -> tuple[str | None, str]:
        path = getattr(self, field)
        if not isinstance(path, str):
            raise LuaError(f"'package.{field}' must be a string")
        return search_path(name, path)

    def preload_loader(self, name: str):
        """Return the preloaded loader for ``name``, or a 'not found' message."""
        name = _check_name(name, "require")
        if not isinstance(self.preload, Mapping):
            raise LuaError("'package.preload' must be a table")
        loader = self.preload.get(name)
        if loader is None:
            return f"\n\tno field package.preload['{name}']"
        return loader

    def file_loader(self, name: str):
        """Compile the source file for ``name`` found along ``path``."""
        name = _check_name(name, "require")
        filename, message = self._find(name, "path")
        if filename is None:
            return message
        if self.compile_file is None:
            raise _load_error(name, filename, "no compiler available")
        try:
            return self.compile_file(filename)
        except LuaError as err:
            raise _load_error(name, filename, str(err)) from err
        except OSError as err:
            raise _load_error(name, filename, f"cannot read {filename}") from err

    def _c_loader(self, name: str):
        name = _check_name(name, "require")
        filename, message = self._find(name, "cpath")
        if filename is None:
            return message
        # native libraries cannot be loaded here
        raise _load_error(name, filename, DLMSG)

    def _croot_loader(self, name: str):
        name = _check_name(name, "require")
        root, dot, _ = name.partition(".")
        if not dot:
            return None
        filename, message = self._find(root, "cpath")
        if filename is None:
            return message
        raise _load_error(name, filename, DLMSG)

    # -- require / module -----------------------------------------------------

    def require(self, name: str):
        """Load a module once and return its value."""
        name = _check_name(name, "require")
        value = self.loaded.get(name)
        if value is not None and value is not False:
            if value is _LOADING:
                raise LuaError(f"loop or previous error loading module '{name}'")
            return value
        if not isinstance(self.loaders, list):
            raise LuaError("'package.loaders' must be a table")
        messages = []
        for loader in self.loaders:
            result = loader(name)
            if callable(result):
                break
            if isinstance(result, str):
                messages.append(result)
        else:
            raise ModuleNotFound(f"module '{name}' not found:{''.join(messages)}")
        self.loaded[name] = _LOADING
        value = result(name)
        if value is not None:
            self.loaded[name] = value
        if self.loaded.get(name) is _LOADING:
            self.loaded[name] = True
        return self.loaded[name]

    def _find_table(self, name: str) -> dict:
        table = self.globals
        for part in name.split("."):
            value = table.get(part)
            if value is None:
                value = {}
                table[part] = value
            elif not isinstance(value, dict):
                raise LuaError(f"name conflict for module '{name}'")
            table = value
        return table

    def module(self, name: str, *args: Callable[[dict], Any]) -> dict:
        """Create or reuse the module table ``name``, apply options, return it."""
        name = _check_name(name, "module")
        table = self.loaded.get(name)
        if not isinstance(table, dict):
            table = self._find_table(name)
            self.loaded[name] = table
        if table.get("_NAME") is None:
            table["_M"] = table
            table["_NAME"] = name
            table["_PACKAGE"] = package_name(name)
        for option in args:
            option(table)
        return table

    def seeall(self, module: dict) -> dict:
        """Give ``module`` a metatable whose ``__index`` is the globals table."""
        if not isinstance(module, dict):
            raise LuaError(
                f"bad argument #1 to 'seeall' (table expected, got {_typename(module)})"
            )
        metatable = self.metatables.setdefault(id(module), {})
        metatable["__index"] = self.globals
        return metatable