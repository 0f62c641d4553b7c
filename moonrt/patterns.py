"""Pattern matching over strings: find, match, gmatch and gsub."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping

from moonrt.objects import NUMBER_FMT, LuaError

__all__ = ["PatternError", "find", "match", "gmatch", "gsub", "MAXCAPTURES"]

MAXCAPTURES = 32
SPECIALS = "^$*+?.([%-"
L_ESC = "%"

_CAP_UNFINISHED = -1
_CAP_POSITION = -2
_HEXDIGITS = "0123456789abcdefABCDEF"


class PatternError(LuaError):
    """A malformed pattern or an invalid use of captures."""


def _posrelat(pos: int, length: int) -> int:
    """Relative string position: negative means back from the end."""
    return pos if pos >= 0 else length + pos + 1


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


def _class_matches(c: str, cl: str) -> bool:
    """Whether character ``c`` belongs to the class named by ``cl`` (as in %a)."""
    code = ord(c)
    key = cl.lower() if cl.isascii() else cl
    if key == "a":
        res = c.isascii() and c.isalpha()
    elif key == "c":
        res = code < 32 or code == 127
    elif key == "d":
        res = "0" <= c <= "9"
    elif key == "l":
        res = "a" <= c <= "z"
    elif key == "p":
        res = 33 <= code <= 126 and not c.isalnum()
    elif key == "s":
        res = c in " \t\n\v\f\r"
    elif key == "u":
        res = "A" <= c <= "Z"
    elif key == "w":
        res = c.isascii() and c.isalnum()
    elif key == "x":
        res = c in _HEXDIGITS
    elif key == "z":
        res = code == 0
    else:
        return cl == c
    return res if "a" <= cl <= "z" else not res


class _Matcher:
    """Backtracking matcher holding the capture state of one match attempt."""

    def __init__(self, src: str, pat: str) -> None:
        self.src = src
        self.pat = pat
        self.captures: list[list[int]] = []

    def reset(self) -> None:
        self.captures = []

    @property
    def level(self) -> int:
        return len(self.captures)

    # -- pattern items --------------------------------------------------

    def _class_end(self, p: int) -> int:
        pat = self.pat
        c = pat[p]
        p += 1
        if c == L_ESC:
            if p >= len(pat):
                raise PatternError("malformed pattern (ends with '%')")
            return p + 1
        if c == "[":
            if p < len(pat) and pat[p] == "^":
                p += 1
            while True:
                if p >= len(pat):
                    raise PatternError("malformed pattern (missing ']')")
                c2 = pat[p]
                p += 1
                if c2 == L_ESC and p < len(pat):
                    p += 1
                if p < len(pat) and pat[p] == "]":
                    break
            return p + 1
        return p

    def _match_bracket_class(self, c: str, p: int, ec: int) -> bool:
        pat = self.pat
        sig = True
        if pat[p + 1] == "^":
            sig = False
            p += 1
        while True:
            p += 1
            if p >= ec:
                break
            if pat[p] == L_ESC:
                p += 1
                if _class_matches(c, pat[p]):
                    return sig
            elif pat[p + 1] == "-" and p + 2 < ec:
                p += 2
                if pat[p - 2] <= c <= pat[p]:
                    return sig
            elif pat[p] == c:
                return sig
        return not sig

    def _single_match(self, s: int, p: int, ep: int) -> bool:
        if s >= len(self.src):
            return False
        c = self.src[s]
        pc = self.pat[p]
        if pc == ".":
            return True
        if pc == L_ESC:
            return _class_matches(c, self.pat[p + 1])
        if pc == "[":
            return self._match_bracket_class(c, p, ep - 1)
        return pc == c

    def _match_balance(self, s: int, p: int) -> int | None:
        if p + 1 >= len(self.pat):
            raise PatternError("unbalanced pattern")
        src = self.src
        if s >= len(src) or src[s] != self.pat[p]:
            return None
        begin, end = self.pat[p], self.pat[p + 1]
        depth = 1
        s += 1
        while s < len(src):
            if src[s] == end:
                depth -= 1
                if depth == 0:
                    return s + 1
            elif src[s] == begin:
                depth += 1
            s += 1
        return None

    def _max_expand(self, s: int, p: int, ep: int) -> int | None:
        i = 0
        while self._single_match(s + i, p, ep):
            i += 1
        while i >= 0:
            res = self.match(s + i, ep + 1)
            if res is not None:
                return res
            i -= 1
        return None

    def _min_expand(self, s: int, p: int, ep: int) -> int | None:
        while True:
            res = self.match(s, ep + 1)
            if res is not None:
                return res
            if self._single_match(s, p, ep):
                s += 1
            else:
                return None

    # -- captures -------------------------------------------------------

    def _start_capture(self, s: int, p: int, what: int) -> int | None:
        if self.level >= MAXCAPTURES:
            raise PatternError("too many captures")
        self.captures.append([s, what])
        res = self.match(s, p)
        if res is None:
            self.captures.pop()
        return res

    def _capture_to_close(self) -> int:
        for level in range(self.level - 1, -1, -1):
            if self.captures[level][1] == _CAP_UNFINISHED:
                return level
        raise PatternError("invalid pattern capture")

    def _end_capture(self, s: int, p: int) -> int | None:
        level = self._capture_to_close()
        self.captures[level][1] = s - self.captures[level][0]
        res = self.match(s, p)
        if res is None:
            self.captures[level][1] = _CAP_UNFINISHED
        return res

    def _check_capture(self, digit: str) -> int:
        index = ord(digit) - ord("1")
        if index < 0 or index >= self.level or self.captures[index][1] == _CAP_UNFINISHED:
            raise PatternError("invalid capture index")
        return index

    def _match_capture(self, s: int, digit: str) -> int | None:
        init, length = self.captures[self._check_capture(digit)]
        if length < 0:
            return None
        captured = self.src[init : init + length]
        if self.src.startswith(captured, s):
            return s + length
        return None

    def get_onecapture(self, i: int, s: int, e: int) -> str | int:
        if i >= self.level:
            if i == 0:
                return self.src[s:e]
            raise PatternError("invalid capture index")
        init, length = self.captures[i]
        if length == _CAP_UNFINISHED:
            raise PatternError("unfinished capture")
        if length == _CAP_POSITION:
            return init + 1
        return self.src[init : init + length]

    def get_captures(self, s: int, e: int, whole: bool) -> tuple:
        nlevels = 1 if self.level == 0 and whole else self.level
        return tuple(self.get_onecapture(i, s, e) for i in range(nlevels))

    # -- the matcher ----------------------------------------------------

    def match(self, s: int, p: int) -> int | None:
        """Match the pattern from ``p`` against the subject from ``s``."""
        pat = self.pat
        plen = len(pat)
        while True:
            if p == plen:
                return s
            pc = pat[p]
            if pc == "(":
                if p + 1 < plen and pat[p + 1] == ")":
                    return self._start_capture(s, p + 2, _CAP_POSITION)
                return self._start_capture(s, p + 1, _CAP_UNFINISHED)
            if pc == ")":
                return self._end_capture(s, p + 1)
            if pc == "$" and p + 1 == plen:
                return s if s == len(self.src) else None
            if pc == L_ESC and p + 1 < plen:
                nxt = pat[p + 1]
                if nxt == "b":
                    found = self._match_balance(s, p + 2)
                    if found is None:
                        return None
                    s = found
                    p += 4
                    continue
                if nxt == "f":
                    p += 2
                    if p >= plen or pat[p] != "[":
                        raise PatternError("missing '[' after '%f' in pattern")
                    ep = self._class_end(p)
                    previous = self.src[s - 1] if s > 0 else "\0"
                    current = self.src[s] if s < len(self.src) else "\0"
                    if self._match_bracket_class(previous, p, ep - 1) or not (
                        self._match_bracket_class(current, p, ep - 1)
                    ):
                        return None
                    p = ep
                    continue
                if "0" <= nxt <= "9":
                    found = self._match_capture(s, nxt)
                    if found is None:
                        return None
                    s = found
                    p += 2
                    continue
            ep = self._class_end(p)
            matched = self._single_match(s, p, ep)
            suffix = pat[ep] if ep < plen else ""
            if suffix == "?":
                if matched:
                    res = self.match(s + 1, ep + 1)
                    if res is not None:
                        return res
                p = ep + 1
                continue
            if suffix == "*":
                return self._max_expand(s, p, ep)
            if suffix == "+":
                return self._max_expand(s + 1, p, ep) if matched else None
            if suffix == "-":
                return self._min_expand(s, p, ep)
            if not matched:
                return None
            s += 1
            p = ep


def _split_anchor(pattern: str) -> tuple[bool, str]:
    if pattern.startswith("^"):
        return True, pattern[1:]
    return False, pattern


def _start_index(s: str, init: int) -> int:
    start = _posrelat(int(init), len(s)) - 1
    return min(max(start, 0), len(s))


def _find_aux(s: str, pattern: str, init: int, plain: bool, find: bool) -> tuple | None:
    start = _start_index(s, init)
    if find and (plain or not any(ch in SPECIALS for ch in pattern)):
        idx = s.find(pattern, start)
        if idx >= 0:
            return (idx + 1, idx + len(pattern))
        return None
    anchor, pat = _split_anchor(pattern)
    matcher = _Matcher(s, pat)
    s1 = start
    while True:
        matcher.reset()
        end = matcher.match(s1, 0)
        if end is not None:
            if find:
                return (s1 + 1, end) + matcher.get_captures(s1, end, False)
            return matcher.get_captures(s1, end, True)
        s1 += 1
        if s1 > len(s) or anchor:
            return None


def find(s: str, pattern: str, init: int = 1, plain: bool = False) -> tuple | None:
    """Return (start, end, *captures) of the first match, or None."""
    return _find_aux(s, pattern, init, plain, True)


def match(s: str, pattern: str, init: int = 1) -> tuple | None:
    """Return the captures of the first match (or the whole match), or None."""
    return _find_aux(s, pattern, init, False, False)


def gmatch(s: str, pattern: str) -> Iterator[tuple]:
    """Yield the captures of every successive match in ``s``."""
    matcher = _Matcher(s, pattern)
    start = 0
    while True:
        for src in range(start, len(s) + 1):
            matcher.reset()
            end = matcher.match(src, 0)
            if end is not None:
                start = end if end > src else end + 1
                yield matcher.get_captures(src, end, True)
                break
        else:
            return


def _add_s(matcher: _Matcher, out: list[str], s: int, e: int, news: str) -> None:
    i = 0
    while i < len(news):
        ch = news[i]
        if ch != L_ESC:
            out.append(ch)
        else:
            i += 1
            ch = news[i] if i < len(news) else "\0"
            if not "0" <= ch <= "9":
                out.append(ch)
            elif ch == "0":
                out.append(matcher.src[s:e])
            else:
                value = matcher.get_onecapture(ord(ch) - ord("1"), s, e)
                out.append(NUMBER_FMT % value if isinstance(value, int) else value)
        i += 1


def _add_value(
    matcher: _Matcher,
    out: list[str],
    s: int,
    e: int,
    repl: str | float | Callable | Mapping,
) -> None:
    if isinstance(repl, str):
        _add_s(matcher, out, s, e, repl)
        return
    if isinstance(repl, (int, float)) and not isinstance(repl, bool):
        _add_s(matcher, out, s, e, NUMBER_FMT % repl)
        return
    if callable(repl):
        value = repl(*matcher.get_captures(s, e, True))
    elif isinstance(repl, Mapping):
        value = repl.get(matcher.get_onecapture(0, s, e))
    else:
        raise LuaError("bad argument #3 to 'gsub' (string/function/table expected)")
    if value is None or value is False:
        out.append(matcher.src[s:e])
    elif isinstance(value, str):
        out.append(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        out.append(NUMBER_FMT % value)
    else:
        raise LuaError(f"invalid replacement value (a {_typename(value)})")


def gsub(
    s: str,
    pattern: str,
    repl: str | float | Callable | Mapping,
    max_n: int | None = None,
) -> tuple[str, int]:
    """Replace matches of ``pattern``; return (new string, number of matches)."""
    limit = len(s) + 1 if max_n is None else int(max_n)
    anchor, pat = _split_anchor(pattern)
    matcher = _Matcher(s, pat)
    out: list[str] = []
    pos = 0
    count = 0
    while count < limit:
        matcher.reset()
        end = matcher.match(pos, 0)
        if end is not None:
            count += 1
            _add_value(matcher, out, pos, end, repl)
        if end is not None and end > pos:
            pos = end
        elif pos < len(s):
            out.append(s[pos])
            pos += 1
        else:
            break
        if anchor:
            break
    out.append(s[pos:])
    return "".join(out), count