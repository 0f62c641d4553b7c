"""Lexical analyzer turning source text into tokens."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum

from moonrt.objects import LuaError, chunk_id, str_to_number

__all__ = [
    "FIRST_RESERVED",
    "RESERVED_WORDS",
    "Tok",
    "Token",
    "LexError",
    "Lexer",
    "token_to_str",
    "tokenize",
]

FIRST_RESERVED = 257
MAXSRC = 80
_MAX_INT = 2**31 - 3
_UCHAR_MAX = 255


class Tok(IntEnum):
    """Multi-character token kinds; single characters use their code."""

    AND = 257
    BREAK = 258
    DO = 259
    ELSE = 260
    ELSEIF = 261
    END = 262
    FALSE = 263
    FOR = 264
    FUNCTION = 265
    IF = 266
    IN = 267
    LOCAL = 268
    NIL = 269
    NOT = 270
    OR = 271
    REPEAT = 272
    RETURN = 273
    THEN = 274
    TRUE = 275
    UNTIL = 276
    WHILE = 277
    CONCAT = 278
    DOTS = 279
    EQ = 280
    GE = 281
    LE = 282
    NE = 283
    NUMBER = 284
    NAME = 285
    STRING = 286
    EOS = 287


RESERVED_WORDS: tuple[str, ...] = (
    "and", "break", "do", "else", "elseif",
    "end", "false", "for", "function", "if",
    "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while",
)

_TOKEN_NAMES: tuple[str, ...] = RESERVED_WORDS + (
    "..", "...", "==", ">=", "<=", "~=",
    "<number>", "<name>", "<string>", "<eof>",
)

_RESERVED = {word: Tok(FIRST_RESERVED + i) for i, word in enumerate(RESERVED_WORDS)}

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}

_COMPARISONS = {"=": Tok.EQ, "<": Tok.LE, ">": Tok.GE, "~": Tok.NE}


@dataclass(frozen=True)
class Token:
    """A token kind with its semantic value (number, name or string bytes)."""

    kind: int
    value: object = None


class LexError(LuaError):
    """A lexical or syntax error, with the chunk name and line in its message."""


def token_to_str(token: int) -> str:
    """Return the printable form of a token kind."""
    if token < FIRST_RESERVED:
        if token < 32 or token == 127:
            return f"char({token})"
        return chr(token)
    return _TOKEN_NAMES[token - FIRST_RESERVED]


def _isdigit(c: str | None) -> bool:
    return c is not None and "0" <= c <= "9"


def _isalpha(c: str | None) -> bool:
    return c is not None and c.isascii() and c.isalpha()


def _isalnum(c: str | None) -> bool:
    return c is not None and c.isascii() and c.isalnum()


def _isspace(c: str | None) -> bool:
    return c is not None and c in " \t\n\v\f\r"


class Lexer:
    """Reads tokens one at a time from a source chunk."""

    def __init__(self, source: str | bytes, chunkname: str = "?") -> None:
        data = source.encode("utf-8") if isinstance(source, str) else bytes(source)
        # one character per byte, so every byte value is handled uniformly
        self._text = data.decode("latin-1")
        self._pos = 0
        self._buff: list[str] = []
        self.chunkname = chunkname
        self.linenumber = 1
        self.lastline = 1
        self.t = Token(Tok.EOS)
        self.ahead = Token(Tok.EOS)
        self.current: str | None = None
        self._advance()

    # -- character handling -------------------------------------------------

    def _advance(self) -> None:
        if self._pos < len(self._text):
            self.current = self._text[self._pos]
            self._pos += 1
        else:
            self.current = None

    def _save(self, c: str) -> None:
        self._buff.append(c)

    def _save_and_next(self) -> None:
        self._buff.append(self.current)  # type: ignore[arg-type]
        self._advance()

    def _at_newline(self) -> bool:
        return self.current is not None and self.current in "\n\r"

    def _check_next(self, chars: str) -> bool:
        if self.current is None or self.current not in chars:
            return False
        self._save_and_next()
        return True

    def _inc_linenumber(self) -> None:
        old = self.current
        self._advance()
        if self._at_newline() and self.current != old:
            self._advance()
        self.linenumber += 1
        if self.linenumber >= _MAX_INT:
            self.syntax_error("chunk has too many lines")

    # -- errors -------------------------------------------------------------

    def _token_text(self, token: int) -> str:
        if token in (Tok.NAME, Tok.STRING, Tok.NUMBER):
            return "".join(self._buff).split("\0", 1)[0]
        return token_to_str(token)

    def lex_error(self, msg: str, token: int | None = None) -> None:
        """Raise a LexError at the current line, naming ``token`` if given."""
        message = f"{chunk_id(self.chunkname, MAXSRC)}:{self.linenumber}: {msg}"
        if token:
            message = f"{message} near '{self._token_text(token)}'"
        raise LexError(message)

    def syntax_error(self, msg: str) -> None:
        """Raise a LexError near the current token."""
        self.lex_error(msg, self.t.kind)

    # -- token readers ------------------------------------------------------

    def _read_numeral(self) -> Token:
        while True:
            self._save_and_next()
            if not (_isdigit(self.current) or self.current == "."):
                break
        if self._check_next("Ee"):
            self._check_next("+-")
        while _isalnum(self.current) or self.current == "_":
            self._save_and_next()
        value = str_to_number("".join(self._buff))
        if value is None:
            self.lex_error("malformed number", Tok.NUMBER)
        return Token(Tok.NUMBER, value)

    def _skip_sep(self) -> int:
        s = self.current
        count = 0
        self._save_and_next()
        while self.current == "=":
            self._save_and_next()
            count += 1
        return count if self.current == s else -count - 1

    def _read_long_string(self, sep: int, keep: bool) -> str:
        self._save_and_next()  # second '['
        if self._at_newline():
            self._inc_linenumber()
        while True:
            c = self.current
            if c is None:
                self.lex_error(
                    "unfinished long string" if keep else "unfinished long comment",
                    Tok.EOS,
                )
            elif c == "]":
                if self._skip_sep() == sep:
                    self._save_and_next()
                    break
            elif c in "\n\r":
                self._save("\n")
                self._inc_linenumber()
                if not keep:
                    self._buff.clear()
            elif keep:
                self._save_and_next()
            else:
                self._advance()
        text = "".join(self._buff)
        return text[2 + sep : len(text) - (2 + sep)] if keep else ""

    def _read_string(self, delim: str) -> str:
        self._save_and_next()
        while self.current != delim:
            c = self.current
            if c is None:
                self.lex_error("unfinished string", Tok.EOS)
            if c in "\n\r":
                self.lex_error("unfinished string", Tok.STRING)
            if c != "\\":
                self._save_and_next()
                continue
            self._advance()  # the backslash is not kept
            c = self.current
            if c is None:
                continue  # reported on the next pass
            if c in _ESCAPES:
                self._save(_ESCAPES[c])
                self._advance()
            elif c in "\n\r":
                self._save("\n")
                self._inc_linenumber()
            elif not _isdigit(c):
                self._save_and_next()
            else:
                value = 0
                digits = 0
                while True:
                    value = 10 * value + (ord(self.current) - ord("0"))  # type: ignore[arg-type]
                    self._advance()
                    digits += 1
                    if digits >= 3 or not _isdigit(self.current):
                        break
                if value > _UCHAR_MAX:
                    self.lex_error("escape sequence too large", Tok.STRING)
                self._save(chr(value))
        self._save_and_next()  # closing delimiter
        text = "".join(self._buff)
        return text[1:-1]

    def _llex(self) -> Token:
        self._buff.clear()
        while True:
            c = self.current
            if c is None:
                return Token(Tok.EOS)
            if c in "\n\r":
                self._inc_linenumber()
                continue
            if c == "-":
                self._advance()
                if self.current != "-":
                    return Token(ord("-"))
                self._advance()
                if self.current == "[":
                    sep = self._skip_sep()
                    self._buff.clear()
                    if sep >= 0:
                        self._read_long_string(sep, False)
                        self._buff.clear()
                        continue
                while self.current is not None and not self._at_newline():
                    self._advance()
                continue
            if c == "[":
                sep = self._skip_sep()
                if sep >= 0:
                    text = self._read_long_string(sep, True)
                    return Token(Tok.STRING, text.encode("latin-1"))
                if sep == -1:
                    return Token(ord("["))
                self.lex_error("invalid long string delimiter", Tok.STRING)
            if c in _COMPARISONS:
                self._advance()
                if self.current != "=":
                    return Token(ord(c))
                self._advance()
                return Token(_COMPARISONS[c])
            if c in "\"'":
                return Token(Tok.STRING, self._read_string(c).encode("latin-1"))
            if c == ".":
                self._save_and_next()
                if self._check_next("."):
                    if self._check_next("."):
                        return Token(Tok.DOTS)
                    return Token(Tok.CONCAT)
                if not _isdigit(self.current):
                    return Token(ord("."))
                return self._read_numeral()
            if _isspace(c):
                self._advance()
                continue
            if _isdigit(c):
                return self._read_numeral()
            if _isalpha(c) or c == "_":
                while True:
                    self._save_and_next()
                    if not (_isalnum(self.current) or self.current == "_"):
                        break
                word = "".join(self._buff)
                reserved = _RESERVED.get(word)
                if reserved is not None:
                    return Token(reserved)
                return Token(Tok.NAME, word)
            self._advance()
            return Token(ord(c))

    # -- public interface ---------------------------------------------------

    def next(self) -> Token:
        """Advance to the next token and return it."""
        self.lastline = self.linenumber
        if self.ahead.kind != Tok.EOS:
            self.t = self.ahead
            self.ahead = Token(Tok.EOS)
        else:
            self.t = self._llex()
        return self.t

    def lookahead(self) -> Token:
        """Read the token after the current one without consuming it."""
        if self.ahead.kind != Tok.EOS:
            raise RuntimeError("a look-ahead token is already pending")
        self.ahead = self._llex()
        return self.ahead


def tokenize(source: str | bytes, chunkname: str = "?") -> Iterator[Token]:
    """Yield every token of ``source`` up to, not including, the end of stream."""
    lexer = Lexer(source, chunkname)
    while True:
        token = lexer.next()
        if token.kind == Tok.EOS:
            return
        yield token