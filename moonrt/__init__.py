"""Runtime pieces of a small scripting language: lexer, instruction encoding, patterns and libraries."""

__version__ = "0.1.0"