# moonrt

Building blocks for the runtime of a small embeddable scripting language,
written in plain Python with no third-party dependencies.

## What is inside

- `moonrt.lexer`: the tokenizer. `Lexer` reads one token at a time
  (`next`, `lookahead`); `tokenize` yields every token up to the end of the
  source. Tokens are `Token(kind, value)`, where `kind` is a `Tok` member for
  reserved words and multi-character symbols, or the character code for
  single characters. Errors raise `LexError` with the chunk name and line.
- `moonrt.opcodes`: the virtual machine instruction encoding: `OpCode`,
  `OpMode`, `OpArgMask`, `create_abc`, `create_abx`, the field getters and
  setters (`getarg_a`, `setarg_b`, `getarg_sbx`, ...), RK helpers (`is_k`,
  `index_k`, `rk_as_k`) and the per-opcode mode queries (`op_mode`, `b_mode`,
  `c_mode`, `test_a_mode`, `test_t_mode`).
- `moonrt.objects`: value helpers: number parsing (`str_to_number`, which
  also accepts hexadecimal), "floating point byte" encoding (`int_to_fb`,
  `fb_to_int`), `log2`, `ceil_log2`, primitive equality (`raw_equal`), chunk
  names for messages (`chunk_id`) and a reduced printf (`format_message`).
  `LuaError` is the base of every error the package raises itself.
- `moonrt.strings`: an interning `StringTable` using the runtime's string
  hash (`string_hash`); it doubles its size as it fills.
- `moonrt.memory`: the growth policy for runtime arrays (`grow_size`) and a
  size check for allocations (`check_block_size`), both raising
  `MemoryLimitError`.
- `moonrt.patterns`: the pattern matcher: `find`, `match`, `gmatch`, `gsub`,
  with character classes (`%a`, `%d`, ...), sets, captures, position
  captures, `%b` and `%f`. Malformed patterns raise `PatternError`.
- `moonrt.strlib`: string functions `length`, `sub`, `reverse`, `lower`,
  `upper`, `rep`, `byte`, `char`, `quote` and printf-style `format`.
- `moonrt.mathlib`: math functions (`floor`, `fmod`, `frexp`, `min`, `max`,
  `random`, `randomseed`, ...) returning C-style results (NaN, infinities)
  on domain errors and overflow.
- `moonrt.oslib`: `execute`, `remove`, `rename`, `tmpname`, `getenv`,
  `clock`, `date`, `time`, `difftime`, `setlocale` and `exit`.
- `moonrt.iolib`: file handles (`LuaFile`: `read`, `write`, `lines`, `seek`,
  `setvbuf`, `flush`, `close`) and `IOLibrary` with default input and output,
  `open`, `popen` (runs a shell command), `tmpfile`, `lines` and `type`.
  Data is read as Latin-1 text; failures raise `LuaIOError` carrying `errno`.
- `moonrt.packages`: search paths (`expand_path`, `path_templates`,
  `search_path`) and `Package` with `require`, `module`, `seeall`, a
  `preload` table and a list of `loaders`. Default paths are `./?.lua` and
  `./?.so`, overridable with the `MOONRT_PATH` and `MOONRT_CPATH`
  environment variables (`;;` stands for the default).

## Installation

    pip install .

## Examples

Tokenize a chunk of source:

    from moonrt.lexer import tokenize

    for token in tokenize("local x = 10 .. 'a'", "=demo"):
        print(token)

Match patterns:

    from moonrt import patterns

    patterns.find("hello world", "o w")        # (5, 7)
    patterns.match("key=value", "(%w+)=(%w+)") # ("key", "value")
    patterns.gsub("hello world", "o", "0")     # ("hell0 w0rld", 2)
    list(patterns.gmatch("one two", "%a+"))    # [("one",), ("two",)]

Format strings:

    from moonrt import strlib

    strlib.format("%5.2f|%q", 3.14159, 'a "b"')  # ' 3.14|"a \\"b\\""'

Encode instructions:

    from moonrt.opcodes import OpCode, create_abc, get_opcode, getarg_b

    i = create_abc(OpCode.ADD, 0, 1, 2)
    assert get_opcode(i) is OpCode.ADD and getarg_b(i) == 1

Load modules from a preload table:

    from moonrt.packages import Package

    pkg = Package(path="./?.lua", cpath="./?.so")
    pkg.preload["greet"] = lambda name: {"hello": "world"}
    pkg.require("greet")   # {"hello": "world"}

## What it does not do

There is no parser, code generator or virtual machine here, and no command
to run scripts: the lexer produces tokens and `opcodes` only encodes and
decodes instructions. `Package.file_loader` finds source files but needs a
`compile_file` callable to turn one into a loader. Native libraries found
along `cpath` are never loaded; trying raises an error saying dynamic
libraries are not enabled.

## Running the tests

    pip install .[test]
    pytest