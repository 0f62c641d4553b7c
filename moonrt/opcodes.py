"""Virtual machine instruction layout: opcodes, argument fields and opcode modes."""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "OpCode",
    "OpMode",
    "OpArgMask",
    "OPNAMES",
    "NUM_OPCODES",
    "SIZE_A",
    "SIZE_B",
    "SIZE_C",
    "SIZE_BX",
    "SIZE_OP",
    "POS_OP",
    "POS_A",
    "POS_B",
    "POS_C",
    "POS_BX",
    "MAXARG_A",
    "MAXARG_B",
    "MAXARG_C",
    "MAXARG_BX",
    "MAXARG_SBX",
    "BITRK",
    "MAXINDEXRK",
    "NO_REG",
    "LFIELDS_PER_FLUSH",
    "get_opcode",
    "set_opcode",
    "getarg_a",
    "setarg_a",
    "getarg_b",
    "setarg_b",
    "getarg_c",
    "setarg_c",
    "getarg_bx",
    "setarg_bx",
    "getarg_sbx",
    "setarg_sbx",
    "create_abc",
    "create_abx",
    "is_k",
    "index_k",
    "rk_as_k",
    "op_mode",
    "b_mode",
    "c_mode",
    "test_a_mode",
    "test_t_mode",
]

_INSTRUCTION_MASK = 0xFFFFFFFF

SIZE_C = 9
SIZE_B = 9
SIZE_BX = SIZE_C + SIZE_B
SIZE_A = 8
SIZE_OP = 6

POS_OP = 0
POS_A = POS_OP + SIZE_OP
POS_C = POS_A + SIZE_A
POS_B = POS_C + SIZE_C
POS_BX = POS_C

MAXARG_BX = (1 << SIZE_BX) - 1
MAXARG_SBX = MAXARG_BX >> 1
MAXARG_A = (1 << SIZE_A) - 1
MAXARG_B = (1 << SIZE_B) - 1
MAXARG_C = (1 << SIZE_C) - 1

# this bit set means a constant index (clear means a register)
BITRK = 1 << (SIZE_B - 1)
MAXINDEXRK = BITRK - 1

# an invalid register that still fits in 8 bits
NO_REG = MAXARG_A

# number of list items to accumulate before a SETLIST instruction
LFIELDS_PER_FLUSH = 50


class OpMode(IntEnum):
    """Basic instruction formats."""

    ABC = 0
    ABx = 1
    AsBx = 2


class OpArgMask(IntEnum):
    """How an instruction uses its B or C argument."""

    N = 0  # not used
    U = 1  # used
    R = 2  # register or jump offset
    K = 3  # constant or register/constant


class OpCode(IntEnum):
    """Instruction opcodes, in encoding order."""

    MOVE = 0
    LOADK = 1
    LOADBOOL = 2
    LOADNIL = 3
    GETUPVAL = 4
    GETGLOBAL = 5
    GETTABLE = 6
    SETGLOBAL = 7
    SETUPVAL = 8
    SETTABLE = 9
    NEWTABLE = 10
    SELF = 11
    ADD = 12
    SUB = 13
    MUL = 14
    DIV = 15
    MOD = 16
    POW = 17
    UNM = 18
    NOT = 19
    LEN = 20
    CONCAT = 21
    JMP = 22
    EQ = 23
    LT = 24
    LE = 25
    TEST = 26
    TESTSET = 27
    CALL = 28
    TAILCALL = 29
    RETURN = 30
    FORLOOP = 31
    FORPREP = 32
    TFORLOOP = 33
    SETLIST = 34
    CLOSE = 35
    CLOSURE = 36
    VARARG = 37


NUM_OPCODES = len(OpCode)
OPNAMES: tuple[str, ...] = tuple(op.name for op in OpCode)


def _opmode(t: int, a: int, b: OpArgMask, c: OpArgMask, m: OpMode) -> int:
    return (t << 7) | (a << 6) | (b << 4) | (c << 2) | m


_N, _U, _R, _K = OpArgMask.N, OpArgMask.U, OpArgMask.R, OpArgMask.K

_OPMODES: dict[OpCode, int] = {
    OpCode.MOVE: _opmode(0, 1, _R, _N, OpMode.ABC),
    OpCode.LOADK: _opmode(0, 1, _K, _N, OpMode.ABx),
    OpCode.LOADBOOL: _opmode(0, 1, _U, _U, OpMode.ABC),
    OpCode.LOADNIL: _opmode(0, 1, _R, _N, OpMode.ABC),
    OpCode.GETUPVAL: _opmode(0, 1, _U, _N, OpMode.ABC),
    OpCode.GETGLOBAL: _opmode(0, 1, _K, _N, OpMode.ABx),
    OpCode.GETTABLE: _opmode(0, 1, _R, _K, OpMode.ABC),
    OpCode.SETGLOBAL: _opmode(0, 0, _K, _N, OpMode.ABx),
    OpCode.SETUPVAL: _opmode(0, 0, _U, _N, OpMode.ABC),
    OpCode.SETTABLE: _opmode(0, 0, _K, _K, OpMode.ABC),
    OpCode.NEWTABLE: _opmode(0, 1, _U, _U, OpMode.ABC),
    OpCode.SELF: _opmode(0, 1, _R, _K, OpMode.ABC),
    OpCode.ADD: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.SUB: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.MUL: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.DIV: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.MOD: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.POW: _opmode(0, 1, _K, _K, OpMode.ABC),
    OpCode.UNM: _opmode(0, 1, _R, _N, OpMode.ABC),
    OpCode.NOT: _opmode(0, 1, _R, _N, OpMode.ABC),
    OpCode.LEN: _opmode(0, 1, _R, _N, OpMode.ABC),
    OpCode.CONCAT: _opmode(0, 1, _R, _R, OpMode.ABC),
    OpCode.JMP: _opmode(0, 0, _R, _N, OpMode.AsBx),
    OpCode.EQ: _opmode(1, 0, _K, _K, OpMode.ABC),
    OpCode.LT: _opmode(1, 0, _K, _K, OpMode.ABC),
    OpCode.LE: _opmode(1, 0, _K, _K, OpMode.ABC),
    OpCode.TEST: _opmode(1, 1, _R, _U, OpMode.ABC),
    OpCode.TESTSET: _opmode(1, 1, _R, _U, OpMode.ABC),
    OpCode.CALL: _opmode(0, 1, _U, _U, OpMode.ABC),
    OpCode.TAILCALL: _opmode(0, 1, _U, _U, OpMode.ABC),
    OpCode.RETURN: _opmode(0, 0, _U, _N, OpMode.ABC),
    OpCode.FORLOOP: _opmode(0, 1, _R, _N, OpMode.AsBx),
    OpCode.FORPREP: _opmode(0, 1, _R, _N, OpMode.AsBx),
    OpCode.TFORLOOP: _opmode(1, 0, _N, _U, OpMode.ABC),
    OpCode.SETLIST: _opmode(0, 0, _U, _U, OpMode.ABC),
    OpCode.CLOSE: _opmode(0, 0, _N, _N, OpMode.ABC),
    OpCode.CLOSURE: _opmode(0, 1, _U, _N, OpMode.ABx),
    OpCode.VARARG: _opmode(0, 1, _U, _N, OpMode.ABC),
}


def _mask1(n: int, p: int) -> int:
    """A mask with ``n`` one bits starting at bit ``p``."""
    return ((1 << n) - 1) << p


def _get(i: int, size: int, pos: int) -> int:
    return (i >> pos) & _mask1(size, 0)


def _set(i: int, value: int, size: int, pos: int) -> int:
    mask = _mask1(size, pos)
    return ((i & ~mask) | ((value << pos) & mask)) & _INSTRUCTION_MASK


def get_opcode(i: int) -> OpCode:
    """Return the opcode of instruction ``i``; ValueError if it is not a valid one."""
    return OpCode(_get(i, SIZE_OP, POS_OP))


def set_opcode(i: int, op: int) -> int:
    """Return ``i`` with its opcode replaced by ``op``."""
    return _set(i, int(op), SIZE_OP, POS_OP)


def getarg_a(i: int) -> int:
    """Return field A of instruction ``i``."""
    return _get(i, SIZE_A, POS_A)


def setarg_a(i: int, value: int) -> int:
    """Return ``i`` with field A replaced."""
    return _set(i, value, SIZE_A, POS_A)


def getarg_b(i: int) -> int:
    """Return field B of instruction ``i``."""
    return _get(i, SIZE_B, POS_B)


def setarg_b(i: int, value: int) -> int:
    """Return ``i`` with field B replaced."""
    return _set(i, value, SIZE_B, POS_B)


def getarg_c(i: int) -> int:
    """Return field C of instruction ``i``."""
    return _get(i, SIZE_C, POS_C)


def setarg_c(i: int, value: int) -> int:
    """Return ``i`` with field C replaced."""
    return _set(i, value, SIZE_C, POS_C)


def getarg_bx(i: int) -> int:
    """Return field Bx (B and C together) of instruction ``i``."""
    return _get(i, SIZE_BX, POS_BX)


def setarg_bx(i: int, value: int) -> int:
    """Return ``i`` with field Bx replaced."""
    return _set(i, value, SIZE_BX, POS_BX)


def getarg_sbx(i: int) -> int:
    """Return the signed field sBx, stored in excess-MAXARG_SBX form."""
    return getarg_bx(i) - MAXARG_SBX


def setarg_sbx(i: int, value: int) -> int:
    """Return ``i`` with the signed field sBx replaced."""
    return setarg_bx(i, value + MAXARG_SBX)


def create_abc(op: int, a: int, b: int, c: int) -> int:
    """Build an instruction in the ABC format."""
    return (
        (int(op) << POS_OP) | (a << POS_A) | (b << POS_B) | (c << POS_C)
    ) & _INSTRUCTION_MASK


def create_abx(op: int, a: int, bx: int) -> int:
    """Build an instruction in the ABx format."""
    return ((int(op) << POS_OP) | (a << POS_A) | (bx << POS_BX)) & _INSTRUCTION_MASK


def is_k(x: int) -> bool:
    """Whether an RK value refers to a constant."""
    return bool(x & BITRK)


def index_k(r: int) -> int:
    """Return the constant index held in an RK value."""
    return r & ~BITRK


def rk_as_k(x: int) -> int:
    """Encode a constant index as an RK value."""
    return x | BITRK


def op_mode(op: int) -> OpMode:
    """Return the instruction format of ``op``."""
    return OpMode(_OPMODES[OpCode(op)] & 3)


def b_mode(op: int) -> OpArgMask:
    """Return how ``op`` uses its B argument."""
    return OpArgMask((_OPMODES[OpCode(op)] >> 4) & 3)


def c_mode(op: int) -> OpArgMask:
    """Return how ``op`` uses its C argument."""
    return OpArgMask((_OPMODES[OpCode(op)] >> 2) & 3)


def test_a_mode(op: int) -> bool:
    """Whether ``op`` sets register A."""
    return bool(_OPMODES[OpCode(op)] & (1 << 6))


def test_t_mode(op: int) -> bool:
    """Whether ``op`` is a test (the next instruction is a jump)."""
    return bool(_OPMODES[OpCode(op)] & (1 << 7))