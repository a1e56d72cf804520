"""
Instruction decoding.

decode() turns a raw 16-bit word into a frozen dataclass whose fields are
already extracted and sign-extended. The same value feeds the executor and
the disassembler; encode() packs it back into a word.

Encodings (bits 15..12 are the opcode):

    ADD/AND  |op |DR |SR1|0|00|SR2|     |op |DR |SR1|1| imm5 |
    NOT      |1001|DR |SR |111111|
    BR       |0000|n|z|p| PCoffset9 |
    JMP      |1100|000|BaseR|000000|     (RET is JMP R7)
    JSR      |0100|1| PCoffset11 |
    JSRR     |0100|0|00|BaseR|000000|
    LD/LDI/ST/STI/LEA  |op |DR/SR| PCoffset9 |
    LDR/STR  |op |DR/SR|BaseR|offset6|
    TRAP     |1111|0000|trapvect8|
    RTI      |1000|000000000000|
    reserved |1101|............|
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class Opcode(IntEnum):
    BR   = 0b0000
    ADD  = 0b0001
    LD   = 0b0010
    ST   = 0b0011
    JSR  = 0b0100
    AND  = 0b0101
    LDR  = 0b0110
    STR  = 0b0111
    RTI  = 0b1000
    NOT  = 0b1001
    LDI  = 0b1010
    STI  = 0b1011
    JMP  = 0b1100
    RES  = 0b1101
    LEA  = 0b1110
    TRAP = 0b1111


# Trap vectors serviced by the VM
class TrapVector(IntEnum):
    GETC  = 0x20
    OUT   = 0x21
    PUTS  = 0x22
    IN    = 0x23
    PUTSP = 0x24
    HALT  = 0x25


def sext(val: int, bits: int) -> int:
    """
    Sign-extend a `bits`-wide two's-complement field to a Python int.
    e.g. sext(0b11111, 5) == -1
    """
    sign = 1 << (bits - 1)
    return (val & (sign - 1)) - (val & sign)


def _pack(word: int, value: int, bits: int, shift: int = 0) -> int:
    """Place `value` into a `bits`-wide field at `shift` (masking negatives)."""
    return word | ((value & ((1 << bits) - 1)) << shift)


# ───────────────────────────── instruction shapes ─────────────────────────────
@dataclass(frozen=True)
class Instruction:
    opcode: Opcode


@dataclass(frozen=True)
class Operate(Instruction):
    """ADD / AND, register or immediate second operand."""
    dr: int
    sr1: int
    sr2: Optional[int] = None
    imm: Optional[int] = None

    @property
    def immediate(self) -> bool:
        return self.imm is not None


@dataclass(frozen=True)
class Not(Instruction):
    dr: int
    sr: int


@dataclass(frozen=True)
class Branch(Instruction):
    n: bool
    z: bool
    p: bool
    offset: int


@dataclass(frozen=True)
class Jump(Instruction):
    base: int


@dataclass(frozen=True)
class JumpSubroutine(Instruction):
    """JSR when `offset` is set, JSRR when `base` is set."""
    offset: Optional[int] = None
    base: Optional[int] = None


@dataclass(frozen=True)
class PCRelative(Instruction):
    """LD / LDI / ST / STI / LEA: register plus PCoffset9."""
    reg: int
    offset: int


@dataclass(frozen=True)
class BaseOffset(Instruction):
    """LDR / STR: register, base register and offset6."""
    reg: int
    base: int
    offset: int


@dataclass(frozen=True)
class Trap(Instruction):
    vector: int


@dataclass(frozen=True)
class Illegal(Instruction):
    """RTI or the reserved opcode; keeps the raw word for rendering."""
    word: int


PC_RELATIVE = (Opcode.LD, Opcode.LDI, Opcode.ST, Opcode.STI, Opcode.LEA)
BASE_OFFSET = (Opcode.LDR, Opcode.STR)


def decode(instr: int) -> Instruction:
    instr &= 0xFFFF
    op = Opcode(instr >> 12)
    r9 = (instr >> 9) & 0x7             # DR / SR / nzp
    r6 = (instr >> 6) & 0x7             # SR1 / BaseR

    if op in (Opcode.ADD, Opcode.AND):
        if (instr >> 5) & 1:
            return Operate(op, r9, r6, imm=sext(instr & 0x1F, 5))
        return Operate(op, r9, r6, sr2=instr & 0x7)
    if op == Opcode.NOT:
        return Not(op, r9, r6)
    if op == Opcode.BR:
        return Branch(op, bool(instr & 0x800), bool(instr & 0x400),
                      bool(instr & 0x200), sext(instr & 0x1FF, 9))
    if op == Opcode.JMP:
        return Jump(op, r6)
    if op == Opcode.JSR:
        if (instr >> 11) & 1:
            return JumpSubroutine(op, offset=sext(instr & 0x7FF, 11))
        return JumpSubroutine(op, base=r6)
    if op in PC_RELATIVE:
        return PCRelative(op, r9, sext(instr & 0x1FF, 9))
    if op in BASE_OFFSET:
        return BaseOffset(op, r9, r6, sext(instr & 0x3F, 6))
    if op == Opcode.TRAP:
        return Trap(op, instr & 0xFF)
    return Illegal(op, instr)


def encode(ins: Instruction) -> int:
    """Pack a decoded instruction back into its 16-bit word."""
    word = ins.opcode << 12
    if isinstance(ins, Operate):
        word = _pack(_pack(word, ins.dr, 3, 9), ins.sr1, 3, 6)
        if ins.immediate:
            return _pack(word | 0x20, ins.imm, 5)
        return _pack(word, ins.sr2, 3)
    if isinstance(ins, Not):
        return _pack(_pack(word, ins.dr, 3, 9), ins.sr, 3, 6) | 0x3F
    if isinstance(ins, Branch):
        nzp = (ins.n << 2) | (ins.z << 1) | ins.p
        return _pack(_pack(word, nzp, 3, 9), ins.offset, 9)
    if isinstance(ins, Jump):
        return _pack(word, ins.base, 3, 6)
    if isinstance(ins, JumpSubroutine):
        if ins.offset is not None:
            return _pack(word | 0x800, ins.offset, 11)
        return _pack(word, ins.base, 3, 6)
    if isinstance(ins, PCRelative):
        return _pack(_pack(word, ins.reg, 3, 9), ins.offset, 9)
    if isinstance(ins, BaseOffset):
        word = _pack(_pack(word, ins.reg, 3, 9), ins.base, 3, 6)
        return _pack(word, ins.offset, 6)
    if isinstance(ins, Trap):
        return _pack(word, ins.vector, 8)
    if isinstance(ins, Illegal):
        return ins.word & 0xFFFF
    raise TypeError(f"not an instruction: {ins!r}")
