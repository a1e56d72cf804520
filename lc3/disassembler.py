from typing import Optional

from .decoder import (BaseOffset, Branch, Illegal, Instruction, Jump,
                      JumpSubroutine, Not, Opcode, Operate, PCRelative, Trap,
                      TrapVector, decode, encode)

TRAP_NAMES = {v.value: v.name for v in TrapVector}


def reg(n: int) -> str:
    return f"R{n}"


def imm(v: int) -> str:
    return f"#{v}"


def render(ins: Instruction) -> str:
    """Mnemonic form of a decoded instruction, e.g. `ADD R1, R2, #5`."""
    op = ins.opcode.name
    if isinstance(ins, Operate):
        last = imm(ins.imm) if ins.immediate else reg(ins.sr2)
        return f"{op} {reg(ins.dr)}, {reg(ins.sr1)}, {last}"
    if isinstance(ins, Not):
        return f"NOT {reg(ins.dr)}, {reg(ins.sr)}"
    if isinstance(ins, Branch):
        mask = "n" * ins.n + "z" * ins.z + "p" * ins.p
        if not mask:
            # never taken; plain "BR" would read back as BRnzp
            return "NOP" if ins.offset == 0 else f".FILL x{encode(ins):04X}"
        return f"BR{mask} {imm(ins.offset)}"
    if isinstance(ins, Jump):
        return "RET" if ins.base == 7 else f"JMP {reg(ins.base)}"
    if isinstance(ins, JumpSubroutine):
        if ins.offset is not None:
            return f"JSR {imm(ins.offset)}"
        return f"JSRR {reg(ins.base)}"
    if isinstance(ins, PCRelative):
        return f"{op} {reg(ins.reg)}, {imm(ins.offset)}"
    if isinstance(ins, BaseOffset):
        return f"{op} {reg(ins.reg)}, {reg(ins.base)}, {imm(ins.offset)}"
    if isinstance(ins, Trap):
        return TRAP_NAMES.get(ins.vector, f"TRAP x{ins.vector:02X}")
    if isinstance(ins, Illegal):
        return "RTI" if ins.opcode == Opcode.RTI else f".FILL x{ins.word:04X}"
    raise TypeError(f"not an instruction: {ins!r}")


def target(ins: Instruction, address: int) -> Optional[int]:
    """Effective PC-relative address, computed from the incremented PC."""
    if isinstance(ins, (Branch, PCRelative)) or (
            isinstance(ins, JumpSubroutine) and ins.offset is not None):
        return (address + 1 + ins.offset) & 0xFFFF
    return None


def disassemble(word: int, address: Optional[int] = None) -> str:
    """
    One listing line for `word`. With an address, the line is prefixed by
    `xADDR: xWORD` and PC-relative operands get their target as a comment.
    """
    ins = decode(word)
    text = render(ins)
    if address is None:
        return text
    line = f"x{address:04X}: x{word & 0xFFFF:04X}  {text}"
    dest = target(ins, address)
    if dest is not None:
        line += f"  ; x{dest:04X}"
    return line
