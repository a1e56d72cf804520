"""
Minimal LC-3 assembler (one instruction per line, no labels).

Accepts the syntax the disassembler produces:

    ADD  DR, SR1, SR2 | ADD DR, SR1, #imm5     AND  (same forms)
    NOT  DR, SR
    BR[n][z][p] #off9                          (plain BR == BRnzp)
    JMP  BaseR | RET                           JSR #off11 | JSRR BaseR
    LD / LDI / ST / STI / LEA  R, #off9
    LDR / STR  R, BaseR, #off6
    TRAP x25 | GETC | OUT | PUTS | IN | PUTSP | HALT
    RTI | NOP | .FILL xWORD

Numbers are decimal (#-3) or hexadecimal (#x1F, #0x1F, x1F).
"""
import re

from .decoder import Opcode, TrapVector

NUM = r'(#?-?(?:0x|x)?[0-9A-Fa-f]+)'
REG = r'R([0-7])'


def num(tok: str, bits: int, signed: bool = True) -> int:
    """Token -> field value, range-checked for a `bits`-wide field."""
    tok = tok.lstrip('#')
    neg = tok.startswith('-')
    body = tok[1:] if neg else tok
    if body.lower().startswith('0x'):
        v = int(body[2:], 16)
    elif body.lower().startswith('x'):
        v = int(body[1:], 16)
    else:
        v = int(body, 10)
    v = -v if neg else v
    lo = -(1 << (bits-1)) if signed else 0
    hi = (1 << (bits-1)) - 1 if signed else (1 << bits) - 1
    if not lo <= v <= hi:
        raise ValueError(f"immediate {tok} out of range for {bits}-bit field")
    return v & ((1 << bits) - 1)


def assemble_instruction(line: str) -> int:
    """
    Convert a single LC-3 assembly line into its 16-bit word.
    Raises ValueError on malformed input.
    """
    line = re.sub(r';.*$', '', line).strip()
    if not line:
        raise ValueError("empty")

    # -------- ADD / AND ------------------------------------------
    m = re.fullmatch(fr'(ADD|AND)\s+{REG},\s*{REG},\s*(?:{REG}|{NUM})', line, re.I)
    if m:
        op, dr, sr1, sr2, immv = m.groups()
        word = (Opcode[op.upper()] << 12) | (int(dr) << 9) | (int(sr1) << 6)
        if sr2 is not None:
            return word | int(sr2)
        return word | (1 << 5) | num(immv, 5)

    # -------- NOT --------------------------------------------------
    m = re.fullmatch(fr'NOT\s+{REG},\s*{REG}', line, re.I)
    if m:
        dr, sr = map(int, m.groups())
        return (Opcode.NOT << 12) | (dr << 9) | (sr << 6) | 0x3F

    # -------- BR ---------------------------------------------------
    m = re.fullmatch(fr'BR(n?z?p?)\s+{NUM}', line, re.I)
    if m:
        cond, off = m.groups()
        cond = cond.lower()
        nzp = (4 if 'n' in cond else 0) | (2 if 'z' in cond else 0) | (1 if 'p' in cond else 0)
        if nzp == 0:
            nzp = 0b111                  # plain "BR"
        return (Opcode.BR << 12) | (nzp << 9) | num(off, 9)

    # -------- JMP / RET / JSR / JSRR --------------------------------
    if re.fullmatch(r'RET', line, re.I):
        return (Opcode.JMP << 12) | (7 << 6)
    m = re.fullmatch(fr'(JMP|JSRR)\s+{REG}', line, re.I)
    if m:
        opc = Opcode.JMP if m.group(1).upper() == 'JMP' else Opcode.JSR
        return (opc << 12) | (int(m.group(2)) << 6)
    m = re.fullmatch(fr'JSR\s+{NUM}', line, re.I)
    if m:
        return (Opcode.JSR << 12) | (1 << 11) | num(m.group(1), 11)

    # -------- LD / LDI / ST / STI / LEA (PC-offset9) ----------------
    m = re.fullmatch(fr'(LDI|LD|STI|ST|LEA)\s+{REG},\s*{NUM}', line, re.I)
    if m:
        op, r, off = m.groups()
        return (Opcode[op.upper()] << 12) | (int(r) << 9) | num(off, 9)

    # -------- LDR / STR (Base+off6) -------------------------------
    m = re.fullmatch(fr'(LDR|STR)\s+{REG},\s*{REG},\s*{NUM}', line, re.I)
    if m:
        op, r, base, off = m.groups()
        return (Opcode[op.upper()] << 12) | (int(r) << 9) | (int(base) << 6) | num(off, 6)

    # -------- TRAP -------------------------------------------------
    m = re.fullmatch(fr'TRAP\s+{NUM}', line, re.I)
    if m:
        return (Opcode.TRAP << 12) | num(m.group(1), 8, signed=False)
    if line.upper() in TrapVector.__members__:
        return (Opcode.TRAP << 12) | TrapVector[line.upper()]

    # -------- odds and ends ------------------------------------------
    if re.fullmatch(r'RTI', line, re.I):
        return Opcode.RTI << 12
    if re.fullmatch(r'NOP', line, re.I):
        return 0
    m = re.fullmatch(fr'\.FILL\s+{NUM}', line, re.I)
    if m:
        return num(m.group(1), 16, signed=False)

    raise ValueError("syntax error or unsupported opcode")
