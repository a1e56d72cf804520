from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

GENERAL_REGS = 8          # R0–R7
PC_START = 0x3000


class Condition(IntEnum):
    """N/Z/P condition codes, encoded as in PSR[2:0]."""
    P = 0b001
    Z = 0b010
    N = 0b100


@dataclass
class Registers:
    gpr: List[int] = field(default_factory=lambda: [0]*GENERAL_REGS)
    pc: int = PC_START
    ir: int = 0
    cond: Condition = Condition.Z

    def __getitem__(self, idx: int) -> int:
        if 0 <= idx < GENERAL_REGS:
            return self.gpr[idx]
        raise IndexError("Invalid register index")

    def __setitem__(self, idx: int, value: int) -> None:
        if 0 <= idx < GENERAL_REGS:
            self.gpr[idx] = value & 0xFFFF
        else:
            raise IndexError("Invalid register index")

    def set_flags(self, value: int) -> None:
        """Set exactly one of N/Z/P from a 16-bit result."""
        value &= 0xFFFF
        if value & 0x8000:
            self.cond = Condition.N
        elif value == 0:
            self.cond = Condition.Z
        else:
            self.cond = Condition.P

    def snapshot(self) -> dict:
        """Copy of R0–R7, PC and the condition code, for inspection."""
        regs = {f"R{i}": v for i, v in enumerate(self.gpr)}
        regs["PC"] = self.pc
        regs["COND"] = self.cond.name
        return regs
