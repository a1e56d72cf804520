import logging
from typing import Optional

from . import loader
from .alu import ALU
from .console import Console
from .controller import DebugController
from .decoder import (BaseOffset, Branch, Instruction, Jump, JumpSubroutine,
                      Not, Opcode, Operate, PCRelative, Trap, TrapVector,
                      decode)
from .errors import IllegalInstruction, LC3Error, UnknownTrap
from .memory import Memory
from .registers import Condition, Registers

logger = logging.getLogger(__name__)

IN_PROMPT = b"Enter a character: "


class CPU:
    """
    LC-3 fetch-decode-execute engine.
    ─────────────────────────────────────────────────────
    • fetch()   : read the 16-bit word at PC into IR, PC++
    • execute() : apply one decoded instruction
    • step()    : one full cycle (fetch → decode → execute)
    • run()     : cycle until HALT, consulting the debug controller
                  at every fetch boundary
    """

    def __init__(self, console: Optional[Console] = None,
                 controller: Optional[DebugController] = None):
        self.console = console if console is not None else Console()
        self.reg = Registers()             # R0..R7, PC, IR, COND
        self.mem = Memory(self.console)    # 64K words + MMIO
        self.controller = controller if controller is not None else DebugController()
        self.last_address = self.reg.pc    # address of the instruction in flight

        # one handler per opcode; RTI and the reserved pattern are explicit cases
        self.dispatch = {
            Opcode.BR: self._br,
            Opcode.ADD: self._operate,
            Opcode.LD: self._ld,
            Opcode.ST: self._st,
            Opcode.JSR: self._jsr,
            Opcode.AND: self._operate,
            Opcode.LDR: self._ldr,
            Opcode.STR: self._str,
            Opcode.RTI: self._illegal,
            Opcode.NOT: self._not,
            Opcode.LDI: self._ldi,
            Opcode.STI: self._sti,
            Opcode.JMP: self._jmp,
            Opcode.RES: self._illegal,
            Opcode.LEA: self._lea,
            Opcode.TRAP: self._trap,
        }
        self.traps = {
            TrapVector.GETC: self._getc,
            TrapVector.OUT: self._out,
            TrapVector.PUTS: self._puts,
            TrapVector.IN: self._in,
            TrapVector.PUTSP: self._putsp,
            TrapVector.HALT: self._halt,
        }

    # ───────────────────────────── loading ─────────────────────────────
    def load(self, data: bytes) -> int:
        """Load an object image and point PC at its origin."""
        origin = loader.load(self.mem, data)
        self.reg.pc = origin
        return origin

    # ───────────────────────────── fetch ─────────────────────────────
    def fetch(self) -> int:
        """Read the word at PC into IR, PC += 1"""
        self.last_address = self.reg.pc
        self.reg.ir = self.mem.read(self.reg.pc)
        self.reg.pc = (self.reg.pc + 1) & 0xFFFF  # 16-bit wrap-around
        return self.reg.ir

    def pc_offset(self, offset: int) -> int:
        """Incremented PC plus a sign-extended offset."""
        return (self.reg.pc + offset) & 0xFFFF

    # ───────────────────────── decode / execute ──────────────────────
    def execute(self, ins: Instruction) -> None:
        self.dispatch[ins.opcode](ins)

    def _operate(self, ins: Operate):
        b = ins.imm if ins.immediate else self.reg[ins.sr2]
        result = ALU.execute(ins.opcode.name, self.reg[ins.sr1], b)
        self.reg[ins.dr] = result
        self.reg.set_flags(result)

    def _not(self, ins: Not):
        result = ALU.execute("NOT", self.reg[ins.sr])
        self.reg[ins.dr] = result
        self.reg.set_flags(result)

    def _br(self, ins: Branch):
        cond = self.reg.cond
        if ((ins.n and cond is Condition.N) or (ins.z and cond is Condition.Z)
                or (ins.p and cond is Condition.P)):
            self.reg.pc = self.pc_offset(ins.offset)

    def _jmp(self, ins: Jump):
        self.reg.pc = self.reg[ins.base]   # JMP R7 == RET

    def _jsr(self, ins: JumpSubroutine):
        link = self.reg.pc
        if ins.offset is not None:         # JSR
            target = self.pc_offset(ins.offset)
        else:                              # JSRR; read BaseR before R7 is overwritten
            target = self.reg[ins.base]
        self.reg[7] = link
        self.reg.pc = target

    def _load(self, dr: int, value: int):
        self.reg[dr] = value
        self.reg.set_flags(value)

    def _ld(self, ins: PCRelative):
        self._load(ins.reg, self.mem.read(self.pc_offset(ins.offset)))

    def _ldi(self, ins: PCRelative):
        ptr = self.mem.read(self.pc_offset(ins.offset))
        self._load(ins.reg, self.mem.read(ptr))

    def _ldr(self, ins: BaseOffset):
        self._load(ins.reg, self.mem.read((self.reg[ins.base] + ins.offset) & 0xFFFF))

    def _lea(self, ins: PCRelative):
        self._load(ins.reg, self.pc_offset(ins.offset))

    def _st(self, ins: PCRelative):
        self.mem.write(self.pc_offset(ins.offset), self.reg[ins.reg])

    def _sti(self, ins: PCRelative):
        ptr = self.mem.read(self.pc_offset(ins.offset))
        self.mem.write(ptr, self.reg[ins.reg])

    def _str(self, ins: BaseOffset):
        self.mem.write((self.reg[ins.base] + ins.offset) & 0xFFFF, self.reg[ins.reg])

    def _illegal(self, ins: Instruction):
        raise IllegalInstruction(ins.opcode, self.last_address)

    # ───────────────────────────── traps ──────────────────────────────
    def _trap(self, ins: Trap):
        routine = self.traps.get(ins.vector)
        if routine is None:
            raise UnknownTrap(ins.vector, self.last_address)
        self.reg[7] = self.reg.pc          # linkage back past the TRAP
        routine()

    def _getc(self):
        self.reg[0] = self.console.keyboard.getc()

    def _out(self):
        self.console.display.putc(self.reg[0])

    def _puts(self):
        addr = self.reg[0]
        out = bytearray()
        word = self.mem.read(addr)
        while word != 0:
            out.append(word & 0xFF)
            addr = (addr + 1) & 0xFFFF
            word = self.mem.read(addr)
        self.console.display.write(bytes(out))

    def _in(self):
        self.console.display.write(IN_PROMPT)
        c = self.console.keyboard.getc()
        self.console.display.putc(c)
        self.reg[0] = c

    def _putsp(self):
        addr = self.reg[0]
        out = bytearray()
        word = self.mem.read(addr)
        while word != 0:
            lo, hi = word & 0xFF, (word >> 8) & 0xFF
            if lo == 0:
                break
            out.append(lo)
            if hi == 0:
                break
            out.append(hi)
            addr = (addr + 1) & 0xFFFF
            word = self.mem.read(addr)
        self.console.display.write(bytes(out))

    def _halt(self):
        logger.info("HALT at x%04X", self.last_address)
        self.controller.halt()

    # ───────────────────────────── runner ─────────────────────────────
    def step(self) -> Instruction:
        """Run one instruction cycle (fetch-decode-exec)"""
        ins = decode(self.fetch())
        self.execute(ins)
        return ins

    def run(self) -> None:
        """
        Cycle until HALT. Fatal errors halt the controller, keep
        memory/registers as they were, and propagate to the caller.
        """
        try:
            while self.controller.checkpoint(self.reg.pc):
                self.step()
        except LC3Error as e:
            logger.error("execution stopped: %s", e)
            self.controller.halt(e)
            raise

    def reset(self):
        """Clear registers and memory; console and controller are kept."""
        self.__init__(self.console, self.controller)
