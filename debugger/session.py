"""
Line-oriented debug command interpreter.

Every command answers with zero or more content lines followed by a single
status line: `ok`, or `error: <message>` when the command could not be
parsed or carried out. The interpreter has no socket knowledge; the server
feeds it lines and writes back whatever it returns.
"""
import logging
import re
from typing import Callable, Dict, List

from lc3.assembler import assemble_instruction
from lc3.disassembler import disassemble
from lc3.errors import DebugProtocolError
from lc3.registers import GENERAL_REGS

logger = logging.getLogger(__name__)

OK = "ok"
ADDR_RE = re.compile(r'(?:0x|x)?([0-9a-f]{1,4})', re.I)
MAX_COUNT = 256

HELP = [
    "c, continue               Continue execution.",
    "p, pause                  Pause at the next instruction boundary.",
    "s, step                   Execute one instruction and pause.",
    "r, registers              Show R0-R7 and PC.",
    "   condition              Show the N/Z/P condition code.",
    "   status                 Show run state and PC.",
    "i, inspect                Registers, condition, state and current instruction.",
    "d, disassemble [addr] [n] Disassemble n words (default: at PC, 1).",
    "   read <addr> [n]        Read n words of memory. e.g. read 0x3000",
    "   break-address <addr>   Toggle a breakpoint. e.g. break-address 0x3000",
    "   breakpoints            List breakpoints.",
    "   assemble <instr>       Show the encoding of one instruction.",
    "   quit, exit             Close this session (the VM keeps running).",
]


def parse_address(token: str) -> int:
    m = ADDR_RE.fullmatch(token.strip())
    if not m:
        raise DebugProtocolError(f"bad address {token!r} (expected hex, e.g. 0x3000)")
    return int(m.group(1), 16)


def parse_count(token: str) -> int:
    try:
        count = int(token, 10)
    except ValueError:
        raise DebugProtocolError(f"bad count {token!r}") from None
    if not 1 <= count <= MAX_COUNT:
        raise DebugProtocolError(f"count must be between 1 and {MAX_COUNT}")
    return count


class DebugSession:
    """Interprets one client's commands against a CPU and its controller."""

    def __init__(self, cpu):
        self.cpu = cpu
        self.controller = cpu.controller
        self.closed = False
        self.commands: Dict[str, Callable[[List[str]], List[str]]] = {}
        for names, fn in (
            (("c", "continue"), self.cmd_continue),
            (("p", "pause"), self.cmd_pause),
            (("s", "step"), self.cmd_step),
            (("r", "registers"), self.cmd_registers),
            (("condition",), self.cmd_condition),
            (("status",), self.cmd_status),
            (("i", "inspect"), self.cmd_inspect),
            (("d", "disassemble"), self.cmd_disassemble),
            (("read",), self.cmd_read),
            (("break-address",), self.cmd_break_address),
            (("breakpoints",), self.cmd_breakpoints),
            (("assemble",), self.cmd_assemble),
            (("h", "help"), self.cmd_help),
            (("quit", "exit"), self.cmd_quit),
        ):
            for name in names:
                self.commands[name] = fn

    def handle(self, line: str) -> List[str]:
        """Run one command line; returns content lines plus the status line."""
        line = line.strip()
        if not line:
            return [OK]
        name, _, rest = line.partition(" ")
        fn = self.commands.get(name.lower())
        try:
            if fn is None:
                raise DebugProtocolError(f"unknown command {line!r}")
            return fn(rest.split()) + [OK]
        except DebugProtocolError as e:
            logger.debug("rejected %r: %s", line, e)
            return [f"error: {e}"]

    # ───────────────────────── run control ─────────────────────────
    def _state_line(self) -> str:
        return f"state={self.controller.state.value} PC=x{self.cpu.reg.pc:04X}"

    def cmd_continue(self, args):
        self.controller.request_continue()
        return [self._state_line()]

    def cmd_pause(self, args):
        if self.controller.request_pause():
            self.controller.wait_until_paused(timeout=1.0)
        return [self._state_line()]

    def cmd_step(self, args):
        if not self.controller.request_step():
            raise DebugProtocolError(f"cannot step while {self.controller.state.value}")
        self.controller.wait_until_paused(timeout=1.0)
        return [self._state_line()]

    def cmd_status(self, args):
        lines = [self._state_line()]
        if self.controller.error is not None:
            lines.append(f"fault: {self.controller.error}")
        return lines

    # ───────────────────────── inspection ─────────────────────────
    def cmd_registers(self, args):
        regs = " ".join(f"R{i}=x{self.cpu.reg[i]:04X}" for i in range(GENERAL_REGS))
        return [f"{regs} PC=x{self.cpu.reg.pc:04X}"]

    def cmd_condition(self, args):
        return [f"COND={self.cpu.reg.cond.name}"]

    def cmd_inspect(self, args):
        return (self.cmd_registers(args) + self.cmd_condition(args)
                + self.cmd_status(args) + self.cmd_disassemble([]))

    def _range(self, args, default_addr: int):
        if len(args) > 2:
            raise DebugProtocolError("expected at most an address and a count")
        addr = parse_address(args[0]) if args else default_addr
        count = parse_count(args[1]) if len(args) > 1 else 1
        return addr, count

    def cmd_disassemble(self, args):
        addr, count = self._range(args, self.cpu.reg.pc)
        lines = []
        for i in range(count):
            a = (addr + i) & 0xFFFF
            lines.append(disassemble(self.cpu.mem.peek(a), a))
        return lines

    def cmd_read(self, args):
        if not args:
            raise DebugProtocolError("usage: read <addr> [count]")
        addr, count = self._range(args, 0)
        return [f"x{(addr + i) & 0xFFFF:04X}: x{self.cpu.mem.peek(addr + i):04X}"
                for i in range(count)]

    # ───────────────────────── breakpoints ─────────────────────────
    def cmd_break_address(self, args):
        if len(args) != 1:
            raise DebugProtocolError("usage: break-address <addr>")
        addr = parse_address(args[0])
        if self.controller.toggle_breakpoint(addr):
            return [f"breakpoint set at x{addr:04X}"]
        return [f"breakpoint cleared at x{addr:04X}"]

    def cmd_breakpoints(self, args):
        return [f"x{a:04X}" for a in self.controller.breakpoints()]

    # ───────────────────────── misc ─────────────────────────
    def cmd_assemble(self, args):
        if not args:
            raise DebugProtocolError("usage: assemble <instruction>")
        try:
            word = assemble_instruction(" ".join(args))
        except ValueError as e:
            raise DebugProtocolError(str(e)) from None
        return [f"x{word:04X}"]

    def cmd_help(self, args):
        return list(HELP)

    def cmd_quit(self, args):
        self.closed = True
        return ["bye"]
