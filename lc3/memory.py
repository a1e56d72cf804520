from typing import Iterable, Optional

from .console import Console

MEM_SIZE = 1 << 16  # Number of 16-bit words in memory

# Memory-mapped device registers
KBSR = 0xFE00  # keyboard status: bit 15 set while a byte is waiting
KBDR = 0xFE02  # keyboard data: bits 7..0 hold the last byte typed
DSR  = 0xFE04  # display status: bit 15 set when ready (always)
DDR  = 0xFE06  # display data: low byte written goes to the console

READY = 0x8000


class Memory:
    """64K words of storage with the console registers overlaid on top."""

    def __init__(self, console: Optional[Console] = None):
        self.mem = [0]*MEM_SIZE
        self.console = console if console is not None else Console()

    def read(self, addr: int) -> int:
        """Read a 16-bit word; device registers have read side effects."""
        addr &= 0xFFFF
        if addr == KBSR:
            return READY if self.console.keyboard.available() else 0
        if addr == KBDR:
            return self.console.keyboard.read_data()
        if addr == DSR:
            return READY
        return self.mem[addr]

    def write(self, addr: int, value: int):
        """Write a 16-bit word"""
        addr &= 0xFFFF
        if addr == DDR:
            self.console.display.putc(value)
            return
        if addr in (KBSR, KBDR, DSR):
            return  # read-only device registers
        self.mem[addr] = value & 0xFFFF  # Mask to 16 bits

    def peek(self, addr: int) -> int:
        """Side-effect free read for inspection from the debugger."""
        addr &= 0xFFFF
        if addr == KBSR:
            return READY if self.console.keyboard.pending() else 0
        if addr == KBDR:
            return self.console.keyboard.last
        if addr == DSR:
            return READY
        return self.mem[addr]

    def load(self, origin: int, words: Iterable[int]) -> int:
        """Copy words into storage starting at origin; returns the count."""
        count = 0
        for count, word in enumerate(words, start=1):
            self.mem[(origin + count - 1) & 0xFFFF] = word & 0xFFFF
        return count
