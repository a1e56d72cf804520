"""
Console devices behind the memory-mapped keyboard/display registers and the
GETC/IN/OUT/PUTS/PUTSP service routines.

Keyboard model:
  - Input bytes queue up in a FIFO, fed either programmatically via feed()
    or by a reader thread attached to a binary stream.
  - Polling the status register moves the next byte into a one-byte latch;
    KBSR bit 15 reports whether the latch holds a byte.
  - Reading the data register consumes the latch. With nothing available it
    returns the last byte read (0 initially) and never blocks.
  - GETC/IN use getc(), which blocks until a byte arrives. After the input
    source hits end of file and everything queued is drained, getc()
    returns 0 instead of blocking.
"""
import logging
import queue
import sys
import threading
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

_EOF = object()


class Keyboard:
    def __init__(self):
        self._fifo: "queue.Queue" = queue.Queue()
        self._latch: Optional[int] = None
        self._eof = False
        self.last = 0
        self._reader: Optional[threading.Thread] = None

    # ───────────────────────────── sources ─────────────────────────────
    def feed(self, data: bytes) -> None:
        """Queue bytes as if they had been typed."""
        for b in data:
            self._fifo.put(b & 0xFF)

    def close(self) -> None:
        """Mark end of input; pending bytes stay readable."""
        self._fifo.put(_EOF)

    def attach(self, stream: BinaryIO) -> threading.Thread:
        """Pump `stream` into the FIFO from a daemon thread, one byte at a time."""
        def pump():
            try:
                while True:
                    b = stream.read(1)
                    if not b:
                        break
                    self.feed(b)
            except (OSError, ValueError) as e:
                logger.warning("console input stopped: %s", e)
            finally:
                self.close()

        self._reader = threading.Thread(target=pump, name="lc3-keyboard", daemon=True)
        self._reader.start()
        return self._reader

    # ───────────────────────────── device side ──────────────────────────
    # Only the execution thread calls these; inspection uses pending().
    def _poll(self, block: bool) -> None:
        if self._latch is not None or self._eof:
            return
        try:
            item = self._fifo.get(block=block)
        except queue.Empty:
            return
        if item is _EOF:
            self._eof = True
        else:
            self._latch = item

    def pending(self) -> bool:
        """Whether input is waiting, without latching it."""
        return self._latch is not None or not self._fifo.empty()

    def available(self) -> bool:
        """KBSR ready bit: a byte is waiting to be read."""
        self._poll(block=False)
        return self._latch is not None

    def read_data(self) -> int:
        """KBDR read: consume the waiting byte, or repeat the last one."""
        self._poll(block=False)
        if self._latch is not None:
            self.last, self._latch = self._latch, None
        return self.last

    def getc(self) -> int:
        """Blocking read used by GETC/IN; 0 once input is exhausted."""
        self._poll(block=True)
        if self._latch is None:
            return 0
        self.last, self._latch = self._latch, None
        return self.last


class Display:
    """Byte-at-a-time output sink."""

    def __init__(self, stream: Optional[BinaryIO] = None):
        self.stream = stream if stream is not None else sys.stdout.buffer

    def putc(self, value: int) -> None:
        self.stream.write(bytes([value & 0xFF]))
        self.stream.flush()

    def write(self, data: bytes) -> None:
        self.stream.write(data)
        self.stream.flush()


class Console:
    """Keyboard + display pair handed to Memory and the trap routines."""

    def __init__(self, keyboard: Optional[Keyboard] = None, display: Optional[Display] = None):
        self.keyboard = keyboard if keyboard is not None else Keyboard()
        self.display = display if display is not None else Display()
