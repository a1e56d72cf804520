import io
import struct

import pytest

from lc3.controller import DebugController
from lc3.assembler import assemble_instruction
from lc3.console import Console, Display, Keyboard
from lc3.cpu_core import CPU


def image(origin, words):
    """Big-endian object image: origin word followed by the program."""
    return struct.pack(f'>{len(words) + 1}H', origin, *words)


def program(*lines):
    return [assemble_instruction(line) for line in lines]


class Machine:
    """CPU wired to an in-memory keyboard and display."""

    def __init__(self, start_paused=False):
        self.keyboard = Keyboard()
        self.output = io.BytesIO()
        self.controller = DebugController(start_paused=start_paused)
        self.cpu = CPU(Console(self.keyboard, Display(self.output)), self.controller)

    def load(self, *lines, origin=0x3000):
        return self.cpu.load(image(origin, program(*lines)))

    @property
    def out(self):
        return self.output.getvalue()


@pytest.fixture
def machine():
    return Machine()


@pytest.fixture
def make_machine():
    return Machine
