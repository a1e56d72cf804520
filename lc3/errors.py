"""Error kinds raised by the VM core and the debug protocol."""


class LC3Error(Exception):
    """Base class for every error the VM reports."""


class MalformedImage(LC3Error, ValueError):
    """Object image is empty, odd-sized or does not fit the address space."""


class IllegalInstruction(LC3Error, RuntimeError):
    """RTI or the reserved opcode (1101) executed in user mode."""

    def __init__(self, opcode, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"illegal instruction {opcode.name} at x{address:04X}")


class UnknownTrap(LC3Error, RuntimeError):
    """TRAP vector outside the serviced range x20-x25."""

    def __init__(self, vector: int, address: int):
        self.vector = vector
        self.address = address
        super().__init__(f"unknown trap vector x{vector:02X} at x{address:04X}")


class DebugProtocolError(LC3Error, ValueError):
    """Debug command or operand that could not be parsed."""
