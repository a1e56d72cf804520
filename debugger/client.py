"""Client side of the debug protocol, used by the GUI front-end."""
import re
import socket
from typing import Dict, List, Optional

from lc3.errors import DebugProtocolError

from .session import OK

REG_RE = re.compile(r'(\w+)=x([0-9A-F]{4})')


class DebugClient:
    def __init__(self, host: str, port: int, timeout: Optional[float] = 5.0):
        self.sock = socket.create_connection((host, port), timeout=timeout)
        self.rfile = self.sock.makefile("rb")
        self.greeting = self._read_response()

    def close(self) -> None:
        try:
            self.rfile.close()
        finally:
            self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _read_response(self) -> List[str]:
        lines = []
        while True:
            raw = self.rfile.readline()
            if not raw:
                raise ConnectionError("debug server closed the connection")
            line = raw.decode("utf-8").rstrip("\n")
            if line == OK:
                return lines
            if line.startswith("error:"):
                raise DebugProtocolError(line[len("error:"):].strip())
            lines.append(line)

    def command(self, line: str) -> List[str]:
        """Send one command and return its content lines."""
        self.sock.sendall(line.encode("utf-8") + b"\n")
        return self._read_response()

    # ───────────────────────── convenience ─────────────────────────
    def registers(self) -> Dict[str, int]:
        (line,) = self.command("registers")
        return {name: int(value, 16) for name, value in REG_RE.findall(line)}

    def condition(self) -> str:
        (line,) = self.command("condition")
        return line.split("=", 1)[1]

    def status(self) -> Dict[str, str]:
        line = self.command("status")[0]
        return dict(part.split("=", 1) for part in line.split())

    def read(self, addr: int, count: int = 1) -> List[int]:
        lines = self.command(f"read x{addr:04X} {count}")
        return [int(line.split(": x")[1], 16) for line in lines]

    def disassemble(self, addr: Optional[int] = None, count: int = 1) -> List[str]:
        if addr is None:
            return self.command("disassemble")
        return self.command(f"disassemble x{addr:04X} {count}")

    def toggle_breakpoint(self, addr: int) -> bool:
        (line,) = self.command(f"break-address x{addr:04X}")
        return line.startswith("breakpoint set")

    def breakpoints(self) -> List[int]:
        return [int(line[1:], 16) for line in self.command("breakpoints")]

    def resume(self) -> None:
        self.command("continue")

    def pause(self) -> None:
        self.command("pause")

    def step(self) -> None:
        self.command("step")
