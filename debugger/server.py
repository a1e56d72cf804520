"""
TCP listener for the debug protocol.

A plain (non-threading) TCPServer handles one connection at a time; later
connections wait in the listen backlog until the current session ends.
Serving happens on a daemon thread so the engine keeps the main thread.
"""
import logging
import socketserver
import threading
from typing import Optional

from .session import OK, DebugSession

logger = logging.getLogger(__name__)

GREETING = "lc3 debugger attached; type 'help' for commands"


class DebugRequestHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        peer = "%s:%s" % self.client_address[:2]
        logger.info("debug session opened from %s", peer)
        self.server.session_started()
        session = DebugSession(self.server.cpu)
        try:
            self._send([GREETING, OK])
            while not session.closed:
                line = self.rfile.readline()
                if not line:
                    break
                try:
                    text = line.decode("utf-8")
                except UnicodeDecodeError:
                    self._send(["error: command is not valid UTF-8"])
                    continue
                self._send(session.handle(text))
        except (ConnectionError, OSError) as e:
            logger.info("debug session from %s dropped: %s", peer, e)
        finally:
            self.server.session_ended()
            logger.info("debug session from %s closed", peer)

    def _send(self, lines) -> None:
        self.wfile.write("".join(f"{line}\n" for line in lines).encode("utf-8"))
        self.wfile.flush()


class DebugServer(socketserver.TCPServer):
    allow_reuse_address = True
    request_queue_size = 1

    def __init__(self, server_address, cpu):
        super().__init__(server_address, DebugRequestHandler)
        self.cpu = cpu
        self._idle = threading.Condition()
        self._active = 0
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server_address[1]

    def session_started(self) -> None:
        with self._idle:
            self._active += 1

    def session_ended(self) -> None:
        with self._idle:
            self._active -= 1
            self._idle.notify_all()

    def has_session(self) -> bool:
        with self._idle:
            return self._active > 0

    def wait_for_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no debug session is connected."""
        with self._idle:
            return self._idle.wait_for(lambda: self._active == 0, timeout)

    def start(self) -> threading.Thread:
        """Serve on a daemon thread."""
        self._thread = threading.Thread(target=self.serve_forever,
                                        name="lc3-debug-server", daemon=True)
        self._thread.start()
        logger.info("debug server listening on %s:%d", *self.server_address[:2])
        return self._thread

    def stop(self) -> None:
        if self._thread is not None:
            self.shutdown()
            self._thread.join()
            self._thread = None
        self.server_close()
