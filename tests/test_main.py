import main
from debugger.server import DebugServer


def write_program(tmp_path, image):
    path = tmp_path / "prog.obj"
    path.write_bytes(image)
    return str(path)


def test_runs_to_halt(tmp_path, capsys):
    words = [0xE002, 0xF022, 0xF025, 0x0048, 0x0069, 0x0000]   # LEA/PUTS/HALT "Hi"
    data = bytes([0x30, 0x00]) + b"".join(w.to_bytes(2, "big") for w in words)
    assert main.main(["run", "--no-raw", write_program(tmp_path, data)]) == 0
    assert capsys.readouterr().out == "Hi"


def test_missing_program(tmp_path):
    assert main.main(["run", "--no-raw", str(tmp_path / "nope.obj")]) == 1


def test_malformed_program(tmp_path):
    assert main.main(["run", "--no-raw", write_program(tmp_path, b"\x30\x00\x12")]) == 1


def test_fatal_error_exit_status(tmp_path, capsys):
    data = bytes([0x30, 0x00, 0xD0, 0x00])
    assert main.main(["run", "--no-raw", write_program(tmp_path, data)]) == 1
    assert "Application error: illegal instruction RES at x3000" in capsys.readouterr().err


def test_debug_run_shuts_the_listener_down(tmp_path, monkeypatch):
    started = []

    class ResumingServer(DebugServer):
        """Stands in for a client that attaches and continues immediately."""

        def start(self):
            thread = super().start()
            started.append((self, thread))
            self.cpu.controller.request_continue()
            return thread

    monkeypatch.setattr(main, "DebugServer", ResumingServer)
    data = bytes([0x30, 0x00, 0xF0, 0x25])   # HALT
    argv = ["run", "--no-raw", "-d", "--port", "0", write_program(tmp_path, data)]
    assert main.main(argv) == 0

    (server, thread), = started
    assert not thread.is_alive()
    assert server.socket.fileno() == -1
