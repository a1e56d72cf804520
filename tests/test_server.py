import threading
import time

import pytest

from debugger.client import DebugClient
from debugger.server import GREETING, DebugServer
from lc3.controller import RunState
from lc3.errors import DebugProtocolError


@pytest.fixture
def vm(make_machine):
    m = make_machine(start_paused=True)
    m.load("ADD R1, R1, #7", "ADD R1, R1, #-7", "HALT")
    return m


@pytest.fixture
def server(vm):
    srv = DebugServer(("127.0.0.1", 0), vm.cpu)
    srv.start()
    yield srv
    srv.stop()


def connect(server):
    return DebugClient("127.0.0.1", server.port)


def test_greeting_and_inspection(server):
    with connect(server) as client:
        assert client.greeting == [GREETING]
        regs = client.registers()
        assert list(regs) == [f"R{i}" for i in range(8)] + ["PC"]
        assert regs["PC"] == 0x3000
        assert client.condition() == "Z"
        assert client.status() == {"state": "paused", "PC": "x3000"}
        assert client.read(0x3000, 2) == [0x1267, 0x1279]
        assert client.disassemble(0x3002) == ["x3002: xF025  HALT"]
        assert client.disassemble() == ["x3000: x1267  ADD R1, R1, #7"]


def test_errors_keep_the_session_usable(server):
    with connect(server) as client:
        with pytest.raises(DebugProtocolError, match="unknown command"):
            client.command("launch")
        with pytest.raises(DebugProtocolError, match="bad address"):
            client.command("read 0xZZZZ")
        assert client.command("") == []
        assert client.registers()["PC"] == 0x3000


def test_breakpoints_over_the_wire(server, vm):
    with connect(server) as client:
        assert client.toggle_breakpoint(0x3001) is True
        assert client.toggle_breakpoint(0x3002) is True
        assert client.breakpoints() == [0x3001, 0x3002]
        assert client.toggle_breakpoint(0x3002) is False
        assert vm.controller.breakpoints() == [0x3001]


def test_remote_run_control(server, vm):
    engine = threading.Thread(target=vm.cpu.run, daemon=True)
    engine.start()
    assert vm.controller.wait_until_paused(5)

    with connect(server) as client:
        client.toggle_breakpoint(0x3002)
        client.step()
        assert client.registers()["R1"] == 7
        assert client.condition() == "P"
        client.resume()
        assert vm.controller.wait_until_paused(5)
        assert client.status()["PC"] == "x3002"
        assert client.registers()["R1"] == 0
        assert client.condition() == "Z"
        client.resume()
        assert vm.controller.wait_until_halted(5)
        assert client.status()["state"] == "halted"
    engine.join(5)
    assert not engine.is_alive()


def test_session_tracking(server):
    assert not server.has_session()
    client = connect(server)
    assert server.has_session()
    assert client.command("quit") == ["bye"]
    client.close()
    assert server.wait_for_idle(5)
    assert not server.has_session()


def test_next_client_is_served_after_the_first_leaves(server):
    with connect(server) as first:
        first.registers()
    with connect(server) as second:
        assert second.greeting == [GREETING]
        assert second.registers()["PC"] == 0x3000


def wait_for_change(read, timeout=5.0):
    first = read()
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if read() != first:
            return True
        time.sleep(0.01)
    return False


def test_disconnect_leaves_the_engine_running(make_machine):
    m = make_machine()
    m.load("ADD R0, R0, #1", "BRnzp #-2")
    srv = DebugServer(("127.0.0.1", 0), m.cpu)
    srv.start()
    engine = threading.Thread(target=m.cpu.run, daemon=True)
    engine.start()
    try:
        client = connect(srv)
        client.pause()
        assert m.controller.state is RunState.PAUSED
        client.resume()
        client.close()
        assert srv.wait_for_idle(5)

        assert m.controller.state is RunState.RUNNING
        assert wait_for_change(lambda: m.cpu.reg[0])
        assert m.controller.state is RunState.RUNNING
    finally:
        m.controller.halt()
        engine.join(5)
        srv.stop()
    assert not engine.is_alive()
