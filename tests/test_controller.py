import threading

import pytest

from lc3.controller import DebugController, RunState

TIMEOUT = 5.0


def start(machine):
    t = threading.Thread(target=machine.cpu.run, daemon=True)
    t.start()
    return t


@pytest.fixture
def paused(make_machine):
    m = make_machine(start_paused=True)
    m.load("ADD R0, R0, #1", "ADD R0, R0, #1", "ADD R0, R0, #1", "HALT")
    return m


def test_initial_state():
    assert DebugController().state is RunState.RUNNING
    assert DebugController(start_paused=True).state is RunState.PAUSED


def test_toggle_breakpoint():
    c = DebugController()
    assert c.toggle_breakpoint(0x3005) is True
    assert c.toggle_breakpoint(0x3001) is True
    assert c.breakpoints() == [0x3001, 0x3005]
    assert c.toggle_breakpoint(0x3005) is False
    assert c.breakpoints() == [0x3001]


def test_checkpoint_running_without_breakpoint():
    c = DebugController()
    assert c.checkpoint(0x3000) is True
    assert c.state is RunState.RUNNING


def test_continue_is_noop_when_running():
    c = DebugController()
    assert c.request_continue() is False
    assert c.request_step() is False
    assert c.state is RunState.RUNNING


def test_halted_is_terminal():
    c = DebugController()
    c.toggle_breakpoint(0x3000)
    c.halt()
    assert c.request_continue() is False
    assert c.request_pause() is False
    assert c.request_step() is False
    assert c.checkpoint(0x3000) is False
    assert c.state is RunState.HALTED
    assert c.error is None


def test_halt_records_error():
    c = DebugController()
    err = RuntimeError("boom")
    c.halt(err)
    assert c.error is err
    assert c.wait_until_halted(0) is True


def test_starts_parked_at_origin(paused):
    t = start(paused)
    assert paused.controller.wait_until_paused(TIMEOUT)
    assert paused.controller.parked
    assert paused.controller.paused_at == 0x3000
    assert paused.cpu.reg[0] == 0
    paused.controller.halt()
    t.join(TIMEOUT)
    assert not t.is_alive()


def test_breakpoint_pauses_before_execution(paused):
    controller, cpu = paused.controller, paused.cpu
    controller.toggle_breakpoint(0x3002)
    t = start(paused)
    assert controller.wait_until_paused(TIMEOUT)
    assert controller.request_continue()

    assert controller.wait_until_paused(TIMEOUT)
    assert controller.state is RunState.PAUSED
    assert controller.paused_at == 0x3002
    assert cpu.reg.pc == 0x3002
    assert cpu.reg[0] == 2

    # continuing executes the instruction under the breakpoint
    assert controller.request_continue()
    assert controller.wait_until_halted(TIMEOUT)
    t.join(TIMEOUT)
    assert cpu.reg[0] == 3


def test_step_executes_one_instruction(paused):
    controller, cpu = paused.controller, paused.cpu
    t = start(paused)
    assert controller.wait_until_paused(TIMEOUT)

    for expected in (1, 2, 3):
        assert controller.request_step()
        assert controller.wait_until_paused(TIMEOUT)
        assert cpu.reg[0] == expected
        assert cpu.reg.pc == 0x3000 + expected
        assert controller.state is RunState.PAUSED

    # stepping HALT ends the run
    assert controller.request_step()
    assert controller.wait_until_halted(TIMEOUT)
    t.join(TIMEOUT)
    assert not t.is_alive()


def test_step_onto_breakpoint_does_not_skip_it(paused):
    controller, cpu = paused.controller, paused.cpu
    controller.toggle_breakpoint(0x3001)
    t = start(paused)
    assert controller.wait_until_paused(TIMEOUT)
    assert controller.request_step()
    assert controller.wait_until_paused(TIMEOUT)
    assert cpu.reg.pc == 0x3001
    assert cpu.reg[0] == 1
    controller.halt()
    t.join(TIMEOUT)


def test_pause_stops_a_running_loop(make_machine):
    m = make_machine()
    m.load("BRnzp #-1")
    t = start(m)
    assert m.controller.request_pause()
    assert m.controller.wait_until_paused(TIMEOUT)
    assert m.controller.state is RunState.PAUSED
    assert m.cpu.reg.pc == 0x3000
    assert m.controller.request_pause() is False

    m.controller.halt()
    t.join(TIMEOUT)
    assert not t.is_alive()


def test_halt_instruction_is_terminal_despite_breakpoints(make_machine):
    m = make_machine()
    m.load("HALT", "ADD R0, R0, #1")
    m.controller.toggle_breakpoint(0x3001)
    m.cpu.run()
    assert m.controller.is_halted()
    assert m.cpu.reg[0] == 0
    assert m.controller.request_continue() is False


def test_breakpoint_set_while_running_takes_effect(make_machine):
    m = make_machine()
    m.load("ADD R0, R0, #1", "BRnzp #-2")
    t = start(m)
    m.controller.toggle_breakpoint(0x3001)
    assert m.controller.wait_until_paused(TIMEOUT)
    assert m.controller.state is RunState.PAUSED
    assert m.controller.paused_at == 0x3001
    assert m.cpu.reg.pc == 0x3001

    m.controller.halt()
    t.join(TIMEOUT)
    assert not t.is_alive()
