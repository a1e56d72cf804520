"""
Run state and breakpoints shared between the execution thread and the debug
session thread.

The engine calls checkpoint(pc) at every fetch boundary. That is the only
place it can block: while the state is PAUSED it waits on the condition
variable until a continue/step request (or a halt) wakes it up. Session
commands only flip the state and the breakpoint set, under the same lock.
"""
import logging
import threading
from enum import Enum
from typing import List, Optional, Set

logger = logging.getLogger(__name__)


class RunState(Enum):
    RUNNING = "running"
    PAUSED = "paused"
    HALTED = "halted"


class DebugController:
    def __init__(self, start_paused: bool = False):
        self._cond = threading.Condition()
        self._state = RunState.PAUSED if start_paused else RunState.RUNNING
        self._breakpoints: Set[int] = set()
        self._steps_left: Optional[int] = None
        self._parked = False
        self.paused_at: Optional[int] = None
        self.error: Optional[BaseException] = None

    @property
    def state(self) -> RunState:
        with self._cond:
            return self._state

    def is_halted(self) -> bool:
        return self.state is RunState.HALTED

    @property
    def parked(self) -> bool:
        """Engine is blocked at a fetch boundary; VM state is stable."""
        with self._cond:
            return self._parked

    # ───────────────────────── session side ─────────────────────────
    def request_pause(self) -> bool:
        """Running -> Paused. The engine stops at its next fetch boundary."""
        with self._cond:
            if self._state is not RunState.RUNNING:
                return False
            self._state = RunState.PAUSED
            self._cond.notify_all()
            logger.debug("pause requested")
            return True

    def request_continue(self) -> bool:
        """Paused -> Running; a no-op when already running or halted."""
        with self._cond:
            if self._state is not RunState.PAUSED:
                return False
            self._state = RunState.RUNNING
            self._steps_left = None
            self._parked = False
            self._cond.notify_all()
            logger.info("resumed at x%04X", self.paused_at or 0)
            return True

    def request_step(self) -> bool:
        """Execute exactly one instruction, then pause again."""
        with self._cond:
            if self._state is not RunState.PAUSED:
                return False
            self._state = RunState.RUNNING
            self._steps_left = 1
            self._parked = False
            self._cond.notify_all()
            return True

    def toggle_breakpoint(self, addr: int) -> bool:
        """Add `addr` if absent, remove it if present; True when now set."""
        addr &= 0xFFFF
        with self._cond:
            if addr in self._breakpoints:
                self._breakpoints.remove(addr)
                logger.info("breakpoint cleared at x%04X", addr)
                return False
            self._breakpoints.add(addr)
            logger.info("breakpoint set at x%04X", addr)
            return True

    def breakpoints(self) -> List[int]:
        with self._cond:
            return sorted(self._breakpoints)

    def wait_until_paused(self, timeout: Optional[float] = None) -> bool:
        """Block until the engine is parked at a fetch boundary (or halted)."""
        with self._cond:
            return self._cond.wait_for(
                lambda: self._parked or self._state is RunState.HALTED, timeout)

    def wait_until_halted(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(
                lambda: self._state is RunState.HALTED, timeout)

    # ───────────────────────── engine side ──────────────────────────
    def checkpoint(self, pc: int) -> bool:
        """
        Fetch-boundary check. Pauses on a breakpoint or a finished single
        step, then blocks while paused. Returns False once halted.
        """
        with self._cond:
            if self._state is RunState.RUNNING:
                if self._steps_left == 0:
                    self._pause_locked(pc, "step")
                elif self._steps_left:
                    self._steps_left -= 1
                elif pc in self._breakpoints:
                    self._pause_locked(pc, "breakpoint")
            if self._state is RunState.PAUSED:
                self.paused_at = pc
                while self._state is RunState.PAUSED:
                    self._parked = True
                    self._cond.notify_all()
                    self._cond.wait()
                self._parked = False
                if self._steps_left:
                    # this boundary's instruction is the step
                    self._steps_left -= 1
            return self._state is not RunState.HALTED

    def _pause_locked(self, pc: int, reason: str) -> None:
        self._state = RunState.PAUSED
        self._steps_left = None
        self.paused_at = pc
        logger.info("paused at x%04X (%s)", pc, reason)

    def halt(self, error: Optional[BaseException] = None) -> None:
        """Terminal transition; wakes anyone waiting on the state."""
        with self._cond:
            self._state = RunState.HALTED
            self.error = error
            self._cond.notify_all()
