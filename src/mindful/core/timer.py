"""
ExerciseTimer: phase/cycle countdown for guided breathing.

States: idle -> running(cycle, phase) -> completed | cancelled.

Phase changes are driven by one pending tick at a time, scheduled on a
cooperative Scheduler (the asyncio event loop in the app, a manual
virtual clock in tests). Each run owns a generation number; stop() and
restart bump it, so a tick scheduled by an earlier run is ignored even
if its handle could not be cancelled in time.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from ..content.exercises import ExerciseDefinition

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"


# =============================================================================
# SCHEDULERS
# =============================================================================

class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Cooperative timer source. Times are in milliseconds."""

    def now_ms(self) -> float:
        ...

    def call_later_ms(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """
    Schedules ticks on an asyncio event loop.

    When no loop is given, the running loop is used, so timers must be
    started from inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def call_later_ms(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay_ms / 1000.0, callback)


class _ManualHandle:
    def __init__(self, due_ms: float, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Virtual clock. Nothing fires until advance() moves time forward;
    due callbacks then run in time order, including ones they schedule.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._queue: list = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def call_later_ms(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle(self._now + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def advance(self, ms: float) -> None:
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            handle.callback()
        self._now = target

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)


# =============================================================================
# TIMER
# =============================================================================

@dataclass(frozen=True)
class PhaseEvent:
    """Emitted each time the active phase changes."""
    cycle: int
    phase_index: int
    label: str
    instruction: str

    def to_dict(self) -> dict:
        return {
            "cycle": self.cycle,
            "phase_index": self.phase_index,
            "label": self.label,
            "instruction": self.instruction,
        }


@dataclass(frozen=True)
class TimerState:
    status: str
    current_cycle: int
    current_phase_index: int
    elapsed_in_current_cycle_ms: float

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_RUNNING


PhaseListener = Callable[[PhaseEvent], None]
CompleteListener = Callable[[], None]


def instruction_listener(speak: Callable[[str], None]) -> PhaseListener:
    """Adapt a speak(text) capability into a phase listener."""
    def _listener(event: PhaseEvent) -> None:
        speak(event.instruction)
    return _listener


class ExerciseTimer:
    """
    Drives one exercise at a time through its phases and cycles.

    start() while already running cancels the current run and starts
    again from cycle 0, phase 0. stop() outside a run does nothing.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        on_phase: Optional[PhaseListener] = None,
        on_complete: Optional[CompleteListener] = None,
    ):
        self.scheduler = scheduler or AsyncioScheduler()
        self._phase_listeners: List[PhaseListener] = []
        self._complete_listeners: List[CompleteListener] = []
        if on_phase is not None:
            self._phase_listeners.append(on_phase)
        if on_complete is not None:
            self._complete_listeners.append(on_complete)

        self.definition: Optional[ExerciseDefinition] = None
        self._status = STATUS_IDLE
        self._generation = 0
        self._handle: Optional[TimerHandle] = None
        self._cycle = 0
        self._phase_index = 0
        self._phase_started_ms = 0.0
        self._frozen_at_ms: Optional[float] = None

    # -- listeners ------------------------------------------------------------

    def add_phase_listener(self, listener: PhaseListener) -> None:
        self._phase_listeners.append(listener)

    def add_complete_listener(self, listener: CompleteListener) -> None:
        self._complete_listeners.append(listener)

    # -- control --------------------------------------------------------------

    def start(self, definition: Optional[ExerciseDefinition] = None) -> None:
        """Begin a fresh run. Without a definition, reruns the previous one."""
        definition = definition or self.definition
        if definition is None:
            raise ValueError("No exercise definition to start")

        if self._status == STATUS_RUNNING:
            logger.info(f"[ExerciseTimer] Restarting '{definition.name}' from the top")
            self._invalidate()

        self._generation += 1
        self.definition = definition
        self._status = STATUS_RUNNING
        self._frozen_at_ms = None
        logger.info(
            f"[ExerciseTimer] Starting '{definition.name}' "
            f"({len(definition.phases)} phases x {definition.total_cycles} cycles)"
        )
        self._enter_phase(0, 0)

    def stop(self) -> None:
        if self._status != STATUS_RUNNING:
            return
        self._invalidate()
        self._generation += 1
        self._status = STATUS_CANCELLED
        self._frozen_at_ms = self.scheduler.now_ms()
        logger.info(f"[ExerciseTimer] Stopped at cycle {self._cycle}, phase {self._phase_index}")

    def _invalidate(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    # -- transitions ----------------------------------------------------------

    def _enter_phase(self, cycle: int, phase_index: int) -> None:
        phase = self.definition.phases[phase_index]
        self._cycle = cycle
        self._phase_index = phase_index
        self._phase_started_ms = self.scheduler.now_ms()

        generation = self._generation
        self._handle = self.scheduler.call_later_ms(
            phase.duration_ms, lambda: self._on_tick(generation)
        )
        self._emit_phase(PhaseEvent(cycle, phase_index, phase.label, phase.instruction))

    def _on_tick(self, generation: int) -> None:
        if generation != self._generation or self._status != STATUS_RUNNING:
            return  # stale tick from a stopped or superseded run
        self._handle = None

        next_phase = self._phase_index + 1
        if next_phase < len(self.definition.phases):
            self._enter_phase(self._cycle, next_phase)
        elif self._cycle + 1 < self.definition.total_cycles:
            self._enter_phase(self._cycle + 1, 0)
        else:
            self._complete()

    def _complete(self) -> None:
        self._status = STATUS_COMPLETED
        self._cycle = self.definition.total_cycles
        self._frozen_at_ms = self.scheduler.now_ms()
        logger.info(f"[ExerciseTimer] Completed '{self.definition.name}'")
        for listener in list(self._complete_listeners):
            try:
                listener()
            except Exception:
                logger.exception("[ExerciseTimer] Completion listener failed")

    def _emit_phase(self, event: PhaseEvent) -> None:
        for listener in list(self._phase_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("[ExerciseTimer] Phase listener failed")

    # -- observation ----------------------------------------------------------

    @property
    def status(self) -> str:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status == STATUS_RUNNING

    def _phase_elapsed_ms(self) -> float:
        if self.definition is None or self._status in (STATUS_IDLE, STATUS_COMPLETED):
            return 0.0
        end = self._frozen_at_ms if self._frozen_at_ms is not None else self.scheduler.now_ms()
        duration = self.definition.phases[self._phase_index].duration_ms
        return min(max(0.0, end - self._phase_started_ms), float(duration))

    def _elapsed_in_cycle_ms(self) -> float:
        if self.definition is None or self._status in (STATUS_IDLE, STATUS_COMPLETED):
            return 0.0
        before = sum(p.duration_ms for p in self.definition.phases[: self._phase_index])
        return before + self._phase_elapsed_ms()

    @property
    def state(self) -> TimerState:
        return TimerState(
            status=self._status,
            current_cycle=self._cycle,
            current_phase_index=self._phase_index,
            elapsed_in_current_cycle_ms=self._elapsed_in_cycle_ms(),
        )

    @property
    def current_phase(self):
        if self.definition is None or self._status != STATUS_RUNNING:
            return None
        return self.definition.phases[self._phase_index]

    def phase_progress(self) -> float:
        """Percent of the current phase elapsed (resets on every phase change)."""
        phase = self.current_phase
        if phase is None:
            return 100.0 if self._status == STATUS_COMPLETED else 0.0
        return 100.0 * self._phase_elapsed_ms() / phase.duration_ms

    def progress(self) -> float:
        """Percent of the whole exercise (all cycles) elapsed, never above 100."""
        if self.definition is None or self._status == STATUS_IDLE:
            return 0.0
        if self._status == STATUS_COMPLETED:
            return 100.0
        elapsed = self._cycle * self.definition.cycle_duration_ms + self._elapsed_in_cycle_ms()
        return min(100.0, 100.0 * elapsed / self.definition.total_duration_ms)
