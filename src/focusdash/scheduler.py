"""Focus/break session scheduler."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

from loguru import logger

from .clock import Clock
from .settings import Settings, SettingsInput, SettingsStore
from .storage import Storage
from .types import Interval, IntervalType

logger = logger.bind(module="focusdash.scheduler")

STATE_KEY = "focusdash.pomodoro.v1"


@dataclass
class SchedulerState:
    """Snapshot of where the cycle stands."""

    interval_type: IntervalType
    remaining_seconds: int
    is_running: bool = False
    focus_intervals_completed: int = 0
    current_cycle_number: int = 1

    def to_record(self) -> dict:
        # remaining_seconds and is_running are deliberately not persisted
        return {
            "intervalType": self.interval_type.value,
            "currentCycleNumber": self.current_cycle_number,
            "focusIntervalsCompleted": self.focus_intervals_completed,
        }

    @classmethod
    def initial(cls, settings: Settings) -> "SchedulerState":
        return cls(
            interval_type=IntervalType.FOCUS,
            remaining_seconds=settings.minutes_for(IntervalType.FOCUS) * 60,
        )

    @classmethod
    def from_record(cls, data: Any, settings: Settings) -> "SchedulerState":
        """Restore a persisted blob. Each malformed field falls back to its default."""
        state = cls.initial(settings)
        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning(f"Ignoring stored scheduler state of type {type(data).__name__}")
            return state

        try:
            state.interval_type = IntervalType(data.get("intervalType", "focus"))
        except ValueError:
            logger.warning(f"Unknown intervalType {data.get('intervalType')!r}, using focus")

        cycle = data.get("currentCycleNumber")
        if _is_int(cycle) and cycle >= 1:
            state.current_cycle_number = cycle
        elif cycle is not None:
            logger.warning(f"Ignoring malformed currentCycleNumber={cycle!r}")

        completed = data.get("focusIntervalsCompleted")
        if _is_int(completed) and completed >= 0:
            state.focus_intervals_completed = completed
        elif completed is not None:
            logger.warning(f"Ignoring malformed focusIntervalsCompleted={completed!r}")

        state.remaining_seconds = settings.minutes_for(state.interval_type) * 60
        return state


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def next_interval(
    completed: IntervalType, focus_intervals_completed: int, intervals_before_long: int
) -> IntervalType:
    """Pick the interval that follows ``completed``.

    ``focus_intervals_completed`` must already include ``completed`` when it
    is a focus interval.
    """
    if completed is IntervalType.FOCUS:
        if focus_intervals_completed % intervals_before_long == 0:
            return IntervalType.LONG_BREAK
        return IntervalType.SHORT_BREAK
    return IntervalType.FOCUS


def complete_interval(state: SchedulerState, settings: Settings) -> SchedulerState:
    """Return the state after the current interval runs out."""
    focus_done = state.focus_intervals_completed
    cycle = state.current_cycle_number
    if state.interval_type is IntervalType.FOCUS:
        focus_done += 1
    else:
        cycle += 1
    following = next_interval(state.interval_type, focus_done, settings.intervals_before_long)
    return SchedulerState(
        interval_type=following,
        remaining_seconds=settings.minutes_for(following) * 60,
        is_running=False,
        focus_intervals_completed=focus_done,
        current_cycle_number=cycle,
    )


def progress_fraction(remaining_seconds: int, duration_seconds: int) -> float:
    if duration_seconds <= 0:
        return 1.0
    return min(1.0, max(0.0, 1 - remaining_seconds / duration_seconds))


def preview_plan(settings: Settings, state: SchedulerState, count: int) -> List[Interval]:
    """List the next ``count`` intervals, starting with the current one.

    Args:
        settings: Durations and long-break cadence to plan with.
        state: Where the cycle stands now.
        count: How many intervals to list.
    """
    if count < 0:
        raise ValueError("count must not be negative")

    intervals: List[Interval] = []
    current = replace(state)
    for _ in range(count):
        kind = current.interval_type
        if kind is IntervalType.FOCUS:
            label = f"Focus {current.focus_intervals_completed + 1}"
        else:
            label = f"{kind.label} {current.current_cycle_number}"
        intervals.append(
            Interval(kind=kind, label=label, duration_seconds=settings.minutes_for(kind) * 60)
        )
        current = complete_interval(current, settings)
    return intervals


class SchedulerEvent(str, Enum):
    STARTED = "started"
    PAUSED = "paused"
    RESET = "reset"
    TICK = "tick"
    COMPLETED = "completed"
    SETTINGS_APPLIED = "settings_applied"


@dataclass(frozen=True)
class StateChange:
    """Delivered to every listener after a mutation."""

    event: SchedulerEvent
    state: SchedulerState
    completed: Optional[IntervalType] = None


Listener = Callable[[StateChange], None]


class SessionScheduler:
    """Runs the focus/break cycle.

    Commands and clock ticks flow in; :class:`StateChange` events flow out to
    subscribed listeners (renderers, notification bridges). The scheduler
    never starts the next interval on its own.
    """

    def __init__(
        self,
        settings_store: SettingsStore,
        storage: Storage,
        clock: Clock,
        state_key: str = STATE_KEY,
    ):
        self.settings_store = settings_store
        self.storage = storage
        self.clock = clock
        self.state_key = state_key
        self._listeners: List[Listener] = []
        self._state = SchedulerState.from_record(
            storage.get(state_key), settings_store.current
        )

    @classmethod
    def create(cls, storage: Storage, clock: Clock) -> "SessionScheduler":
        """Load persisted settings and state from ``storage`` and build a scheduler."""
        settings_store = SettingsStore(storage)
        settings_store.load()
        return cls(settings_store, storage, clock)

    # ============== Accessors ==============

    @property
    def state(self) -> SchedulerState:
        return replace(self._state)

    @property
    def settings(self) -> Settings:
        return self.settings_store.current

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def duration_seconds(self) -> int:
        return self.settings_store.get_duration_seconds(self._state.interval_type)

    @property
    def progress(self) -> float:
        return progress_fraction(self._state.remaining_seconds, self.duration_seconds)

    # ============== Listeners ==============

    def subscribe(self, listener: Listener) -> None:
        if not callable(listener):
            raise ValueError("Listener must be callable")
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: SchedulerEvent, completed: Optional[IntervalType] = None) -> None:
        change = StateChange(event=event, state=self.state, completed=completed)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Error in listener for {event.value}")

    def _persist(self) -> None:
        if not self.storage.set(self.state_key, self._state.to_record()):
            logger.warning("Scheduler state not persisted; continuing in memory")

    # ============== Commands ==============

    def start(self) -> None:
        if self._state.is_running:
            return
        self._state.is_running = True
        self.clock.start(self.tick)
        logger.info(f"Started {self._state.interval_type.value} with {self._state.remaining_seconds}s left")
        self._emit(SchedulerEvent.STARTED)

    def pause(self) -> None:
        if not self._state.is_running:
            return
        self._state.is_running = False
        self.clock.stop()
        logger.info(f"Paused with {self._state.remaining_seconds}s left")
        self._emit(SchedulerEvent.PAUSED)

    def reset(self) -> None:
        self.clock.stop()
        self._state = SchedulerState(
            interval_type=IntervalType.FOCUS,
            remaining_seconds=self.settings_store.get_duration_seconds(IntervalType.FOCUS),
            is_running=False,
            focus_intervals_completed=self._state.focus_intervals_completed,
            current_cycle_number=1,
        )
        self._persist()
        logger.info("Timer reset")
        self._emit(SchedulerEvent.RESET)

    def tick(self) -> None:
        if not self._state.is_running:
            logger.debug("Ignoring tick while idle")
            return
        self._state.remaining_seconds -= 1
        if self._state.remaining_seconds <= 0:
            self._complete()
        else:
            self._emit(SchedulerEvent.TICK)

    def _complete(self) -> None:
        finished = self._state.interval_type
        self.clock.stop()
        self._state = complete_interval(self._state, self.settings)
        logger.info(
            f"Completed {finished.value}; next {self._state.interval_type.value} "
            f"(focus done {self._state.focus_intervals_completed}, cycle {self._state.current_cycle_number})"
        )
        self._persist()
        self._emit(SchedulerEvent.COMPLETED, completed=finished)

    def apply_settings(self, new_settings: SettingsInput) -> Settings:
        """Store new durations.

        While idle the current interval restarts at its new full length.
        While running the countdown keeps going and the new durations apply
        from the next interval. The one exception: a countdown longer than
        the new duration is cut down to it, so remaining time never exceeds
        the length of the current interval.
        """
        settings = self.settings_store.save(new_settings)
        duration = settings.minutes_for(self._state.interval_type) * 60
        if not self._state.is_running:
            self._state.remaining_seconds = duration
        elif self._state.remaining_seconds > duration:
            self._state.remaining_seconds = duration
        self._emit(SchedulerEvent.SETTINGS_APPLIED)
        return settings
