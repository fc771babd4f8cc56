import pytest

from focusdash import scheduler
from focusdash.clock import ManualClock
from focusdash.scheduler import IntervalType, SchedulerEvent, SessionScheduler
from focusdash.settings import Settings
from focusdash.storage import MemoryStorage


def run_current_interval(sched, clock):
    sched.start()
    return clock.advance(sched.state.remaining_seconds)


def test_fresh_scheduler_starts_idle_on_full_focus(sched):
    state = sched.state
    assert state.interval_type is IntervalType.FOCUS
    assert state.remaining_seconds == 25 * 60
    assert state.is_running is False
    assert state.focus_intervals_completed == 0
    assert state.current_cycle_number == 1


def test_default_focus_completes_after_1500_ticks(sched, clock):
    sched.start()
    delivered = clock.advance(2000)

    assert delivered == 1500
    state = sched.state
    assert state.interval_type is IntervalType.SHORT_BREAK
    assert state.remaining_seconds == 300
    assert state.focus_intervals_completed == 1
    assert state.is_running is False
    assert not clock.running


def test_fourth_focus_leads_to_long_break(sched, clock):
    for index in range(4):
        run_current_interval(sched, clock)
        if index < 3:
            assert sched.state.interval_type is IntervalType.SHORT_BREAK
            run_current_interval(sched, clock)

    state = sched.state
    assert state.interval_type is IntervalType.LONG_BREAK
    assert state.focus_intervals_completed == 4
    assert state.remaining_seconds == 15 * 60


@pytest.mark.parametrize("n", [1, 2, 3, 5])
def test_long_break_every_n_focus_intervals(n):
    sched = SessionScheduler.create(MemoryStorage(), ManualClock())
    sched.apply_settings(Settings(1, 1, 1, n))
    clock = sched.clock

    breaks = []
    for _ in range(2 * n):
        run_current_interval(sched, clock)
        breaks.append(sched.state.interval_type)
        run_current_interval(sched, clock)

    for k, kind in enumerate(breaks, start=1):
        expected = IntervalType.LONG_BREAK if k % n == 0 else IntervalType.SHORT_BREAK
        assert kind is expected


def test_cycle_number_counts_completed_breaks(sched, clock):
    run_current_interval(sched, clock)
    assert sched.state.current_cycle_number == 1
    run_current_interval(sched, clock)
    assert sched.state.current_cycle_number == 2
    assert sched.state.interval_type is IntervalType.FOCUS


def test_remaining_seconds_stays_within_bounds(sched, clock):
    sched.apply_settings(Settings(1, 1, 1, 2))
    sched.start()
    for _ in range(500):
        if not clock.running:
            sched.start()
        clock.advance(1)
        state = sched.state
        assert 0 <= state.remaining_seconds <= sched.settings.minutes_for(state.interval_type) * 60


def test_no_auto_start_after_completion(sched, clock):
    run_current_interval(sched, clock)
    assert clock.advance(10) == 0
    assert sched.state.remaining_seconds == 300


def test_start_twice_is_noop(sched, clock):
    events = []
    sched.subscribe(lambda change: events.append(change.event))
    sched.start()
    sched.start()
    assert events == [SchedulerEvent.STARTED]


def test_pause_when_idle_changes_nothing(sched):
    events = []
    sched.subscribe(lambda change: events.append(change.event))
    before = sched.state
    sched.pause()
    assert sched.state == before
    assert events == []


def test_pause_stops_consuming_ticks(sched, clock):
    sched.start()
    clock.advance(10)
    sched.pause()
    assert clock.advance(10) == 0
    assert sched.state.remaining_seconds == 1490
    sched.start()
    clock.advance(10)
    assert sched.state.remaining_seconds == 1480


def test_tick_while_idle_is_ignored(sched):
    sched.tick()
    assert sched.state.remaining_seconds == 1500


def test_reset_keeps_focus_total_and_is_idempotent(sched, clock):
    run_current_interval(sched, clock)
    run_current_interval(sched, clock)
    sched.start()
    clock.advance(30)

    sched.reset()
    once = sched.state
    sched.reset()

    assert sched.state == once
    assert once.interval_type is IntervalType.FOCUS
    assert once.current_cycle_number == 1
    assert once.remaining_seconds == 1500
    assert once.focus_intervals_completed == 1
    assert once.is_running is False
    assert not clock.running


def test_apply_settings_while_idle_resets_remaining(sched, clock):
    sched.start()
    clock.advance(100)
    sched.pause()

    sched.apply_settings(Settings(focus_minutes=10))

    assert sched.state.remaining_seconds == 600
    assert sched.settings_store.get_duration_seconds(IntervalType.FOCUS) == 600


def test_apply_settings_while_running_keeps_countdown(sched, clock):
    sched.start()
    clock.advance(60)

    sched.apply_settings(Settings(focus_minutes=30))
    assert sched.state.remaining_seconds == 1440

    sched.apply_settings(Settings(focus_minutes=10))
    assert sched.state.remaining_seconds == 600

    clock.advance(600)
    assert sched.state.interval_type is IntervalType.SHORT_BREAK


def test_progress_fraction_is_clamped():
    assert scheduler.progress_fraction(1500, 1500) == 0.0
    assert scheduler.progress_fraction(750, 1500) == 0.5
    assert scheduler.progress_fraction(0, 1500) == 1.0
    assert scheduler.progress_fraction(2000, 1500) == 0.0
    assert scheduler.progress_fraction(10, 0) == 1.0


def test_progress_tracks_ticks(sched, clock):
    sched.start()
    clock.advance(375)
    assert sched.progress == pytest.approx(0.25)


def test_completion_persists_state(sched, clock, storage):
    run_current_interval(sched, clock)
    assert storage.get(scheduler.STATE_KEY) == {
        "intervalType": "shortBreak",
        "currentCycleNumber": 1,
        "focusIntervalsCompleted": 1,
    }


def test_reload_restarts_persisted_interval_idle(sched, clock, storage):
    run_current_interval(sched, clock)
    sched.start()
    clock.advance(100)

    reloaded = SessionScheduler.create(storage, ManualClock())
    state = reloaded.state
    assert state.interval_type is IntervalType.SHORT_BREAK
    assert state.remaining_seconds == 300
    assert state.is_running is False
    assert state.focus_intervals_completed == 1


def test_malformed_state_falls_back_per_field():
    storage = MemoryStorage(
        {
            scheduler.STATE_KEY: {
                "intervalType": "nap",
                "currentCycleNumber": 3,
                "focusIntervalsCompleted": -2,
            }
        }
    )
    state = SessionScheduler.create(storage, ManualClock()).state
    assert state.interval_type is IntervalType.FOCUS
    assert state.current_cycle_number == 3
    assert state.focus_intervals_completed == 0


def test_non_mapping_state_is_ignored():
    storage = MemoryStorage({scheduler.STATE_KEY: ["focus", 2]})
    state = SessionScheduler.create(storage, ManualClock()).state
    assert state == scheduler.SchedulerState.initial(Settings())


def test_write_failure_keeps_in_memory_state(clock):
    class BrokenStorage(MemoryStorage):
        def set(self, key, value):
            return False

    sched = SessionScheduler.create(BrokenStorage(), clock)
    run_current_interval(sched, clock)
    assert sched.state.interval_type is IntervalType.SHORT_BREAK
    assert sched.state.focus_intervals_completed == 1


def test_failing_listener_does_not_block_others(sched):
    seen = []

    def broken(change):
        raise RuntimeError("boom")

    sched.subscribe(broken)
    sched.subscribe(lambda change: seen.append(change.event))
    sched.start()

    assert seen == [SchedulerEvent.STARTED]
    assert sched.is_running


def test_subscribe_rejects_non_callable(sched):
    with pytest.raises(ValueError):
        sched.subscribe("not a listener")


def test_completed_event_names_finished_interval(sched, clock):
    changes = []
    sched.subscribe(changes.append)
    run_current_interval(sched, clock)

    last = changes[-1]
    assert last.event is SchedulerEvent.COMPLETED
    assert last.completed is IntervalType.FOCUS
    assert last.state.interval_type is IntervalType.SHORT_BREAK
    assert [c.event for c in changes].count(SchedulerEvent.TICK) == 1499


def test_preview_plan_includes_long_break_after_nth_focus():
    settings = Settings(focus_minutes=1, short_break_minutes=1, long_break_minutes=2, intervals_before_long=2)
    plan = scheduler.preview_plan(settings, scheduler.SchedulerState.initial(settings), 5)
    labels = [interval.label for interval in plan]
    assert labels == ["Focus 1", "Short break 1", "Focus 2", "Long break 2", "Focus 3"]
    assert plan[3].duration_seconds == 2 * 60


def test_preview_plan_rejects_negative_count():
    with pytest.raises(ValueError):
        scheduler.preview_plan(Settings(), scheduler.SchedulerState.initial(Settings()), -1)


def test_next_interval():
    assert scheduler.next_interval(IntervalType.FOCUS, 3, 4) is IntervalType.SHORT_BREAK
    assert scheduler.next_interval(IntervalType.FOCUS, 8, 4) is IntervalType.LONG_BREAK
    assert scheduler.next_interval(IntervalType.LONG_BREAK, 8, 4) is IntervalType.FOCUS
