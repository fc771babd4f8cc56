"""Streamlit focus/break dashboard.

Features:
- Sidebar with the four durations and a sound toggle.
- Large centered timer, progress bar, session counter and Start/Pause/Reset buttons.
- Upcoming intervals for the current cycle.
- Plays a generated beep when an interval completes.

One scheduler is built per browser session and kept in ``st.session_state``.
While it runs, the page catches up on elapsed seconds, sleeps one second and
reruns.
"""
from __future__ import annotations

import time
from typing import Optional

import streamlit as st

from . import scheduler
from .clock import WallClock
from .config import AppConfig
from .log import setup_logger
from .notifier import SchedulerAnnouncer, Severity, generate_beep
from .storage import JsonFileStorage

UPCOMING_INTERVALS = 5

_ICON_NAMES = {Severity.SUCCESS: "✅", Severity.ERROR: "❌", Severity.WARNING: "⚠️", Severity.INFO: "ℹ️"}


class StreamlitNotifier:
    def __init__(self, sound_enabled: bool = True):
        self.sound_enabled = sound_enabled
        self.last_announcement = ""

    def toast(self, message: str, severity: Severity = Severity.INFO, duration_ms: int = 3000) -> None:
        severity = Severity(severity)
        st.toast(message, icon=_ICON_NAMES[severity])

    def announce(self, message: str) -> None:
        self.last_announcement = message

    def play_completion_sound(self) -> None:
        if self.sound_enabled:
            st.audio(generate_beep(), format="audio/wav", autoplay=True)


class StreamlitRenderer:
    """Remembers the latest change and paints the timer from it."""

    def __init__(self, sched: scheduler.SessionScheduler):
        self.scheduler = sched
        self.last_change: Optional[scheduler.StateChange] = None

    def __call__(self, change: scheduler.StateChange) -> None:
        self.last_change = change

    def paint(self) -> None:
        state = self.scheduler.state
        mins, secs = divmod(state.remaining_seconds, 60)
        marker = "▶" if state.is_running else "⏸"
        st.markdown(
            f"<div class='interval-label'>{state.interval_type.label}</div>"
            f"<div class='big-timer'>{marker} {mins:02d}:{secs:02d}</div>",
            unsafe_allow_html=True,
        )
        st.progress(self.scheduler.progress)
        change = self.last_change
        if change is not None and change.event is scheduler.SchedulerEvent.COMPLETED:
            st.success(f"✓ {change.completed.label} complete")
        st.caption(
            f"Session: {state.current_cycle_number} · "
            f"Focus intervals completed: {state.focus_intervals_completed}"
        )


def _build_session() -> None:
    config = AppConfig.from_env()
    setup_logger(config.log_level, config.log_file)
    notifier = StreamlitNotifier(sound_enabled=config.sound_enabled)
    storage = JsonFileStorage(
        config.storage_path,
        on_error=lambda message: notifier.toast(message, Severity.WARNING),
    )
    clock = WallClock()
    sched = scheduler.SessionScheduler.create(storage, clock)
    SchedulerAnnouncer(notifier).attach(sched)
    renderer = StreamlitRenderer(sched)
    sched.subscribe(renderer)

    st.session_state.scheduler = sched
    st.session_state.clock = clock
    st.session_state.notifier = notifier
    st.session_state.renderer = renderer


def main() -> None:
    st.set_page_config(page_title="Focus Dashboard", layout="centered")

    if "scheduler" not in st.session_state:
        _build_session()
    sched: scheduler.SessionScheduler = st.session_state.scheduler
    clock: WallClock = st.session_state.clock
    notifier: StreamlitNotifier = st.session_state.notifier
    renderer: StreamlitRenderer = st.session_state.renderer

    st.title("Focus")

    # Sidebar: durations
    current = sched.settings
    with st.sidebar:
        focus_minutes = st.number_input("Focus minutes", min_value=1, value=current.focus_minutes)
        short_break_minutes = st.number_input("Short break minutes", min_value=1, value=current.short_break_minutes)
        long_break_minutes = st.number_input("Long break minutes", min_value=1, value=current.long_break_minutes)
        intervals_before_long = st.number_input(
            "Long break every N focus intervals", min_value=1, value=current.intervals_before_long
        )
        if st.button("Save settings"):
            sched.apply_settings(
                {
                    "focus_minutes": focus_minutes,
                    "short_break_minutes": short_break_minutes,
                    "long_break_minutes": long_break_minutes,
                    "intervals_before_long": intervals_before_long,
                }
            )
        st.write("---")
        notifier.sound_enabled = st.checkbox("Sound on completion", value=notifier.sound_enabled)

    # Simple CSS for big timer and buttons
    st.markdown(
        """
        <style>
        .interval-label {font-size:24px; text-align:center; margin-top: 12px}
        .big-timer {font-size:56px; font-weight:700; text-align:center; margin: 12px 0}
        div.stButton > button {height:64px; width:100%; font-size:18px}
        </style>
        """,
        unsafe_allow_html=True,
    )

    # Deliver the seconds that passed since the previous run
    clock.catch_up()

    c1, c2, c3 = st.columns([1, 1, 1])
    if c1.button("Start", disabled=sched.is_running):
        sched.start()
    if c2.button("Pause", disabled=not sched.is_running):
        sched.pause()
    if c3.button("Reset"):
        sched.reset()

    renderer.paint()
    if notifier.last_announcement:
        st.caption(notifier.last_announcement)

    st.write("---")
    st.subheader("Upcoming intervals")
    for item in scheduler.preview_plan(sched.settings, sched.state, UPCOMING_INTERVALS):
        st.write(f"- {item.label}: {item.duration_seconds // 60} min")

    if sched.is_running:
        time.sleep(1)
        st.rerun()


if __name__ == "__main__":
    main()
