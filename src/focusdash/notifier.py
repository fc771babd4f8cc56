"""Toasts, screen-reader announcements and the completion beep."""
from __future__ import annotations

import io
import math
import struct
import sys
import wave
from enum import Enum
from typing import Protocol, TextIO

from loguru import logger

from .scheduler import SchedulerEvent, SessionScheduler, StateChange
from .types import IntervalType

logger = logger.bind(module="focusdash.notifier")


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


ICONS = {
    Severity.SUCCESS: "✓",
    Severity.ERROR: "✗",
    Severity.WARNING: "⚠",
    Severity.INFO: "ℹ",
}


class Notifier(Protocol):
    def toast(self, message: str, severity: Severity = Severity.INFO, duration_ms: int = 3000) -> None: ...

    def announce(self, message: str) -> None: ...

    def play_completion_sound(self) -> None: ...


def generate_beep(duration_s: float = 0.5, freq: float = 800.0, volume: float = 0.3, samplerate: int = 44100) -> bytes:
    """Generate a short WAV beep (mono 16-bit PCM) in memory."""
    n_samples = int(samplerate * duration_s)
    amplitude = int(32767 * volume)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(samplerate)
        for i in range(n_samples):
            t = i / samplerate
            # exponential fade so the tone does not click off
            fade = math.exp(-5 * t / duration_s)
            sample = int(amplitude * fade * math.sin(2 * math.pi * freq * t))
            wf.writeframes(struct.pack("<h", sample))
    return buf.getvalue()


class ConsoleNotifier:
    """Prints toasts on their own line and rings the terminal bell."""

    def __init__(self, stream: TextIO | None = None, sound_enabled: bool = True):
        self.stream = stream or sys.stdout
        self.sound_enabled = sound_enabled

    def toast(self, message: str, severity: Severity = Severity.INFO, duration_ms: int = 3000) -> None:
        severity = Severity(severity)
        self.stream.write(f"\n{ICONS[severity]} {message}\n")
        self.stream.flush()
        logger.log("WARNING" if severity in (Severity.WARNING, Severity.ERROR) else "DEBUG", message)

    def announce(self, message: str) -> None:
        logger.info(message)

    def play_completion_sound(self) -> None:
        if not self.sound_enabled:
            return
        self.stream.write("\a")
        self.stream.flush()


class SchedulerAnnouncer:
    """Turns scheduler events into notifications."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    def attach(self, scheduler: SessionScheduler) -> "SchedulerAnnouncer":
        scheduler.subscribe(self)
        return self

    def __call__(self, change: StateChange) -> None:
        event = change.event
        if event is SchedulerEvent.STARTED:
            self.notifier.announce(f"Timer started for {change.state.interval_type.label}")
        elif event is SchedulerEvent.PAUSED:
            self.notifier.announce("Timer paused")
        elif event is SchedulerEvent.RESET:
            self.notifier.announce("Timer reset")
        elif event is SchedulerEvent.COMPLETED:
            self.notifier.play_completion_sound()
            if change.completed is IntervalType.FOCUS:
                self.notifier.toast("Focus session complete! Time for a break.", Severity.SUCCESS)
                self.notifier.announce("Focus session complete! Time for a break")
            else:
                self.notifier.toast("Break complete! Ready for another focus session?", Severity.SUCCESS)
                self.notifier.announce("Break complete!")
        elif event is SchedulerEvent.SETTINGS_APPLIED:
            self.notifier.toast("Settings saved", Severity.SUCCESS)
            self.notifier.announce("Settings saved")
