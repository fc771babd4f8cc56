import pytest

from focusdash.clock import ManualClock
from focusdash.scheduler import SessionScheduler
from focusdash.storage import MemoryStorage


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def toast(self, message, severity="info", duration_ms=3000):
        self.calls.append(("toast", message, str(getattr(severity, "value", severity))))

    def announce(self, message):
        self.calls.append(("announce", message))

    def play_completion_sound(self):
        self.calls.append(("sound",))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def sched(storage, clock):
    return SessionScheduler.create(storage, clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()
