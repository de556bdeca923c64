"""Pytest fixtures for compass tests."""

import sys
from pathlib import Path
from typing import Callable, List, Optional
import pytest

repo_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(repo_root))

from compass_fusion.core.config import Config
from compass_fusion.core.types import ChannelKind
from compass_fusion.listener import CompassListener
from compass_fusion.sensors import MockSensorSource


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0):
        self.time_ms = start_ms

    def now(self) -> int:
        return self.time_ms

    def advance(self, ms: int) -> int:
        self.time_ms += ms
        return self.time_ms


class ManualTask:
    """Scheduled task of ManualScheduler."""

    def __init__(self, due_ms: int, callback: Callable[[], None]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose tasks run when ``run_due`` or ``fire_all`` is called."""

    def __init__(self, clock: ManualClock):
        self._clock = clock
        self.tasks: List[ManualTask] = []

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(self._clock.now() + delay_ms, callback)
        self.tasks.append(task)
        return task

    @property
    def pending(self) -> List[ManualTask]:
        return [t for t in self.tasks if not t.cancelled and not t.fired]

    def run_due(self) -> int:
        """Run pending tasks whose due time has passed."""
        due = [t for t in self.pending if t.due_ms <= self._clock.now()]
        for task in due:
            task.fired = True
            task.callback()
        return len(due)

    def fire_all(self, include_cancelled: bool = False) -> int:
        """Run every task, optionally even the cancelled ones."""
        tasks = [t for t in self.tasks if not t.fired and (include_cancelled or not t.cancelled)]
        for task in tasks:
            task.fired = True
            task.callback()
        return len(tasks)


@pytest.fixture
def config() -> Config:
    """Create default configuration for tests."""
    return Config()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=1_000_000)


@pytest.fixture
def scheduler(clock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def source() -> MockSensorSource:
    """Source offering one gravity and one magnetic field channel."""
    return MockSensorSource()


@pytest.fixture
def listener(source, config, clock, scheduler) -> CompassListener:
    """Stopped listener wired to the mock source and manual time."""
    return CompassListener(source, config=config, clock=clock, scheduler=scheduler)


@pytest.fixture
def deliver(source, clock) -> Callable:
    """Emit a sample on a channel at the current manual time."""
    def _deliver(kind: ChannelKind, vector, timestamp: Optional[int] = None) -> int:
        return source.emit(kind, vector, clock.now() if timestamp is None else timestamp)
    return _deliver

