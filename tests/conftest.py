from datetime import datetime
from pathlib import Path

import pytest

from core.models import Settings
from core.session import PomodoroSession
from core.storage import Storage
from core.tasks import TaskStore

FIXED_NOW = datetime(2024, 3, 10, 9, 0, 0)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def session(clock, settings) -> PomodoroSession:
    return PomodoroSession(settings=settings, tasks=TaskStore(), clock=clock)


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("POMODORO_DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def storage(data_dir: Path) -> Storage:
    return Storage(str(data_dir / "pomodoro.db"))


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def run_ticks(session: PomodoroSession, count: int) -> list:
    """Tick `count` times and return every effect produced."""
    effects = []
    for _ in range(count):
        effects.extend(session.tick())
    return effects
