import pytest

from core.models import DailyStat, NoiseType, Phase, Settings, TimerStatus
from core.session import PomodoroSession
from core.timer_engine import TimerEngine


class Recorder:
    def __init__(self):
        self.calls = []

    def record(self, *args):
        self.calls.append(args)


@pytest.fixture
def engine(qapp, storage, clock):
    session = PomodoroSession(clock=clock)
    engine = TimerEngine(storage, session=session)
    yield engine
    engine.cleanup()


def test_ticker_runs_only_while_running(engine):
    assert not engine.is_ticking
    engine.start()
    assert engine.is_ticking
    engine.pause()
    assert not engine.is_ticking
    engine.toggle()
    assert engine.is_running and engine.is_ticking
    engine.reset()
    assert not engine.is_ticking
    engine.start()
    engine.select_phase(Phase.SHORT_BREAK)
    assert not engine.is_ticking


def test_tick_emits_remaining(engine):
    ticks = Recorder()
    engine.tick.connect(ticks.record)
    engine.start()
    engine._on_tick()
    assert ticks.calls == [(1499,)]


def test_phase_completion_signals(engine):
    completed = Recorder()
    notified = Recorder()
    chimes = Recorder()
    history = Recorder()
    engine.phase_completed.connect(completed.record)
    engine.notification_requested.connect(notified.record)
    engine.chime_requested.connect(chimes.record)
    engine.history_changed.connect(history.record)

    engine.start()
    for _ in range(1500):
        engine._on_tick()

    assert completed.calls == [(Phase.WORK, Phase.SHORT_BREAK)]
    assert notified.calls == [("阶段切换", "专注结束，准备进入短休息。")]
    assert len(chimes.calls) == 1
    assert len(history.calls) == 1
    assert engine.status == TimerStatus.IDLE
    assert not engine.is_ticking


def test_ambient_signals(engine):
    started = Recorder()
    stopped = Recorder()
    engine.ambient_start_requested.connect(started.record)
    engine.ambient_stop_requested.connect(stopped.record)

    engine.update_preferences(white_noise_enabled=True, white_noise_type=NoiseType.FIRE)
    engine.start()
    engine.pause()

    assert started.calls == [("fire",)]
    assert len(stopped.calls) == 1


def test_task_operations_emit_tasks_changed(engine):
    changed = Recorder()
    engine.tasks_changed.connect(changed.record)

    task = engine.create_task("Write", 2)
    assert engine.select_task(task.id)
    assert not engine.select_task("missing")
    assert engine.edit_task(task.id, "Write more", 3)
    assert engine.toggle_task(task.id)
    assert engine.delete_task(task.id)

    assert len(changed.calls) == 5
    assert engine.create_task("   ", 1) is None
    assert len(changed.calls) == 5


def test_flush_persists_state(engine, storage):
    engine.update_minutes(Phase.WORK, 40)
    engine.create_task("Read", 1)
    engine.flush()

    snapshot = storage.load_snapshot()
    assert snapshot.settings.work_minutes == 40
    assert snapshot.remaining_seconds == 2400
    assert [t.title for t in snapshot.tasks] == ["Read"]


def test_engine_loads_from_storage(qapp, storage):
    session = PomodoroSession(settings=Settings(long_break_minutes=30))
    session.history["2024-03-10"] = DailyStat("2024-03-10", 25, 1)
    storage.save_snapshot(session.to_snapshot())

    engine = TimerEngine(storage)
    try:
        assert engine.settings.long_break_minutes == 30
        assert engine.session.history["2024-03-10"].completed_pomodoros == 1
    finally:
        engine.cleanup()


def test_engine_without_storage(qapp):
    engine = TimerEngine()
    engine.start()
    engine.flush()
    assert engine.is_running
    engine.cleanup()
    assert not engine.is_ticking
