import pytest

from core.models import DailyStat, NoiseType, Phase, Settings, TimerStatus
from core.session import (
    Notify, PlayChime, PomodoroSession, StartAmbient, StopAmbient,
    next_phase, phase_change_body,
)
from core.tasks import TaskStore

from conftest import run_ticks


def test_full_work_phase_completes(session):
    session.start()
    effects = run_ticks(session, 1500)

    assert session.phase == Phase.SHORT_BREAK
    assert session.status == TimerStatus.IDLE
    assert session.remaining_seconds == 300
    assert session.work_sessions_since_long_break == 1
    assert session.history["2024-03-10"] == DailyStat("2024-03-10", 25, 1)
    assert effects == [Notify("阶段切换", "专注结束，准备进入短休息。"), PlayChime()]


def test_one_second_short_does_not_complete(session):
    session.start()
    assert run_ticks(session, 1499) == []
    assert session.phase == Phase.WORK
    assert session.remaining_seconds == 1
    assert session.history == {}


def test_tick_is_ignored_unless_running(session):
    assert session.tick() == []
    assert session.remaining_seconds == 1500
    session.start()
    session.tick()
    session.pause()
    session.tick()
    assert session.remaining_seconds == 1499


def test_long_break_cycle(session):
    phases = []
    for _ in range(8):
        session.complete_phase()
        phases.append(session.phase)

    assert phases == [
        Phase.SHORT_BREAK, Phase.WORK,
        Phase.SHORT_BREAK, Phase.WORK,
        Phase.SHORT_BREAK, Phase.WORK,
        Phase.LONG_BREAK, Phase.WORK,
    ]
    assert session.work_sessions_since_long_break == 0
    assert session.history["2024-03-10"].completed_pomodoros == 4
    assert session.history["2024-03-10"].focus_minutes == 100


def test_next_phase_rule():
    settings = Settings(long_break_every=2)
    assert next_phase(Phase.WORK, 0, settings, True) == (Phase.SHORT_BREAK, 1)
    assert next_phase(Phase.WORK, 1, settings, True) == (Phase.LONG_BREAK, 0)
    assert next_phase(Phase.WORK, 1, settings, False) == (Phase.SHORT_BREAK, 1)
    assert next_phase(Phase.SHORT_BREAK, 1, settings, False) == (Phase.WORK, 1)
    assert next_phase(Phase.LONG_BREAK, 0, settings, True) == (Phase.WORK, 0)


def test_skip_credits_nothing(session):
    task = session.tasks.create("A", 3)
    session.tasks.select(task.id)
    session.work_sessions_since_long_break = 3

    effects = session.skip()

    assert session.phase == Phase.SHORT_BREAK
    assert session.work_sessions_since_long_break == 3
    assert session.history == {}
    assert task.completed_pomodoros == 0
    assert effects == []


def test_skip_break_returns_to_work(session):
    task = session.tasks.create("A", 3)
    session.tasks.select(task.id)
    session.work_sessions_since_long_break = 2
    session.select_phase(Phase.LONG_BREAK)
    session.start()

    assert session.skip() == []

    assert session.history == {}
    assert task.completed_pomodoros == 0
    assert session.tasks.current_task_id == task.id
    assert session.work_sessions_since_long_break == 2
    assert session.phase == Phase.WORK
    assert session.remaining_seconds == 1500
    assert session.status == TimerStatus.IDLE


def test_completed_work_credits_current_task(session):
    task = session.tasks.create("A", 2)
    session.tasks.select(task.id)

    session.complete_phase()
    assert task.completed_pomodoros == 1
    assert session.tasks.current_task_id == task.id

    session.complete_phase()  # break
    session.complete_phase()
    assert task.completed_pomodoros == 2
    assert task.completed is True
    assert session.tasks.current_task_id is None


def test_break_completion_does_not_credit(session):
    task = session.tasks.create("A", 2)
    session.tasks.select(task.id)
    session.select_phase(Phase.SHORT_BREAK)

    session.complete_phase()

    assert task.completed_pomodoros == 0
    assert session.history == {}
    assert session.phase == Phase.WORK


def test_dangling_current_task_is_cleared_on_completion(session):
    session.tasks.current_task_id = "gone"
    session.complete_phase()
    assert session.tasks.current_task_id is None
    assert session.history["2024-03-10"].completed_pomodoros == 1


def test_auto_start_next(clock):
    session = PomodoroSession(settings=Settings(auto_start_next=True), clock=clock)
    session.start()
    effects = session.complete_phase()

    assert session.status == TimerStatus.RUNNING
    assert session.phase == Phase.SHORT_BREAK
    assert effects[0] == Notify("阶段切换", "专注结束，短休息已开始。")


def test_sound_disabled_skips_chime(clock):
    session = PomodoroSession(settings=Settings(sound_enabled=False), clock=clock)
    effects = session.complete_phase()
    assert not any(isinstance(e, PlayChime) for e in effects)


def test_phase_change_body():
    assert phase_change_body(Phase.SHORT_BREAK, Phase.WORK, False) == "短休息结束，准备进入专注。"
    assert phase_change_body(Phase.WORK, Phase.LONG_BREAK, True) == "专注结束，长休息已开始。"


def test_pause_is_noop_outside_running(session):
    assert session.pause() == []
    assert session.status == TimerStatus.IDLE


def test_start_pause_resume(session):
    session.start()
    assert session.is_running
    session.pause()
    assert session.status == TimerStatus.PAUSED
    session.start()
    assert session.status == TimerStatus.RUNNING


def test_reset_restores_countdown(session):
    session.start()
    run_ticks(session, 10)
    session.reset()
    assert session.status == TimerStatus.IDLE
    assert session.remaining_seconds == 1500
    assert session.phase == Phase.WORK


def test_select_phase(session):
    session.start()
    session.select_phase(Phase.LONG_BREAK)
    assert session.phase == Phase.LONG_BREAK
    assert session.status == TimerStatus.IDLE
    assert session.remaining_seconds == 900


def test_update_minutes_rederives_idle_countdown(session):
    session.update_minutes(Phase.WORK, 50)
    assert session.settings.work_minutes == 50
    assert session.remaining_seconds == 3000


def test_update_minutes_leaves_running_countdown(session):
    session.start()
    session.tick()
    session.update_minutes(Phase.WORK, 50)
    assert session.remaining_seconds == 1499

    session.reset()
    assert session.remaining_seconds == 3000


def test_update_minutes_of_other_phase(session):
    session.update_minutes(Phase.SHORT_BREAK, 500)
    assert session.settings.short_break_minutes == 120
    assert session.remaining_seconds == 1500


def test_update_minutes_while_paused(session):
    session.start()
    session.tick()
    session.pause()
    session.update_minutes(Phase.WORK, 10)
    assert session.remaining_seconds == 600


def test_update_long_break_every_clamps_counter(session):
    session.work_sessions_since_long_break = 3
    session.update_long_break_every(2)
    assert session.settings.long_break_every == 2
    assert session.work_sessions_since_long_break == 1


def test_update_preferences_rejects_unknown(session):
    with pytest.raises(TypeError):
        session.update_preferences(volume=3)


def test_ambient_follows_running_work(clock):
    session = PomodoroSession(settings=Settings(white_noise_enabled=True), clock=clock)

    assert session.start() == [StartAmbient(NoiseType.RAIN)]
    assert session.pause() == [StopAmbient()]
    assert session.start() == [StartAmbient(NoiseType.RAIN)]
    assert session.update_preferences(white_noise_type="cafe") == [StartAmbient(NoiseType.CAFE)]

    effects = session.complete_phase()
    assert StopAmbient() in effects

    # Breaks never play noise
    assert session.start() == []


def test_ambient_toggled_while_running(session):
    session.start()
    assert session.update_preferences(white_noise_enabled=True) == [StartAmbient(NoiseType.RAIN)]
    assert session.update_preferences(white_noise_enabled=False) == [StopAmbient()]


def test_progress_ratio(session):
    assert session.progress_ratio == 1.0
    session.start()
    run_ticks(session, 750)
    assert session.progress_ratio == pytest.approx(0.5)


def test_snapshot_round_trip(session, clock):
    task = session.tasks.create("A", 3)
    session.tasks.select(task.id)
    session.start()
    run_ticks(session, 1500)

    restored = PomodoroSession.from_snapshot(session.to_snapshot(), clock=clock)

    assert restored.phase == Phase.SHORT_BREAK
    assert restored.remaining_seconds == 300
    assert restored.work_sessions_since_long_break == 1
    assert restored.tasks.current_task().completed_pomodoros == 1
    assert restored.history == session.history


def test_counter_is_clamped_on_construction(clock):
    session = PomodoroSession(
        settings=Settings(long_break_every=3),
        tasks=TaskStore(),
        work_sessions_since_long_break=10,
        clock=clock,
    )
    assert session.work_sessions_since_long_break == 2


def test_today_stat(session):
    assert session.today_stat() == DailyStat("2024-03-10", 0, 0)
    session.complete_phase()
    assert session.today_stat().focus_minutes == 25
