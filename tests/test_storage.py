import csv
import json

from core.models import AppSnapshot, DailyStat, NoiseType, Phase, Settings, Task, TimerStatus
from core.storage import (
    STORAGE_KEY, Storage, export_history_csv, get_app_data_dir,
    snapshot_from_dict, snapshot_to_dict,
)


def test_data_dir_override(data_dir):
    assert get_app_data_dir() == data_dir


def test_first_run_yields_defaults(storage):
    snapshot = storage.load_snapshot()
    assert snapshot == AppSnapshot()
    assert snapshot.remaining_seconds == 1500


def test_round_trip(storage):
    task = Task(title="Write report", est_pomodoros=3, completed_pomodoros=1, created_at=1700000000000)
    snapshot = AppSnapshot(
        tasks=[task],
        current_task_id=task.id,
        settings=Settings(work_minutes=50, white_noise_type=NoiseType.CAFE),
        history={"2024-03-10": DailyStat("2024-03-10", 50, 1)},
        phase=Phase.SHORT_BREAK,
        remaining_seconds=120,
        status=TimerStatus.PAUSED,
        work_sessions_since_long_break=1,
    )

    storage.save_snapshot(snapshot)
    loaded = Storage(storage.db_path).load_snapshot()

    assert loaded == snapshot


def test_saved_json_uses_wire_names(storage):
    storage.save_snapshot(AppSnapshot())
    data = json.loads(storage.get_value(STORAGE_KEY))
    assert set(data) == {
        "tasks", "currentTaskId", "settings", "history", "phase",
        "remainingSeconds", "status", "workSessionsSinceLongBreak",
    }
    assert data["phase"] == "work"
    assert data["settings"]["longBreakEvery"] == 4


def test_invalid_json_falls_back_to_defaults(storage):
    storage.set_value(STORAGE_KEY, "{not json")
    assert storage.load_snapshot() == AppSnapshot()


def test_non_object_snapshot(storage):
    storage.set_value(STORAGE_KEY, "[1, 2, 3]")
    assert storage.load_snapshot() == AppSnapshot()


def test_partial_settings_are_merged():
    snapshot = snapshot_from_dict({"settings": {"shortBreakMinutes": 10}})
    assert snapshot.settings.short_break_minutes == 10
    assert snapshot.settings.work_minutes == 25
    assert snapshot.remaining_seconds == 1500


def test_malformed_fields_use_defaults():
    snapshot = snapshot_from_dict({
        "tasks": "nope",
        "currentTaskId": 42,
        "history": [],
        "phase": "nap",
        "status": "sleeping",
        "remainingSeconds": "soon",
        "workSessionsSinceLongBreak": -2,
    })
    assert snapshot.tasks == []
    assert snapshot.current_task_id is None
    assert snapshot.history == {}
    assert snapshot.phase == Phase.WORK
    assert snapshot.status == TimerStatus.IDLE
    assert snapshot.remaining_seconds == 1500
    assert snapshot.work_sessions_since_long_break == 0


def test_corrupt_settings_keep_default_countdown():
    snapshot = snapshot_from_dict({"settings": {"workMinutes": None}})
    assert snapshot.settings.work_minutes == 25
    assert snapshot.remaining_seconds == 1500


def test_remaining_seconds_capped_at_phase_length():
    snapshot = snapshot_from_dict({"phase": "shortBreak", "remainingSeconds": 999999})
    assert snapshot.remaining_seconds == 300

    snapshot = snapshot_from_dict({"phase": "shortBreak", "remainingSeconds": 42})
    assert snapshot.remaining_seconds == 42


def test_malformed_tasks_are_dropped():
    snapshot = snapshot_from_dict({
        "tasks": [
            {"id": "a", "title": "Keep", "estPomodoros": 2, "completedPomodoros": 5},
            {"id": "a", "title": "Duplicate"},
            {"id": "b", "title": "   "},
            {"title": "No id"},
            "junk",
        ],
        "currentTaskId": "b",
    })
    assert [t.id for t in snapshot.tasks] == ["a"]
    assert snapshot.tasks[0].completed_pomodoros == 2
    assert snapshot.tasks[0].completed is True
    assert snapshot.current_task_id is None


def test_history_is_cleaned_on_load():
    snapshot = snapshot_from_dict({
        "history": {
            "2024-03-10": {"focusMinutes": 25, "sessions": 1},
            "garbage": {"focusMinutes": 25},
        }
    })
    assert snapshot.history == {"2024-03-10": DailyStat("2024-03-10", 25, 1)}


def test_snapshot_to_dict_round_trip():
    snapshot = AppSnapshot(tasks=[Task(title="A", created_at=1)], current_task_id=None)
    assert snapshot_from_dict(snapshot_to_dict(snapshot)) == snapshot


def test_export_history_csv(tmp_path):
    path = tmp_path / "stats.csv"
    points = [DailyStat("2024-03-09", 0, 0), DailyStat("2024-03-10", 50, 2)]

    assert export_history_csv(str(path), points) == 2

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["Date", "Focus (min)", "Pomodoros"],
        ["2024-03-09", "0", "0"],
        ["2024-03-10", "50", "2"],
    ]
