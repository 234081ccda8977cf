"""
SQLite storage module for the Pomodoro application.
Persists the application snapshot as a JSON blob in a key-value table.
"""

import csv
import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import (
    AppSnapshot, DailyStat, Phase, Settings, Task, TimerStatus,
    clamp_est_pomodoros, phase_seconds,
)
from .statistics import validate_and_clean_history

logger = logging.getLogger(__name__)

STORAGE_KEY = "pomodoro_state"
DATA_DIR_ENV = "POMODORO_DATA_DIR"


def get_app_data_dir() -> Path:
    """
    Get the appropriate application data directory based on OS.
    POMODORO_DATA_DIR overrides it. Creates the directory if it doesn't exist.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        app_dir = Path(override).expanduser()
        app_dir.mkdir(parents=True, exist_ok=True)
        return app_dir

    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    elif os.name == 'posix':
        # macOS uses ~/Library/Application Support, Linux uses ~/.local/share
        if os.uname().sysname == 'Darwin':
            base = Path.home() / 'Library' / 'Application Support'
        else:
            base = Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    else:
        base = Path.home()

    app_dir = base / 'PomodoroTimer'
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


# ==================== Snapshot (de)serialization ====================

def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        return int(value)
    except (OverflowError, ValueError):
        return default


def task_from_dict(data: Any) -> Optional[Task]:
    """Build a Task from persisted data, or None if it is unusable."""
    if not isinstance(data, dict):
        return None
    task_id = data.get("id")
    title = data.get("title")
    if not isinstance(task_id, str) or not task_id:
        return None
    if not isinstance(title, str) or not title.strip():
        return None

    est = clamp_est_pomodoros(data.get("estPomodoros", 1))
    done = min(max(0, _as_int(data.get("completedPomodoros"), 0)), est)
    completed = data.get("completed")
    return Task(
        id=task_id,
        title=title.strip(),
        est_pomodoros=est,
        completed_pomodoros=done,
        completed=completed if isinstance(completed, bool) else done >= est,
        created_at=_as_int(data.get("createdAt"), 0),
    )


def snapshot_from_dict(data: Any) -> AppSnapshot:
    """
    Validating deserializer for the persisted snapshot.

    Settings are merged field by field against defaults; every other
    top-level field falls back to its default when missing or malformed.
    The result is always fully populated.
    """
    if not isinstance(data, dict):
        if data is not None:
            logger.warning("Snapshot is not an object, using defaults")
        return AppSnapshot()

    settings = Settings.from_dict(data.get("settings"))

    tasks: List[Task] = []
    seen = set()
    raw_tasks = data.get("tasks")
    for raw in raw_tasks if isinstance(raw_tasks, list) else []:
        task = task_from_dict(raw)
        if task is None or task.id in seen:
            logger.warning("Dropping malformed task entry: %r", raw)
            continue
        seen.add(task.id)
        tasks.append(task)

    current_task_id = data.get("currentTaskId")
    if not isinstance(current_task_id, str) or current_task_id not in seen:
        current_task_id = None

    raw_history = data.get("history")
    history = validate_and_clean_history(raw_history if isinstance(raw_history, dict) else {})

    try:
        phase = Phase(data.get("phase", Phase.WORK.value))
    except ValueError:
        logger.warning("Unknown phase %r, using work", data.get("phase"))
        phase = Phase.WORK

    try:
        status = TimerStatus(data.get("status", TimerStatus.IDLE.value))
    except ValueError:
        logger.warning("Unknown status %r, using idle", data.get("status"))
        status = TimerStatus.IDLE

    remaining = _as_int(data.get("remainingSeconds"), phase_seconds(phase, settings))

    return AppSnapshot(
        tasks=tasks,
        current_task_id=current_task_id,
        settings=settings,
        history=history,
        phase=phase,
        remaining_seconds=min(max(0, remaining), phase_seconds(phase, settings)),
        status=status,
        work_sessions_since_long_break=max(
            0, _as_int(data.get("workSessionsSinceLongBreak"), 0)
        ),
    )


def snapshot_to_dict(snapshot: AppSnapshot) -> Dict[str, Any]:
    return {
        "tasks": [task.to_dict() for task in snapshot.tasks],
        "currentTaskId": snapshot.current_task_id,
        "settings": snapshot.settings.to_dict(),
        "history": {key: stat.to_dict() for key, stat in snapshot.history.items()},
        "phase": snapshot.phase.value,
        "remainingSeconds": snapshot.remaining_seconds,
        "status": snapshot.status.value,
        "workSessionsSinceLongBreak": snapshot.work_sessions_since_long_break,
    }


class Storage:
    """
    Database storage manager.
    A single key-value table holding the JSON snapshot.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize storage with database path.

        Args:
            db_path: Optional custom path for database file.
                    If None, uses default app data directory.
        """
        if db_path is None:
            db_path = str(get_app_data_dir() / 'pomodoro.db')

        self.db_path = db_path
        self._init_database()

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize database schema if the table doesn't exist."""
        with self._get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            ''')

    # ==================== Raw key-value access ====================

    def get_value(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            cursor = conn.execute('SELECT value FROM kv_store WHERE key = ?', (key,))
            row = cursor.fetchone()
            return row['value'] if row else None

    def set_value(self, key: str, value: str):
        with self._get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO kv_store (key, value)
                VALUES (?, ?)
            ''', (key, value))

    # ==================== Snapshot ====================

    def load_snapshot(self) -> AppSnapshot:
        """
        Load the persisted snapshot.
        First run, unreadable JSON or a database error all yield defaults.
        """
        try:
            raw = self.get_value(STORAGE_KEY)
        except sqlite3.Error as e:
            logger.warning("Could not read saved state: %s", e)
            return AppSnapshot()

        if raw is None:
            return AppSnapshot()

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Saved state is not valid JSON, using defaults: %s", e)
            return AppSnapshot()

        return snapshot_from_dict(data)

    def save_snapshot(self, snapshot: AppSnapshot):
        payload = json.dumps(snapshot_to_dict(snapshot), ensure_ascii=False)
        self.set_value(STORAGE_KEY, payload)
        logger.debug("Saved state (%d bytes)", len(payload))


# ==================== Export ====================

def export_history_csv(filepath: str, points: List[DailyStat]) -> int:
    """
    Export statistics points to a CSV file.

    Returns:
        Number of rows written.
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(['Date', 'Focus (min)', 'Pomodoros'])
        for point in points:
            writer.writerow([point.date, point.focus_minutes, point.completed_pomodoros])
    return len(points)
