"""
Data models for the Pomodoro application.
Uses dataclasses for clean, type-annotated data structures.
"""

import math
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .time_utils import minutes_to_seconds


MIN_MINUTES = 1
MAX_MINUTES = 120
MIN_LONG_BREAK_EVERY = 2
MAX_LONG_BREAK_EVERY = 8
MIN_EST_POMODOROS = 1
MAX_EST_POMODOROS = 20


class Phase(str, Enum):
    """Which countdown is active. Values are the persisted wire names."""
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


class TimerStatus(str, Enum):
    """Whether the countdown advances."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class NoiseType(str, Enum):
    """Ambient noise flavours."""
    RAIN = "rain"
    CAFE = "cafe"
    FIRE = "fire"


PHASE_LABEL = {
    Phase.WORK: "专注",
    Phase.SHORT_BREAK: "短休息",
    Phase.LONG_BREAK: "长休息",
}

PHASE_DESCRIPTION = {
    Phase.WORK: "保持专注，完成当前任务",
    Phase.SHORT_BREAK: "放松一下，准备下一轮",
    Phase.LONG_BREAK: "深度休息，恢复精力",
}

PHASE_ICON = {
    Phase.WORK: "⏱",
    Phase.SHORT_BREAK: "☕",
    Phase.LONG_BREAK: "🌿",
}


def _to_number(value: Any) -> Optional[float]:
    """Coerce user input to a float, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def _round_half_up(number: float) -> float:
    if math.isinf(number):
        return number
    return math.floor(number + 0.5)


def _clamp(value: Any, low: int, high: int) -> int:
    number = _to_number(value)
    if number is None:
        return low
    return int(min(high, max(low, _round_half_up(number))))


def clamp_minutes(value: Any) -> int:
    """
    Clamp a user-entered duration into [1, 120] minutes.

    Non-numeric input (including NaN) yields 1; other values are rounded
    to the nearest integer first.
    """
    return _clamp(value, MIN_MINUTES, MAX_MINUTES)


def clamp_long_break_every(value: Any) -> int:
    """Clamp the long-break cycle length into [2, 8]."""
    return _clamp(value, MIN_LONG_BREAK_EVERY, MAX_LONG_BREAK_EVERY)


def clamp_est_pomodoros(value: Any) -> int:
    """Clamp a task's target pomodoro count into [1, 20]."""
    return _clamp(value, MIN_EST_POMODOROS, MAX_EST_POMODOROS)


def parse_noise_type(value: Any) -> NoiseType:
    try:
        return NoiseType(value)
    except ValueError:
        return NoiseType.RAIN


@dataclass
class Settings:
    """
    User-editable configuration.
    Durations are always stored clamped; see __post_init__.
    """
    work_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_every: int = 4
    auto_start_next: bool = False
    sound_enabled: bool = True
    white_noise_enabled: bool = False
    white_noise_type: NoiseType = NoiseType.RAIN
    mini_mode: bool = False
    minimize_to_tray: bool = True

    # (attribute, wire name) pairs for persistence
    WIRE_FIELDS = (
        ("work_minutes", "workMinutes"),
        ("short_break_minutes", "shortBreakMinutes"),
        ("long_break_minutes", "longBreakMinutes"),
        ("long_break_every", "longBreakEvery"),
        ("auto_start_next", "autoStartNext"),
        ("sound_enabled", "soundEnabled"),
        ("white_noise_enabled", "whiteNoiseEnabled"),
        ("white_noise_type", "whiteNoiseType"),
        ("mini_mode", "miniMode"),
        ("minimize_to_tray", "minimizeToTray"),
    )

    def __post_init__(self):
        """Clamp durations so no Settings instance is ever out of range."""
        self.work_minutes = clamp_minutes(self.work_minutes)
        self.short_break_minutes = clamp_minutes(self.short_break_minutes)
        self.long_break_minutes = clamp_minutes(self.long_break_minutes)
        self.long_break_every = clamp_long_break_every(self.long_break_every)
        self.white_noise_type = parse_noise_type(self.white_noise_type)

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for attr, wire in self.WIRE_FIELDS:
            value = getattr(self, attr)
            data[wire] = value.value if isinstance(value, Enum) else value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Settings":
        """
        Build settings from a (possibly partial) persisted mapping.
        Missing or wrongly-typed fields keep their defaults.
        """
        settings = cls()
        if not isinstance(data, dict):
            return settings
        for attr, wire in cls.WIRE_FIELDS:
            if wire not in data:
                continue
            value = data[wire]
            default = getattr(settings, attr)
            if isinstance(default, bool):
                if isinstance(value, bool):
                    setattr(settings, attr, value)
            elif isinstance(default, int):
                # Corrupt numbers keep the default; real numbers are clamped below
                if _to_number(value) is not None:
                    setattr(settings, attr, value)
            else:
                setattr(settings, attr, value)
        # Re-run the clamps over whatever was merged in
        settings.__post_init__()
        return settings


def phase_minutes(phase: Phase, settings: Settings) -> int:
    """Configured duration of a phase, in minutes."""
    if phase == Phase.SHORT_BREAK:
        return settings.short_break_minutes
    if phase == Phase.LONG_BREAK:
        return settings.long_break_minutes
    return settings.work_minutes


def phase_seconds(phase: Phase, settings: Settings) -> int:
    return minutes_to_seconds(phase_minutes(phase, settings))


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Task:
    """
    A unit of work credited with completed focus sessions.
    created_at is epoch milliseconds and drives list ordering.
    """
    title: str
    est_pomodoros: int = 1
    completed_pomodoros: int = 0
    completed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: int = field(default_factory=_now_ms)

    @property
    def progress_text(self) -> str:
        return f"{self.completed_pomodoros}/{self.est_pomodoros}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "estPomodoros": self.est_pomodoros,
            "completedPomodoros": self.completed_pomodoros,
            "completed": self.completed,
            "createdAt": self.created_at,
        }


@dataclass
class DailyStat:
    """Focus totals for one local calendar day, keyed by YYYY-MM-DD."""
    date: str
    focus_minutes: int = 0
    completed_pomodoros: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "focusMinutes": self.focus_minutes,
            "completedPomodoros": self.completed_pomodoros,
        }


@dataclass
class AppSnapshot:
    """
    Everything persisted between runs.
    Always fully populated; the storage layer fills defaults.
    """
    tasks: List[Task] = field(default_factory=list)
    current_task_id: Optional[str] = None
    settings: Settings = field(default_factory=Settings)
    history: Dict[str, DailyStat] = field(default_factory=dict)
    phase: Phase = Phase.WORK
    remaining_seconds: Optional[int] = None
    status: TimerStatus = TimerStatus.IDLE
    work_sessions_since_long_break: int = 0

    def __post_init__(self):
        if self.remaining_seconds is None:
            self.remaining_seconds = phase_seconds(self.phase, self.settings)
