"""
Pomodoro session state machine.

The full timer state is Phase x TimerStatus plus the countdown and the
work-session counter. Every operation mutates the session in one step and
returns the list of effects (notification, chime, ambient noise) the host
should perform; nothing here does I/O.

Transitions:
    start           IDLE | PAUSED -> RUNNING
    pause           RUNNING -> PAUSED (no-op otherwise)
    reset           any -> IDLE, countdown restored for the current phase
    tick            RUNNING: countdown - 1, completes the phase at 0
    skip            advance phase without crediting anything
    select_phase    jump to a phase, IDLE
    complete_phase  credit stats/task, advance phase, notify
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .models import (
    AppSnapshot, DailyStat, NoiseType, Phase, PHASE_LABEL, Settings,
    TimerStatus, clamp_long_break_every, clamp_minutes, parse_noise_type,
    phase_seconds,
)
from .statistics import today_stat as stat_for_day
from .tasks import TaskStore
from .time_utils import format_date_key

logger = logging.getLogger(__name__)

PHASE_CHANGE_TITLE = "阶段切换"

# Settings toggles that update_preferences accepts
PREFERENCE_FIELDS = (
    "auto_start_next",
    "sound_enabled",
    "white_noise_enabled",
    "white_noise_type",
    "mini_mode",
    "minimize_to_tray",
)

_MINUTES_FIELD = {
    Phase.WORK: "work_minutes",
    Phase.SHORT_BREAK: "short_break_minutes",
    Phase.LONG_BREAK: "long_break_minutes",
}


# ==================== Effects ====================

@dataclass(frozen=True)
class Notify:
    title: str
    body: str


@dataclass(frozen=True)
class PlayChime:
    pass


@dataclass(frozen=True)
class StartAmbient:
    noise_type: NoiseType


@dataclass(frozen=True)
class StopAmbient:
    pass


def next_phase(
    phase: Phase,
    work_sessions_since_long_break: int,
    settings: Settings,
    completed_work_session: bool
) -> Tuple[Phase, int]:
    """
    Phase-advance rule.

    Returns:
        (next phase, next work-session counter). A long break follows only
        a completed work session that fills the cycle; it resets the counter.
    """
    if phase == Phase.WORK:
        sessions = work_sessions_since_long_break + (1 if completed_work_session else 0)
        if completed_work_session and sessions >= settings.long_break_every:
            return Phase.LONG_BREAK, 0
        return Phase.SHORT_BREAK, sessions
    return Phase.WORK, work_sessions_since_long_break


def phase_change_body(finished: Phase, upcoming: Phase, auto_started: bool) -> str:
    if auto_started:
        return f"{PHASE_LABEL[finished]}结束，{PHASE_LABEL[upcoming]}已开始。"
    return f"{PHASE_LABEL[finished]}结束，准备进入{PHASE_LABEL[upcoming]}。"


class PomodoroSession:
    """
    Owner of the timer state, the task store and the statistics history.

    Only this class changes the phase, the countdown, the status and the
    work-session counter, and only complete_phase() adds to the history.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        tasks: Optional[TaskStore] = None,
        history: Optional[Dict[str, DailyStat]] = None,
        phase: Phase = Phase.WORK,
        remaining_seconds: Optional[int] = None,
        status: TimerStatus = TimerStatus.IDLE,
        work_sessions_since_long_break: int = 0,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.settings = settings or Settings()
        self.tasks = tasks if tasks is not None else TaskStore()
        self.history: Dict[str, DailyStat] = history if history is not None else {}
        self.phase = Phase(phase)
        self.status = TimerStatus(status)
        if remaining_seconds is None:
            remaining_seconds = phase_seconds(self.phase, self.settings)
        self.remaining_seconds = max(0, int(remaining_seconds))
        self.work_sessions_since_long_break = self._clamp_counter(work_sessions_since_long_break)
        self._clock = clock or datetime.now

    @classmethod
    def from_snapshot(
        cls,
        snapshot: AppSnapshot,
        clock: Optional[Callable[[], datetime]] = None
    ) -> "PomodoroSession":
        return cls(
            settings=snapshot.settings,
            tasks=TaskStore(snapshot.tasks, snapshot.current_task_id),
            history=dict(snapshot.history),
            phase=snapshot.phase,
            remaining_seconds=snapshot.remaining_seconds,
            status=snapshot.status,
            work_sessions_since_long_break=snapshot.work_sessions_since_long_break,
            clock=clock,
        )

    def to_snapshot(self) -> AppSnapshot:
        return AppSnapshot(
            tasks=self.tasks.tasks,
            current_task_id=self.tasks.current_task_id,
            settings=self.settings,
            history=dict(self.history),
            phase=self.phase,
            remaining_seconds=self.remaining_seconds,
            status=self.status,
            work_sessions_since_long_break=self.work_sessions_since_long_break,
        )

    def _clamp_counter(self, value: int) -> int:
        try:
            value = int(value)
        except (TypeError, ValueError):
            return 0
        return min(max(0, value), self.settings.long_break_every - 1)

    # ==================== Derived state ====================

    @property
    def total_seconds(self) -> int:
        return phase_seconds(self.phase, self.settings)

    @property
    def progress_ratio(self) -> float:
        """Fraction of the countdown still remaining (1.0 at start)."""
        total = self.total_seconds
        if total <= 0:
            return 0.0
        return min(1.0, self.remaining_seconds / total)

    @property
    def is_running(self) -> bool:
        return self.status == TimerStatus.RUNNING

    @property
    def ambient_active(self) -> bool:
        return (
            self.settings.white_noise_enabled
            and self.status == TimerStatus.RUNNING
            and self.phase == Phase.WORK
        )

    def today_key(self) -> str:
        return format_date_key(self._clock())

    def today_stat(self) -> DailyStat:
        return stat_for_day(self.history, self._clock())

    # ==================== Transitions ====================

    def start(self) -> list:
        if self.status == TimerStatus.RUNNING:
            return []
        before = self._ambient_state()
        self.status = TimerStatus.RUNNING
        return self._ambient_effects(before)

    def pause(self) -> list:
        """Pause a running countdown. Outside RUNNING this is a no-op."""
        if self.status != TimerStatus.RUNNING:
            return []
        before = self._ambient_state()
        self.status = TimerStatus.PAUSED
        return self._ambient_effects(before)

    def reset(self) -> list:
        before = self._ambient_state()
        self.remaining_seconds = self.total_seconds
        self.status = TimerStatus.IDLE
        return self._ambient_effects(before)

    def tick(self) -> list:
        """
        Advance the countdown by one second.
        Reaching zero while running completes the phase in the same call.
        """
        if self.status != TimerStatus.RUNNING:
            return []
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.remaining_seconds == 0:
            return self.complete_phase()
        return []

    def skip(self) -> list:
        """Move to the next phase without crediting statistics or tasks."""
        before = self._ambient_state()
        self._advance(completed_work_session=False)
        return self._ambient_effects(before)

    def select_phase(self, phase: Phase) -> list:
        before = self._ambient_state()
        self.phase = Phase(phase)
        self.remaining_seconds = self.total_seconds
        self.status = TimerStatus.IDLE
        return self._ambient_effects(before)

    def complete_phase(self) -> list:
        """
        Finish the current phase.

        A finished work phase adds work_minutes and one session to today's
        record and credits the current task. The next phase is then chosen
        by next_phase() and started if auto_start_next is set.
        """
        before = self._ambient_state()
        finished = self.phase
        completed_work_session = finished == Phase.WORK

        if completed_work_session:
            self._record_focus_session()
            if self.tasks.current_task_id is not None:
                task = self.tasks.credit_pomodoro(self.tasks.current_task_id)
                if task is None:
                    # Dangling reference: behaves as if no task were selected
                    self.tasks.clear_current()

        self._advance(completed_work_session)
        auto_started = self.settings.auto_start_next
        logger.info(
            "Phase %s complete, next %s (%s)",
            finished.value, self.phase.value, "running" if auto_started else "idle"
        )

        effects = [Notify(
            PHASE_CHANGE_TITLE,
            phase_change_body(finished, self.phase, auto_started)
        )]
        if self.settings.sound_enabled:
            effects.append(PlayChime())
        effects.extend(self._ambient_effects(before))
        return effects

    def _record_focus_session(self):
        key = self.today_key()
        current = self.history.get(key) or DailyStat(date=key)
        self.history[key] = DailyStat(
            date=key,
            focus_minutes=current.focus_minutes + self.settings.work_minutes,
            completed_pomodoros=current.completed_pomodoros + 1,
        )

    def _advance(self, completed_work_session: bool):
        self.phase, self.work_sessions_since_long_break = next_phase(
            self.phase,
            self.work_sessions_since_long_break,
            self.settings,
            completed_work_session,
        )
        self.remaining_seconds = self.total_seconds
        self.status = TimerStatus.RUNNING if self.settings.auto_start_next else TimerStatus.IDLE

    # ==================== Settings ====================

    def update_minutes(self, phase: Phase, value) -> list:
        """
        Set the duration of one phase.

        If the timer is not running and the edited phase is the active one,
        the countdown restarts at the new duration. Otherwise the countdown
        is left alone until the next phase change or reset.
        """
        phase = Phase(phase)
        setattr(self.settings, _MINUTES_FIELD[phase], clamp_minutes(value))
        if self.status != TimerStatus.RUNNING and phase == self.phase:
            self.remaining_seconds = self.total_seconds
        return []

    def update_long_break_every(self, value) -> list:
        self.settings.long_break_every = clamp_long_break_every(value)
        self.work_sessions_since_long_break = self._clamp_counter(
            self.work_sessions_since_long_break
        )
        return []

    def update_preferences(self, **changes) -> list:
        """Apply boolean toggles and the noise type."""
        before = self._ambient_state()
        for name, value in changes.items():
            if name not in PREFERENCE_FIELDS:
                raise TypeError(f"Unknown preference: {name}")
            if name == "white_noise_type":
                value = parse_noise_type(value)
            else:
                value = bool(value)
            setattr(self.settings, name, value)
        return self._ambient_effects(before)

    # ==================== Ambient noise ====================

    def _ambient_state(self) -> Tuple[bool, NoiseType]:
        return self.ambient_active, self.settings.white_noise_type

    def _ambient_effects(self, before: Tuple[bool, NoiseType]) -> list:
        was_active, old_type = before
        active, noise_type = self._ambient_state()
        if active and (not was_active or noise_type != old_type):
            return [StartAmbient(noise_type)]
        if was_active and not active:
            return [StopAmbient()]
        return []
