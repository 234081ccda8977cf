"""
Timer engine for the Pomodoro application.
Hosts the session state machine on the Qt event loop: drives the
one-second countdown, dispatches effects as signals and debounces saves.
"""

import logging
import sqlite3
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .models import Phase, TimerStatus
from .session import Notify, PlayChime, PomodoroSession, StartAmbient, StopAmbient
from .storage import Storage

logger = logging.getLogger(__name__)


class TimerEngine(QObject):
    """
    Qt host for a PomodoroSession.

    The tick timer runs only while the session is RUNNING and is stopped as
    soon as the status changes, so a stale timer can never decrement the
    countdown of the next phase.

    Signals:
        tick: Remaining seconds after every countdown step
        state_changed: Emitted after any state change (provides the session)
        phase_completed: Emitted when a phase finishes (old_phase, new_phase)
        tasks_changed: Task list or current task changed
        history_changed: Statistics history changed
        notification_requested: (title, body) for the desktop notifier
        chime_requested: Play the phase-change chime
        ambient_start_requested: Start the noise loop (noise type value)
        ambient_stop_requested: Stop the noise loop
    """

    # Signals
    tick = Signal(int)
    state_changed = Signal(object)
    phase_completed = Signal(object, object)  # old_phase, new_phase
    tasks_changed = Signal()
    history_changed = Signal()
    notification_requested = Signal(str, str)
    chime_requested = Signal()
    ambient_start_requested = Signal(str)
    ambient_stop_requested = Signal()

    TICK_INTERVAL_MS = 1000
    SAVE_DEBOUNCE_MS = 300

    def __init__(
        self,
        storage: Optional[Storage] = None,
        session: Optional[PomodoroSession] = None,
        parent: Optional[QObject] = None
    ):
        """
        Initialize the timer engine.

        Args:
            storage: Storage used to load the session and persist changes.
                     None disables persistence.
            session: Session to host; loaded from storage when omitted.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)

        self.storage = storage
        if session is None:
            snapshot = storage.load_snapshot() if storage is not None else None
            session = (
                PomodoroSession.from_snapshot(snapshot)
                if snapshot is not None else PomodoroSession()
            )
        self.session = session

        # Countdown ticker
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(self.TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self._on_tick)

        # Debounced persistence
        self._save_timer = QTimer(self)
        self._save_timer.setSingleShot(True)
        self._save_timer.setInterval(self.SAVE_DEBOUNCE_MS)
        self._save_timer.timeout.connect(self.flush)

        self._sync_ticker()

    # ==================== State accessors ====================

    @property
    def settings(self):
        return self.session.settings

    @property
    def tasks(self):
        return self.session.tasks

    @property
    def phase(self) -> Phase:
        return self.session.phase

    @property
    def status(self) -> TimerStatus:
        return self.session.status

    @property
    def is_running(self) -> bool:
        return self.session.status == TimerStatus.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.session.status == TimerStatus.PAUSED

    @property
    def is_ticking(self) -> bool:
        """Whether the countdown timer is currently registered."""
        return self._qt_timer.isActive()

    # ==================== Timer controls ====================

    def start(self):
        self._apply(self.session.start())

    def pause(self):
        self._apply(self.session.pause())

    def toggle(self):
        """Pause when running, otherwise start."""
        if self.is_running:
            self.pause()
        else:
            self.start()

    def reset(self):
        self._apply(self.session.reset())

    def skip(self):
        self._apply(self.session.skip())

    def select_phase(self, phase: Phase):
        self._apply(self.session.select_phase(phase))

    # ==================== Settings ====================

    def update_minutes(self, phase: Phase, value):
        self._apply(self.session.update_minutes(phase, value))

    def update_long_break_every(self, value):
        self._apply(self.session.update_long_break_every(value))

    def update_preferences(self, **changes):
        self._apply(self.session.update_preferences(**changes))

    # ==================== Tasks ====================

    def create_task(self, title: str, est_pomodoros: int):
        task = self.tasks.create(title, est_pomodoros)
        if task is not None:
            self._tasks_mutated()
        return task

    def edit_task(self, task_id: str, title: str, est_pomodoros: int) -> bool:
        return self._tasks_mutated(self.tasks.edit(task_id, title, est_pomodoros))

    def delete_task(self, task_id: str) -> bool:
        return self._tasks_mutated(self.tasks.delete(task_id))

    def toggle_task(self, task_id: str) -> bool:
        return self._tasks_mutated(self.tasks.toggle_complete(task_id))

    def select_task(self, task_id: str) -> bool:
        return self._tasks_mutated(self.tasks.select(task_id))

    def clear_current_task(self):
        self.tasks.clear_current()
        self._tasks_mutated()

    def _tasks_mutated(self, changed: bool = True) -> bool:
        if changed:
            self.tasks_changed.emit()
            self._state_mutated()
        return changed

    # ==================== Internals ====================

    def _on_tick(self):
        """Handle one second of countdown."""
        old_phase = self.session.phase
        effects = self.session.tick()
        self.tick.emit(self.session.remaining_seconds)

        if effects:
            # Phase completed inside this tick
            self.phase_completed.emit(old_phase, self.session.phase)
            if old_phase == Phase.WORK:
                self.history_changed.emit()
                self.tasks_changed.emit()
        self._apply(effects)

    def announce(self):
        """Re-emit the current state so newly connected listeners can sync."""
        self.state_changed.emit(self.session)
        self.tick.emit(self.session.remaining_seconds)
        if self.session.ambient_active:
            self.ambient_start_requested.emit(self.session.settings.white_noise_type.value)

    def _apply(self, effects: list):
        """Sync the ticker, persist, and dispatch effects to listeners."""
        self._sync_ticker()
        self._state_mutated()
        for effect in effects:
            if isinstance(effect, Notify):
                self.notification_requested.emit(effect.title, effect.body)
            elif isinstance(effect, PlayChime):
                self.chime_requested.emit()
            elif isinstance(effect, StartAmbient):
                self.ambient_start_requested.emit(effect.noise_type.value)
            elif isinstance(effect, StopAmbient):
                self.ambient_stop_requested.emit()

    def _sync_ticker(self):
        if self.session.status == TimerStatus.RUNNING:
            if not self._qt_timer.isActive():
                self._qt_timer.start()
        else:
            self._qt_timer.stop()

    def _state_mutated(self):
        self.state_changed.emit(self.session)
        if self.storage is not None:
            self._save_timer.start()

    def flush(self):
        """Write the current state now."""
        self._save_timer.stop()
        if self.storage is None:
            return
        try:
            self.storage.save_snapshot(self.session.to_snapshot())
        except (sqlite3.Error, OSError) as e:
            logger.warning("Could not save state: %s", e)

    def cleanup(self):
        """Cleanup resources. Call before application exit."""
        self._qt_timer.stop()
        if self.session.ambient_active:
            self.ambient_stop_requested.emit()
        self.flush()
