"""
Task store for the Pomodoro application.
Ordered task records with per-task pomodoro progress and the current-task pointer.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .models import Task, clamp_est_pomodoros

logger = logging.getLogger(__name__)


class TaskFilter(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class TaskStore:
    """
    Collection of tasks in insertion order.

    The current task is a non-owning reference by id: it is cleared when
    the task is deleted or completes, and an id that no longer resolves
    is treated as "no current task".
    """

    def __init__(
        self,
        tasks: Optional[Iterable[Task]] = None,
        current_task_id: Optional[str] = None
    ):
        self._tasks: List[Task] = list(tasks or [])
        self.current_task_id = current_task_id
        if current_task_id is not None and self.get(current_task_id) is None:
            logger.warning("Current task %s not found, clearing", current_task_id)
            self.current_task_id = None

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(self._tasks)

    @property
    def tasks(self) -> List[Task]:
        """Tasks in insertion order (a copy)."""
        return list(self._tasks)

    def get(self, task_id: Optional[str]) -> Optional[Task]:
        if task_id is None:
            return None
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def current_task(self) -> Optional[Task]:
        return self.get(self.current_task_id)

    # ==================== Mutations ====================

    def create(self, title: str, est_pomodoros: int = 1) -> Optional[Task]:
        """
        Create a task.

        Args:
            title: Task title; surrounding whitespace is trimmed.
            est_pomodoros: Target number of pomodoros, clamped to [1, 20].

        Returns:
            The new task, or None if the trimmed title is empty.
        """
        title = (title or "").strip()
        if not title:
            return None
        task = Task(title=title, est_pomodoros=clamp_est_pomodoros(est_pomodoros))
        self._tasks.append(task)
        return task

    def edit(self, task_id: str, title: str, est_pomodoros: int) -> bool:
        """
        Change a task's title and target.

        Progress is re-capped to the new target; reaching it completes the task.

        Returns:
            True if the task was updated.
        """
        title = (title or "").strip()
        task = self.get(task_id)
        if task is None or not title:
            return False

        task.title = title
        task.est_pomodoros = clamp_est_pomodoros(est_pomodoros)
        if task.completed_pomodoros >= task.est_pomodoros:
            task.completed_pomodoros = task.est_pomodoros
            self._mark_completed(task)
        return True

    def delete(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        if self.current_task_id == task_id:
            self.current_task_id = None
        return True

    def toggle_complete(self, task_id: str) -> bool:
        """Flip the completed flag without touching the pomodoro count."""
        task = self.get(task_id)
        if task is None:
            return False
        task.completed = not task.completed
        if task.completed and self.current_task_id == task_id:
            self.current_task_id = None
        return True

    def select(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None or task.completed:
            return False
        self.current_task_id = task_id
        return True

    def clear_current(self):
        self.current_task_id = None

    def credit_pomodoro(self, task_id: Optional[str]) -> Optional[Task]:
        """
        Credit one completed focus session to a task.

        The count is capped at the task's target. Reaching the target marks
        the task completed and releases it as the current task.

        Returns:
            The credited task, or None if the id does not resolve.
        """
        task = self.get(task_id)
        if task is None:
            return None
        task.completed_pomodoros = min(task.completed_pomodoros + 1, task.est_pomodoros)
        if task.completed_pomodoros >= task.est_pomodoros:
            self._mark_completed(task)
        return task

    def _mark_completed(self, task: Task):
        task.completed = True
        if self.current_task_id == task.id:
            self.current_task_id = None

    # ==================== Projections ====================

    def active_tasks(self) -> List[Task]:
        """Unfinished tasks, oldest first."""
        return sorted(
            (t for t in self._tasks if not t.completed),
            key=lambda t: t.created_at
        )

    def completed_tasks(self) -> List[Task]:
        """Finished tasks, most recent first."""
        return sorted(
            (t for t in self._tasks if t.completed),
            key=lambda t: t.created_at,
            reverse=True
        )

    def sorted_tasks(self, task_filter: TaskFilter = TaskFilter.ACTIVE) -> List[Task]:
        if TaskFilter(task_filter) == TaskFilter.COMPLETED:
            return self.completed_tasks()
        return self.active_tasks()

    def counts(self) -> Dict[TaskFilter, int]:
        done = sum(1 for t in self._tasks if t.completed)
        return {
            TaskFilter.ACTIVE: len(self._tasks) - done,
            TaskFilter.COMPLETED: done,
        }
