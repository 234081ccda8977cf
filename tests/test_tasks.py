from core.models import Task
from core.tasks import TaskFilter, TaskStore


def make_store(*titles):
    store = TaskStore()
    tasks = [store.create(title) for title in titles]
    return store, tasks


def test_create_trims_and_clamps():
    store = TaskStore()
    task = store.create("  Write report  ", 50)
    assert task.title == "Write report"
    assert task.est_pomodoros == 20
    assert len(store) == 1


def test_create_rejects_blank_title():
    store = TaskStore()
    assert store.create("   ") is None
    assert store.create("") is None
    assert len(store) == 0


def test_edit_recaps_progress_and_completes():
    store = TaskStore()
    task = store.create("Read", 4)
    task.completed_pomodoros = 3
    store.select(task.id)

    assert store.edit(task.id, "Read chapter", 2)

    assert task.title == "Read chapter"
    assert task.completed_pomodoros == 2
    assert task.completed is True
    assert store.current_task_id is None


def test_edit_rejects_blank_title_and_unknown_id():
    store, (task,) = make_store("A")
    assert not store.edit(task.id, "  ", 3)
    assert not store.edit("missing", "B", 3)
    assert task.title == "A"


def test_delete_clears_current():
    store, (a, b) = make_store("A", "B")
    store.select(a.id)
    assert store.delete(a.id)
    assert store.current_task_id is None
    assert store.get(a.id) is None
    assert not store.delete(a.id)


def test_toggle_complete_keeps_count_and_clears_current():
    store, (task,) = make_store("A")
    task.completed_pomodoros = 0
    store.select(task.id)

    assert store.toggle_complete(task.id)
    assert task.completed is True
    assert task.completed_pomodoros == 0
    assert store.current_task_id is None

    assert store.toggle_complete(task.id)
    assert task.completed is False


def test_select_ignores_completed_and_unknown():
    store, (a, b) = make_store("A", "B")
    store.toggle_complete(b.id)
    assert not store.select(b.id)
    assert not store.select("missing")
    assert store.current_task_id is None
    assert store.select(a.id)
    assert store.current_task() is a


def test_credit_pomodoro_caps_and_completes():
    store = TaskStore()
    task = store.create("A", 2)
    store.select(task.id)

    store.credit_pomodoro(task.id)
    assert task.completed_pomodoros == 1
    assert store.current_task_id == task.id

    store.credit_pomodoro(task.id)
    assert task.completed_pomodoros == 2
    assert task.completed is True
    assert store.current_task_id is None

    store.credit_pomodoro(task.id)
    assert task.completed_pomodoros == 2


def test_credit_unknown_task():
    store = TaskStore()
    assert store.credit_pomodoro("missing") is None
    assert store.credit_pomodoro(None) is None


def test_dangling_current_id_is_dropped():
    store = TaskStore([Task(title="A")], current_task_id="gone")
    assert store.current_task_id is None


def test_projections_order():
    tasks = [
        Task(title="old", created_at=1000),
        Task(title="new", created_at=3000),
        Task(title="middle", created_at=2000),
        Task(title="done-old", created_at=500, completed=True),
        Task(title="done-new", created_at=4000, completed=True),
    ]
    store = TaskStore(tasks)

    assert [t.title for t in store.active_tasks()] == ["old", "middle", "new"]
    assert [t.title for t in store.completed_tasks()] == ["done-new", "done-old"]
    assert store.sorted_tasks(TaskFilter.COMPLETED) == store.completed_tasks()
    assert store.sorted_tasks("active") == store.active_tasks()
    assert store.counts() == {TaskFilter.ACTIVE: 3, TaskFilter.COMPLETED: 2}


def test_tasks_property_is_a_copy():
    store, _ = make_store("A")
    store.tasks.clear()
    assert len(store) == 1
