"""
Tasks page widget for the Pomodoro application.
Create, edit, delete, complete and select the task credited by focus sessions.
"""

from datetime import datetime
from typing import Optional, List
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QLineEdit, QSpinBox, QTableWidget, QTableWidgetItem,
    QMessageBox, QDialog, QDialogButtonBox, QFormLayout,
    QHeaderView, QButtonGroup
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QColor

from core.models import Task, MIN_EST_POMODOROS, MAX_EST_POMODOROS
from core.tasks import TaskFilter
from core.timer_engine import TimerEngine


class TaskEditDialog(QDialog):
    """Dialog for creating or editing a task."""

    def __init__(self, task: Optional[Task] = None, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.task = task
        self.setWindowTitle("编辑任务" if task is not None else "新增任务")
        self.setMinimumWidth(350)

        self._setup_ui()

    def _setup_ui(self):
        """Set up the dialog UI."""
        layout = QVBoxLayout(self)
        form_layout = QFormLayout()

        self.title_edit = QLineEdit()
        self.title_edit.setPlaceholderText("输入任务名称...")
        form_layout.addRow("任务名称:", self.title_edit)

        self.est_spin = QSpinBox()
        self.est_spin.setRange(MIN_EST_POMODOROS, MAX_EST_POMODOROS)
        self.est_spin.setValue(1)
        form_layout.addRow("预估番茄数:", self.est_spin)

        if self.task is not None:
            self.title_edit.setText(self.task.title)
            self.est_spin.setValue(self.task.est_pomodoros)

        layout.addLayout(form_layout)

        button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok |
            QDialogButtonBox.StandardButton.Cancel
        )
        button_box.accepted.connect(self._on_accept)
        button_box.rejected.connect(self.reject)
        layout.addWidget(button_box)

    @Slot()
    def _on_accept(self):
        """Accept only with a non-empty title."""
        if not self.title_edit.text().strip():
            QMessageBox.warning(self, "无法保存", "请输入任务名称。")
            return
        self.accept()

    def values(self):
        return self.title_edit.text().strip(), self.est_spin.value()


class TasksPage(QWidget):
    """
    Task management page.
    Active tasks are listed oldest first, completed tasks newest first.
    """

    def __init__(self, timer_engine: TimerEngine, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.timer_engine = timer_engine
        self._filter = TaskFilter.ACTIVE
        self._tasks: List[Task] = []

        self._setup_ui()
        self._connect_signals()
        self.refresh()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(15)
        layout.setContentsMargins(20, 20, 20, 20)

        header = QLabel("任务列表")
        header_font = header.font()
        header_font.setPointSize(16)
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        # Filter
        filter_layout = QHBoxLayout()
        self.active_filter_btn = QPushButton()
        self.active_filter_btn.setCheckable(True)
        self.active_filter_btn.setChecked(True)
        self.completed_filter_btn = QPushButton()
        self.completed_filter_btn.setCheckable(True)
        self.filter_group = QButtonGroup(self)
        self.filter_group.setExclusive(True)
        self.filter_group.addButton(self.active_filter_btn)
        self.filter_group.addButton(self.completed_filter_btn)
        filter_layout.addWidget(self.active_filter_btn)
        filter_layout.addWidget(self.completed_filter_btn)
        filter_layout.addStretch()
        layout.addLayout(filter_layout)

        # Toolbar
        toolbar_layout = QHBoxLayout()

        self.add_btn = QPushButton("+ 新增任务")
        self.add_btn.setStyleSheet("""
            QPushButton {
                background-color: #4CAF50;
                color: white;
                border: none;
                border-radius: 3px;
                padding: 8px 15px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #45a049;
            }
        """)
        toolbar_layout.addWidget(self.add_btn)

        self.select_btn = QPushButton("选择此任务")
        toolbar_layout.addWidget(self.select_btn)

        self.toggle_btn = QPushButton("完成")
        toolbar_layout.addWidget(self.toggle_btn)

        self.edit_btn = QPushButton("编辑")
        toolbar_layout.addWidget(self.edit_btn)

        self.delete_btn = QPushButton("删除")
        self.delete_btn.setStyleSheet("""
            QPushButton {
                background-color: #f44336;
                color: white;
                border: none;
                border-radius: 3px;
                padding: 8px 15px;
            }
            QPushButton:hover {
                background-color: #da190b;
            }
            QPushButton:disabled {
                background-color: #404040;
                color: #606060;
            }
        """)
        toolbar_layout.addWidget(self.delete_btn)

        toolbar_layout.addStretch()
        layout.addLayout(toolbar_layout)

        # Tasks table
        self.tasks_table = QTableWidget()
        self.tasks_table.setColumnCount(4)
        self.tasks_table.setHorizontalHeaderLabels(["任务", "进度", "创建时间", ""])
        self.tasks_table.horizontalHeader().setSectionResizeMode(
            0, QHeaderView.ResizeMode.Stretch
        )
        self.tasks_table.setColumnWidth(1, 80)
        self.tasks_table.setColumnWidth(2, 140)
        self.tasks_table.setColumnWidth(3, 80)
        self.tasks_table.setAlternatingRowColors(True)
        self.tasks_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.tasks_table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.tasks_table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        layout.addWidget(self.tasks_table)

        self.empty_label = QLabel()
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setStyleSheet("color: #808080;")
        layout.addWidget(self.empty_label)

    def _connect_signals(self):
        """Connect widget signals."""
        self.timer_engine.tasks_changed.connect(self.refresh)
        self.active_filter_btn.clicked.connect(lambda: self._set_filter(TaskFilter.ACTIVE))
        self.completed_filter_btn.clicked.connect(lambda: self._set_filter(TaskFilter.COMPLETED))
        self.add_btn.clicked.connect(self._on_add)
        self.edit_btn.clicked.connect(self._on_edit)
        self.delete_btn.clicked.connect(self._on_delete)
        self.toggle_btn.clicked.connect(self._on_toggle)
        self.select_btn.clicked.connect(self._on_select)
        self.tasks_table.itemSelectionChanged.connect(self._update_buttons)
        self.tasks_table.doubleClicked.connect(self._on_edit)

    def _set_filter(self, task_filter: TaskFilter):
        self._filter = task_filter
        self.refresh()

    @Slot()
    def refresh(self):
        """Refresh the task list."""
        store = self.timer_engine.tasks
        counts = store.counts()
        self.active_filter_btn.setText(f"进行中 ({counts[TaskFilter.ACTIVE]})")
        self.completed_filter_btn.setText(f"已完成 ({counts[TaskFilter.COMPLETED]})")

        self._tasks = store.sorted_tasks(self._filter)
        self._populate_table(store.current_task_id)

        if self._tasks:
            self.empty_label.setText("")
        elif self._filter == TaskFilter.ACTIVE:
            self.empty_label.setText("暂无进行中的任务")
        else:
            self.empty_label.setText("暂无已完成的任务")
        self._update_buttons()

    def _populate_table(self, current_task_id: Optional[str]):
        """Populate the table with task data."""
        self.tasks_table.setRowCount(len(self._tasks))

        for row, task in enumerate(self._tasks):
            title_item = QTableWidgetItem(task.title)
            title_item.setData(Qt.ItemDataRole.UserRole, task.id)
            if task.completed:
                font = title_item.font()
                font.setStrikeOut(True)
                title_item.setFont(font)
                title_item.setForeground(QColor("#808080"))
            self.tasks_table.setItem(row, 0, title_item)

            progress_item = QTableWidgetItem(task.progress_text)
            progress_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.tasks_table.setItem(row, 1, progress_item)

            created = datetime.fromtimestamp(task.created_at / 1000)
            created_item = QTableWidgetItem(created.strftime("%Y-%m-%d %H:%M"))
            created_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.tasks_table.setItem(row, 2, created_item)

            marker_item = QTableWidgetItem("当前任务" if task.id == current_task_id else "")
            marker_item.setForeground(QColor("#66BB6A"))
            self.tasks_table.setItem(row, 3, marker_item)

    def _get_selected_task(self) -> Optional[Task]:
        """Get the currently selected task."""
        selected = self.tasks_table.selectedItems()
        if not selected:
            return None

        row = selected[0].row()
        task_id = self.tasks_table.item(row, 0).data(Qt.ItemDataRole.UserRole)
        return self.timer_engine.tasks.get(task_id)

    @Slot()
    def _update_buttons(self):
        """Enable actions that apply to the selection."""
        task = self._get_selected_task()
        has_selection = task is not None
        self.edit_btn.setEnabled(has_selection)
        self.delete_btn.setEnabled(has_selection)
        self.toggle_btn.setEnabled(has_selection)
        self.toggle_btn.setText("恢复" if has_selection and task.completed else "完成")
        self.select_btn.setEnabled(
            has_selection and not task.completed
            and task.id != self.timer_engine.tasks.current_task_id
        )

    @Slot()
    def _on_add(self):
        """Handle add button click."""
        dialog = TaskEditDialog(parent=self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            title, est = dialog.values()
            self.timer_engine.create_task(title, est)

    @Slot()
    def _on_edit(self):
        """Handle edit button click or double-click."""
        task = self._get_selected_task()
        if task is None:
            return
        dialog = TaskEditDialog(task, parent=self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            title, est = dialog.values()
            self.timer_engine.edit_task(task.id, title, est)

    @Slot()
    def _on_delete(self):
        """Handle delete button click."""
        task = self._get_selected_task()
        if task is None:
            return

        reply = QMessageBox.question(
            self,
            "确认删除",
            f"确定要删除“{task.title}”吗？",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )
        if reply == QMessageBox.StandardButton.Yes:
            self.timer_engine.delete_task(task.id)

    @Slot()
    def _on_toggle(self):
        task = self._get_selected_task()
        if task is not None:
            self.timer_engine.toggle_task(task.id)

    @Slot()
    def _on_select(self):
        task = self._get_selected_task()
        if task is not None:
            self.timer_engine.select_task(task.id)
