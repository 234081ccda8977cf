"""
Timer page widget for the Pomodoro application.
Contains the countdown display, controls, phase selector and today's summary.
"""

from typing import Dict, Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QGroupBox, QFrame, QProgressBar
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont

from core.models import (
    Phase, TimerStatus, PHASE_LABEL, PHASE_DESCRIPTION, PHASE_ICON
)
from core.session import PomodoroSession
from core.time_utils import format_seconds, minutes_left
from core.timer_engine import TimerEngine

PHASE_COLORS = {
    Phase.WORK: "#66BB6A",
    Phase.SHORT_BREAK: "#42A5F5",
    Phase.LONG_BREAK: "#AB47BC",
}


class TimerPage(QWidget):
    """
    Main timer page with countdown display and controls.
    """

    def __init__(self, timer_engine: TimerEngine, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.timer_engine = timer_engine
        self._phase_buttons: Dict[Phase, QPushButton] = {}

        self._setup_ui()
        self._connect_signals()
        self._on_state_changed(self.timer_engine.session)

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(16)
        layout.setContentsMargins(30, 30, 30, 30)

        # Phase header
        header_layout = QHBoxLayout()
        title_layout = QVBoxLayout()
        self.phase_label = QLabel()
        phase_font = QFont()
        phase_font.setPointSize(18)
        phase_font.setBold(True)
        self.phase_label.setFont(phase_font)
        title_layout.addWidget(self.phase_label)

        self.description_label = QLabel()
        self.description_label.setStyleSheet("color: #a0a0a0; font-size: 13px;")
        title_layout.addWidget(self.description_label)
        header_layout.addLayout(title_layout)
        header_layout.addStretch()

        self.status_label = QLabel()
        self.status_label.setStyleSheet(
            "color: #b0b0b0; border: 1px solid #404040; border-radius: 10px; padding: 4px 10px;"
        )
        header_layout.addWidget(self.status_label)
        layout.addLayout(header_layout)

        # Big countdown display
        self.time_label = QLabel("25:00")
        self.time_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        time_font = QFont()
        time_font.setPointSize(72)
        time_font.setBold(True)
        self.time_label.setFont(time_font)
        self.time_label.setMinimumHeight(120)
        layout.addWidget(self.time_label)

        self.minutes_left_label = QLabel()
        self.minutes_left_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.minutes_left_label.setStyleSheet("color: #a0a0a0; font-size: 12px;")
        layout.addWidget(self.minutes_left_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 1000)
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setFixedHeight(8)
        layout.addWidget(self.progress_bar)

        # Control buttons
        button_layout = QHBoxLayout()
        button_layout.setSpacing(15)
        button_layout.addStretch()

        self.start_btn = QPushButton("开始")
        self.start_btn.setMinimumSize(120, 45)
        self.start_btn.setStyleSheet("""
            QPushButton {
                background-color: #4CAF50;
                color: white;
                border: none;
                border-radius: 5px;
                font-size: 14px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #45a049;
            }
            QPushButton:pressed {
                background-color: #3d8b40;
            }
        """)
        button_layout.addWidget(self.start_btn)

        self.reset_btn = QPushButton("重置")
        self.reset_btn.setMinimumSize(100, 45)
        button_layout.addWidget(self.reset_btn)

        self.skip_btn = QPushButton("跳过")
        self.skip_btn.setMinimumSize(100, 45)
        button_layout.addWidget(self.skip_btn)

        button_layout.addStretch()
        layout.addLayout(button_layout)

        # Phase selector
        phase_layout = QHBoxLayout()
        phase_layout.addStretch()
        for phase in Phase:
            btn = QPushButton(PHASE_LABEL[phase])
            btn.setCheckable(True)
            btn.setMinimumWidth(90)
            self._phase_buttons[phase] = btn
            phase_layout.addWidget(btn)
        phase_layout.addStretch()
        layout.addLayout(phase_layout)

        # Separator
        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        layout.addWidget(line)

        # Current task
        task_box = QGroupBox("当前任务")
        task_layout = QHBoxLayout(task_box)
        self.current_task_label = QLabel()
        self.current_task_label.setWordWrap(True)
        task_layout.addWidget(self.current_task_label, 1)
        self.task_progress_label = QLabel()
        self.task_progress_label.setStyleSheet("color: #FFA726; font-weight: bold;")
        task_layout.addWidget(self.task_progress_label)
        self.clear_task_btn = QPushButton("切换")
        task_layout.addWidget(self.clear_task_btn)
        layout.addWidget(task_box)

        # Today's statistics
        stats_box = QGroupBox("今日")
        stats_layout = QHBoxLayout(stats_box)
        stats_layout.setSpacing(40)

        stat_font = QFont()
        stat_font.setPointSize(20)
        stat_font.setBold(True)

        focus_layout = QVBoxLayout()
        focus_caption = QLabel("今日专注")
        focus_caption.setStyleSheet("color: #a0a0a0; font-size: 13px;")
        focus_layout.addWidget(focus_caption)
        self.today_minutes_label = QLabel("0 分钟")
        self.today_minutes_label.setFont(stat_font)
        self.today_minutes_label.setStyleSheet("color: #66BB6A; font-size: 24px;")
        focus_layout.addWidget(self.today_minutes_label)
        stats_layout.addLayout(focus_layout)

        count_layout = QVBoxLayout()
        count_caption = QLabel("完成番茄")
        count_caption.setStyleSheet("color: #a0a0a0; font-size: 13px;")
        count_layout.addWidget(count_caption)
        self.today_count_label = QLabel("0")
        self.today_count_label.setFont(stat_font)
        self.today_count_label.setStyleSheet("color: #FFA726; font-size: 24px;")
        count_layout.addWidget(self.today_count_label)
        stats_layout.addLayout(count_layout)

        stats_layout.addStretch()
        layout.addWidget(stats_box)

        layout.addStretch()

    def _connect_signals(self):
        """Connect widget signals to slots."""
        self.timer_engine.tick.connect(self._on_tick)
        self.timer_engine.state_changed.connect(self._on_state_changed)

        self.start_btn.clicked.connect(self.timer_engine.toggle)
        self.reset_btn.clicked.connect(self.timer_engine.reset)
        self.skip_btn.clicked.connect(self.timer_engine.skip)
        self.clear_task_btn.clicked.connect(self.timer_engine.clear_current_task)
        for phase, btn in self._phase_buttons.items():
            btn.clicked.connect(lambda _checked=False, p=phase: self.timer_engine.select_phase(p))

    @Slot(int)
    def _on_tick(self, remaining_seconds: int):
        """Handle timer tick - update countdown."""
        self.time_label.setText(format_seconds(remaining_seconds))
        self.minutes_left_label.setText(f"剩余 {minutes_left(remaining_seconds)} 分钟")
        self.progress_bar.setValue(int(self.timer_engine.session.progress_ratio * 1000))

    @Slot(object)
    def _on_state_changed(self, session: PomodoroSession):
        """Refresh everything derived from the session."""
        color = PHASE_COLORS[session.phase]
        self.phase_label.setText(f"{PHASE_ICON[session.phase]} {PHASE_LABEL[session.phase]}")
        self.phase_label.setStyleSheet(f"color: {color};")
        self.description_label.setText(PHASE_DESCRIPTION[session.phase])
        self.time_label.setStyleSheet(f"color: {color}; font-size: 80px;")
        self._on_tick(session.remaining_seconds)

        if session.status == TimerStatus.RUNNING:
            self.status_label.setText("进行中")
            self.start_btn.setText("暂停")
        else:
            self.status_label.setText("就绪")
            self.start_btn.setText("继续" if session.status == TimerStatus.PAUSED else "开始")

        for phase, btn in self._phase_buttons.items():
            btn.setChecked(phase == session.phase)

        task = session.tasks.current_task()
        if task is not None:
            self.current_task_label.setText(task.title)
            self.task_progress_label.setText(task.progress_text)
            self.clear_task_btn.setVisible(True)
        else:
            self.current_task_label.setText("未选择任务，在任务页选择一个任务")
            self.task_progress_label.setText("")
            self.clear_task_btn.setVisible(False)

        today = session.today_stat()
        self.today_minutes_label.setText(f"{today.focus_minutes} 分钟")
        self.today_count_label.setText(str(today.completed_pomodoros))
