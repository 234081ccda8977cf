"""
Statistics page widget for the Pomodoro application.
Displays per-day focus history for a time range, with totals and CSV export.
"""

from typing import Optional, List
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QComboBox, QTableWidget, QTableWidgetItem, QGroupBox,
    QMessageBox, QFileDialog, QHeaderView
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont

from core.models import DailyStat
from core.statistics import (
    TimeRange, TIME_RANGE_LABEL, calculate_totals, format_date,
    newest_first, process_history_data
)
from core.storage import export_history_csv
from core.time_utils import today
from core.timer_engine import TimerEngine


class StatisticsPage(QWidget):
    """
    Statistics page: range selector, totals and the day-by-day list.
    """

    def __init__(self, timer_engine: TimerEngine, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.timer_engine = timer_engine
        self._points: List[DailyStat] = []

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(15)
        layout.setContentsMargins(20, 20, 20, 20)

        # Range + export
        toolbar_layout = QHBoxLayout()
        toolbar_layout.addWidget(QLabel("时间范围:"))
        self.range_combo = QComboBox()
        for time_range in TimeRange:
            self.range_combo.addItem(TIME_RANGE_LABEL[time_range], time_range.value)
        self.range_combo.setMinimumWidth(120)
        toolbar_layout.addWidget(self.range_combo)
        toolbar_layout.addStretch()

        self.export_btn = QPushButton("导出 CSV")
        self.export_btn.setMinimumWidth(100)
        self.export_btn.setStyleSheet("""
            QPushButton {
                background-color: #2196F3;
                color: white;
                border: none;
                border-radius: 3px;
                padding: 5px 10px;
            }
            QPushButton:hover {
                background-color: #1976D2;
            }
        """)
        toolbar_layout.addWidget(self.export_btn)
        layout.addLayout(toolbar_layout)

        # Totals
        stats_box = QGroupBox("统计")
        stats_layout = QHBoxLayout(stats_box)
        stats_layout.setSpacing(40)

        total_font = QFont()
        total_font.setPointSize(20)
        total_font.setBold(True)

        minutes_layout = QVBoxLayout()
        minutes_caption = QLabel("专注时长")
        minutes_caption.setStyleSheet("color: #a0a0a0; font-size: 13px;")
        minutes_layout.addWidget(minutes_caption)
        self.total_minutes_label = QLabel("0h 0m")
        self.total_minutes_label.setFont(total_font)
        self.total_minutes_label.setStyleSheet("color: #66BB6A; font-size: 24px;")
        minutes_layout.addWidget(self.total_minutes_label)
        stats_layout.addLayout(minutes_layout)

        count_layout = QVBoxLayout()
        count_caption = QLabel("完成番茄")
        count_caption.setStyleSheet("color: #a0a0a0; font-size: 13px;")
        count_layout.addWidget(count_caption)
        self.total_pomodoros_label = QLabel("0")
        self.total_pomodoros_label.setFont(total_font)
        self.total_pomodoros_label.setStyleSheet("color: #FFA726; font-size: 24px;")
        count_layout.addWidget(self.total_pomodoros_label)
        stats_layout.addLayout(count_layout)

        stats_layout.addStretch()
        layout.addWidget(stats_box)

        # Day list, newest first
        self.days_table = QTableWidget()
        self.days_table.setColumnCount(3)
        self.days_table.setHorizontalHeaderLabels(["日期", "专注 (分钟)", "番茄数"])
        self.days_table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.days_table.setAlternatingRowColors(True)
        self.days_table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.days_table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        layout.addWidget(self.days_table)

        self.empty_label = QLabel("暂无历史记录")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setStyleSheet("color: #808080;")
        self.empty_label.setVisible(False)
        layout.addWidget(self.empty_label)

    def _connect_signals(self):
        """Connect widget signals."""
        self.range_combo.currentIndexChanged.connect(self.refresh)
        self.export_btn.clicked.connect(self._export_csv)
        self.timer_engine.history_changed.connect(self.refresh)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.range_combo.currentData() or TimeRange.SEVEN_DAYS.value)

    @Slot()
    def refresh(self):
        """Recompute the series for the selected range."""
        day = today()
        self._points = process_history_data(
            self.timer_engine.session.history, self.time_range, today=day
        )
        totals = calculate_totals(self._points)
        hours, minutes = divmod(totals.total_minutes, 60)
        self.total_minutes_label.setText(f"{hours}h {minutes}m")
        self.total_pomodoros_label.setText(str(totals.total_pomodoros))

        rows = newest_first(self._points)
        self.days_table.setRowCount(len(rows))
        for row, point in enumerate(rows):
            date_item = QTableWidgetItem(format_date(point.date, today=day))
            date_item.setToolTip(point.date)
            self.days_table.setItem(row, 0, date_item)

            minutes_item = QTableWidgetItem(str(point.focus_minutes))
            minutes_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.days_table.setItem(row, 1, minutes_item)

            count_item = QTableWidgetItem(str(point.completed_pomodoros))
            count_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self.days_table.setItem(row, 2, count_item)

        self.empty_label.setVisible(not rows)
        self.export_btn.setEnabled(bool(rows))

    @Slot()
    def _export_csv(self):
        """Export the displayed series to a CSV file."""
        if not self._points:
            return

        first, last = self._points[0].date, self._points[-1].date
        default_name = f"pomodoro_stats_{first.replace('-', '')}_{last.replace('-', '')}.csv"
        filepath, _ = QFileDialog.getSaveFileName(
            self,
            "导出统计数据",
            default_name,
            "CSV Files (*.csv)"
        )

        if not filepath:
            return

        try:
            count = export_history_csv(filepath, self._points)
            QMessageBox.information(
                self,
                "导出完成",
                f"已导出 {count} 天的数据到:\n{filepath}"
            )
        except OSError as e:
            QMessageBox.critical(
                self,
                "导出失败",
                f"无法导出统计数据:\n{str(e)}"
            )
