"""
Settings page widget for the Pomodoro application.
Allows users to configure durations, the long-break cycle and preferences.
"""

from typing import Dict, Optional
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QCheckBox, QComboBox,
    QGroupBox, QSpinBox, QFormLayout
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QFont

from core.models import (
    NoiseType, Phase, PHASE_LABEL, MIN_MINUTES, MAX_MINUTES,
    MIN_LONG_BREAK_EVERY, MAX_LONG_BREAK_EVERY, phase_minutes
)
from core.notifications import NOISE_LABEL
from core.storage import get_app_data_dir
from core.timer_engine import TimerEngine


class SettingsPage(QWidget):
    """
    Settings page for configuring the timer.
    Every change is applied to the engine immediately.
    """

    def __init__(self, timer_engine: TimerEngine, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self.timer_engine = timer_engine
        self._minute_spins: Dict[Phase, QSpinBox] = {}
        self._checks: Dict[str, QCheckBox] = {}

        self._setup_ui()
        self._load_settings()
        self._connect_signals()

    def _setup_ui(self):
        """Set up the UI components."""
        layout = QVBoxLayout(self)
        layout.setSpacing(20)
        layout.setContentsMargins(30, 30, 30, 30)

        # Header
        header = QLabel("设置")
        header_font = QFont()
        header_font.setPointSize(18)
        header_font.setBold(True)
        header.setFont(header_font)
        layout.addWidget(header)

        # Timer section
        timer_box = QGroupBox("计时")
        timer_layout = QFormLayout(timer_box)
        timer_layout.setSpacing(12)

        for phase in Phase:
            spin = QSpinBox()
            spin.setRange(MIN_MINUTES, MAX_MINUTES)
            spin.setSuffix(" 分钟")
            self._minute_spins[phase] = spin
            timer_layout.addRow(f"{PHASE_LABEL[phase]}时长:", spin)

        self.long_break_every_spin = QSpinBox()
        self.long_break_every_spin.setRange(MIN_LONG_BREAK_EVERY, MAX_LONG_BREAK_EVERY)
        self.long_break_every_spin.setToolTip("完成多少个番茄后进入长休息")
        timer_layout.addRow("每轮长休间隔:", self.long_break_every_spin)

        layout.addWidget(timer_box)

        # Preferences section
        pref_box = QGroupBox("偏好")
        pref_layout = QVBoxLayout(pref_box)
        pref_layout.setSpacing(12)

        for name, text in (
            ("auto_start_next", "自动开始下一阶段"),
            ("sound_enabled", "阶段切换时播放提示音"),
            ("white_noise_enabled", "专注时播放白噪音"),
            ("mini_mode", "迷你模式"),
            ("minimize_to_tray", "关闭窗口时最小化到托盘"),
        ):
            check = QCheckBox(text)
            self._checks[name] = check
            pref_layout.addWidget(check)

        self.noise_combo = QComboBox()
        for noise in NoiseType:
            self.noise_combo.addItem(NOISE_LABEL[noise], noise.value)
        noise_form = QFormLayout()
        noise_form.addRow("白噪音类型:", self.noise_combo)
        pref_layout.addLayout(noise_form)

        layout.addWidget(pref_box)

        # Data section
        data_box = QGroupBox("数据")
        data_layout = QVBoxLayout(data_box)
        data_info = QLabel("任务和统计数据保存在本地应用数据目录中。")
        data_info.setStyleSheet("color: #a0a0a0;")
        data_info.setWordWrap(True)
        data_layout.addWidget(data_info)

        path_label = QLabel(f"位置: {get_app_data_dir()}")
        path_label.setStyleSheet("color: #808080; font-size: 11px;")
        path_label.setWordWrap(True)
        path_label.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse
        )
        data_layout.addWidget(path_label)
        layout.addWidget(data_box)

        layout.addStretch()

    def _load_settings(self):
        """Show the engine's current settings."""
        settings = self.timer_engine.settings
        for phase, spin in self._minute_spins.items():
            spin.setValue(phase_minutes(phase, settings))
        self.long_break_every_spin.setValue(settings.long_break_every)
        for name, check in self._checks.items():
            check.setChecked(getattr(settings, name))
        index = self.noise_combo.findData(settings.white_noise_type.value)
        self.noise_combo.setCurrentIndex(max(0, index))
        self.noise_combo.setEnabled(settings.white_noise_enabled)

    def _connect_signals(self):
        """Connect widget signals."""
        for phase, spin in self._minute_spins.items():
            spin.valueChanged.connect(
                lambda value, p=phase: self.timer_engine.update_minutes(p, value)
            )
        self.long_break_every_spin.valueChanged.connect(self.timer_engine.update_long_break_every)
        for name, check in self._checks.items():
            check.toggled.connect(lambda checked, n=name: self._on_toggle(n, checked))
        self.noise_combo.currentIndexChanged.connect(self._on_noise_changed)

    def _on_toggle(self, name: str, checked: bool):
        self.timer_engine.update_preferences(**{name: checked})
        if name == "white_noise_enabled":
            self.noise_combo.setEnabled(checked)

    @Slot(int)
    def _on_noise_changed(self, index: int):
        self.timer_engine.update_preferences(white_noise_type=self.noise_combo.itemData(index))
