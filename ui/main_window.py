"""
Main window for the Pomodoro application.
Contains the tab widget with all pages, the tray icon and mini mode.
"""

import logging
from typing import Optional
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QTabWidget,
    QSystemTrayIcon, QMenu, QApplication
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QIcon, QAction, QCloseEvent, QPixmap, QPainter, QColor

from core.models import PHASE_LABEL
from core.notifications import AmbientNoisePlayer, NotificationManager
from core.session import PomodoroSession
from core.storage import Storage
from core.time_utils import format_seconds
from core.timer_engine import TimerEngine

from .timer_page import TimerPage
from .tasks_page import TasksPage
from .statistics_page import StatisticsPage
from .settings_page import SettingsPage

logger = logging.getLogger(__name__)

APP_TITLE = "番茄钟"
MINI_SIZE = (420, 520)
FULL_SIZE = (820, 680)


def create_app_icon() -> QIcon:
    """Create a tomato icon programmatically."""
    icon = QIcon()

    for size in [16, 32, 48, 64]:
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.GlobalColor.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setPen(Qt.PenStyle.NoPen)

        # Tomato body
        painter.setBrush(QColor("#E53935"))
        margin = size // 8
        painter.drawEllipse(margin, margin + size // 16, size - 2*margin, size - 2*margin)

        # Leaf
        painter.setBrush(QColor("#43A047"))
        leaf = max(2, size // 4)
        painter.drawEllipse((size - leaf) // 2, margin // 2, leaf, max(1, leaf // 2))

        painter.end()
        icon.addPixmap(pixmap)

    return icon


class MainWindow(QMainWindow):
    """
    Main application window with tabbed interface.
    Owns the storage, the timer engine and the audio/notification managers.
    """

    def __init__(self, storage: Optional[Storage] = None):
        super().__init__()

        self.storage = storage if storage is not None else Storage()
        self.timer_engine = TimerEngine(self.storage, parent=self)
        self.notifications = NotificationManager(self)
        self.ambient_player = AmbientNoisePlayer(self)
        self.tray_icon: Optional[QSystemTrayIcon] = None
        self._mini_mode: Optional[bool] = None
        self._quitting = False
        self._shut_down = False

        self.setWindowTitle(APP_TITLE)
        self.app_icon = create_app_icon()
        self.setWindowIcon(self.app_icon)

        self._setup_ui()
        self._setup_tray()
        self._connect_signals()

        # Sync every listener with the loaded state
        self.timer_engine.announce()
        self.statistics_page.refresh()

    def _setup_ui(self):
        """Set up the main UI."""
        central = QWidget()
        self.setCentralWidget(central)

        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)

        self.tabs = QTabWidget()
        self.tabs.setDocumentMode(True)

        self.timer_page = TimerPage(self.timer_engine)
        self.tasks_page = TasksPage(self.timer_engine)
        self.statistics_page = StatisticsPage(self.timer_engine)
        self.settings_page = SettingsPage(self.timer_engine)

        self.tabs.addTab(self.timer_page, "计时")
        self.tabs.addTab(self.tasks_page, "任务")
        self.tabs.addTab(self.statistics_page, "统计")
        self.tabs.addTab(self.settings_page, "设置")

        layout.addWidget(self.tabs)

    def _setup_tray(self):
        """Set up system tray icon."""
        if not QSystemTrayIcon.isSystemTrayAvailable():
            logger.info("System tray not available")
            return

        self.tray_icon = QSystemTrayIcon(self.app_icon, self)
        self.tray_icon.setToolTip(APP_TITLE)

        tray_menu = QMenu(self)

        show_action = QAction("显示窗口", self)
        show_action.triggered.connect(self._show_window)
        tray_menu.addAction(show_action)

        tray_menu.addSeparator()

        self.tray_toggle_action = QAction("开始", self)
        self.tray_toggle_action.triggered.connect(self.timer_engine.toggle)
        tray_menu.addAction(self.tray_toggle_action)

        reset_action = QAction("重置", self)
        reset_action.triggered.connect(self.timer_engine.reset)
        tray_menu.addAction(reset_action)

        skip_action = QAction("跳过", self)
        skip_action.triggered.connect(self.timer_engine.skip)
        tray_menu.addAction(skip_action)

        tray_menu.addSeparator()

        quit_action = QAction("退出", self)
        quit_action.triggered.connect(self._quit_app)
        tray_menu.addAction(quit_action)

        self.tray_icon.setContextMenu(tray_menu)
        self.tray_icon.activated.connect(self._on_tray_activated)
        self.tray_icon.show()

        self.notifications.set_tray_icon(self.tray_icon)

    def _connect_signals(self):
        """Connect engine effects to the managers and the window."""
        engine = self.timer_engine
        engine.notification_requested.connect(self.notifications.notify)
        engine.chime_requested.connect(self.notifications.play_chime)
        engine.ambient_start_requested.connect(self.ambient_player.start)
        engine.ambient_stop_requested.connect(self.ambient_player.stop)

        engine.tick.connect(self._on_timer_tick)
        engine.state_changed.connect(self._on_state_changed)

    @Slot(int)
    def _on_timer_tick(self, remaining_seconds: int):
        """Keep the tray tooltip in step with the countdown."""
        if self.tray_icon is None:
            return
        phase = PHASE_LABEL[self.timer_engine.phase]
        self.tray_icon.setToolTip(f"{APP_TITLE} - {phase}\n{format_seconds(remaining_seconds)}")

    @Slot(object)
    def _on_state_changed(self, session: PomodoroSession):
        if self.tray_icon is not None:
            if self.timer_engine.is_running:
                self.tray_toggle_action.setText("暂停")
            else:
                self.tray_toggle_action.setText("继续" if self.timer_engine.is_paused else "开始")
        self._apply_mini_mode(session.settings.mini_mode)

    def _apply_mini_mode(self, enabled: bool):
        """Show only the timer page in a compact window when mini mode is on."""
        if enabled == self._mini_mode:
            return
        self._mini_mode = enabled

        for index in range(self.tabs.count()):
            self.tabs.setTabVisible(index, not enabled or self.tabs.widget(index) is self.timer_page)
        self.tabs.tabBar().setVisible(not enabled)
        if enabled:
            self.tabs.setCurrentWidget(self.timer_page)
            self.setMinimumSize(*MINI_SIZE)
            self.resize(*MINI_SIZE)
        else:
            self.setMinimumSize(700, 600)
            self.resize(*FULL_SIZE)

    @Slot(QSystemTrayIcon.ActivationReason)
    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason):
        """Handle tray icon activation."""
        if reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            self._show_window()

    @Slot()
    def _show_window(self):
        """Show and bring window to front."""
        self.show()
        self.raise_()
        self.activateWindow()

    @Slot()
    def _quit_app(self):
        """Quit the application."""
        self._quitting = True
        self.shutdown()
        QApplication.quit()

    def closeEvent(self, event: QCloseEvent):
        """Hide to the tray when configured, otherwise save and exit."""
        if (
            not self._quitting
            and self.timer_engine.settings.minimize_to_tray
            and self.tray_icon is not None
            and self.tray_icon.isVisible()
        ):
            event.ignore()
            self.hide()
            self.tray_icon.showMessage(
                APP_TITLE,
                "番茄钟仍在后台运行，双击托盘图标打开窗口。",
                QSystemTrayIcon.MessageIcon.Information,
                2000
            )
            return

        self.shutdown()
        event.accept()
        QApplication.quit()

    def shutdown(self):
        """Save pending state and release audio resources. Safe to call twice."""
        if self._shut_down:
            return
        self._shut_down = True
        self.timer_engine.cleanup()
        self.ambient_player.cleanup()
        self.notifications.cleanup()

        if self.tray_icon is not None:
            self.tray_icon.hide()
