#!/usr/bin/env python3
"""
番茄钟 - A local-only Pomodoro timer.

- Work / short break / long break cycle with configurable durations
- Tasks credited with completed focus sessions
- Daily focus statistics with CSV export
- Phase-change chime, ambient noise and desktop notifications

Usage:
    pip install -e .
    python main.py

Environment:
    POMODORO_DATA_DIR   Directory holding pomodoro.db
    POMODORO_LOG_LEVEL  Logging level (default INFO)
"""

import logging
import os
import sys
import signal
from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

logger = logging.getLogger("pomodoro")

ACCENT = "#E57373"

STYLESHEET = """
    QMainWindow, QWidget {
        background-color: #1e1e1e;
        color: #e0e0e0;
    }

    QTabWidget::pane {
        border: none;
        background-color: #252525;
    }
    QTabBar::tab {
        background-color: #2d2d2d;
        color: #b0b0b0;
        padding: 10px 24px;
        margin-right: 2px;
        border-top-left-radius: 6px;
        border-top-right-radius: 6px;
    }
    QTabBar::tab:selected {
        background-color: #252525;
        color: #ffffff;
        font-weight: bold;
    }

    QGroupBox {
        font-weight: bold;
        border: 1px solid #404040;
        border-radius: 8px;
        margin-top: 12px;
        padding-top: 12px;
        background-color: #2a2a2a;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        left: 12px;
        padding: 0 8px;
        color: ACCENT;
    }

    QLabel {
        font-size: 13px;
    }

    QComboBox, QSpinBox, QLineEdit {
        padding: 7px;
        border: 1px solid #404040;
        border-radius: 5px;
        background-color: #2d2d2d;
        color: #ffffff;
    }
    QComboBox:hover, QSpinBox:hover, QLineEdit:focus {
        border-color: ACCENT;
    }
    QComboBox QAbstractItemView {
        background-color: #2d2d2d;
        selection-background-color: ACCENT;
    }

    QCheckBox {
        spacing: 10px;
    }
    QCheckBox::indicator {
        width: 18px;
        height: 18px;
        border-radius: 4px;
        border: 2px solid #404040;
        background-color: #2d2d2d;
    }
    QCheckBox::indicator:checked {
        background-color: ACCENT;
        border-color: ACCENT;
    }

    QTableWidget {
        border: 1px solid #404040;
        gridline-color: #353535;
        background-color: #252525;
    }
    QTableWidget::item:selected {
        background-color: ACCENT;
        color: #ffffff;
    }
    QHeaderView::section {
        background-color: #2d2d2d;
        color: #ffffff;
        padding: 8px;
        border: none;
        border-bottom: 2px solid ACCENT;
        font-weight: bold;
    }

    QPushButton {
        padding: 9px 16px;
        border-radius: 5px;
        background-color: #404040;
        color: #ffffff;
        font-weight: bold;
        border: none;
    }
    QPushButton:hover {
        background-color: #505050;
    }
    QPushButton:checked {
        background-color: ACCENT;
    }
    QPushButton:disabled {
        background-color: #2d2d2d;
        color: #606060;
    }

    QProgressBar {
        border: none;
        border-radius: 4px;
        background-color: #353535;
    }
    QProgressBar::chunk {
        border-radius: 4px;
        background-color: ACCENT;
    }

    QMenu {
        background-color: #2d2d2d;
        border: 1px solid #404040;
    }
    QMenu::item:selected {
        background-color: ACCENT;
    }
    QToolTip {
        background-color: #2d2d2d;
        color: #ffffff;
        border: 1px solid ACCENT;
    }
""".replace("ACCENT", ACCENT)


def setup_logging():
    """Configure logging from POMODORO_LOG_LEVEL."""
    level_name = os.environ.get("POMODORO_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )


def setup_exception_handling():
    """Log unhandled exceptions instead of letting Qt swallow them."""
    def exception_hook(exctype, value, traceback):
        logger.critical("Unhandled exception", exc_info=(exctype, value, traceback))
        sys.__excepthook__(exctype, value, traceback)

    sys.excepthook = exception_hook


def setup_signal_handlers(app: QApplication):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Main entry point for the Pomodoro application."""
    setup_logging()
    setup_exception_handling()

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("PomodoroTimer")
    app.setApplicationDisplayName("番茄钟")
    app.setOrganizationName("PomodoroTimer")
    app.setQuitOnLastWindowClosed(False)

    app.setStyle("Fusion")
    app.setStyleSheet(STYLESHEET)

    setup_signal_handlers(app)

    from ui.main_window import MainWindow
    window = MainWindow()
    app.aboutToQuit.connect(window.shutdown)
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
