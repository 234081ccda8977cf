# UI module for the Pomodoro application
from .main_window import MainWindow
from .timer_page import TimerPage
from .tasks_page import TasksPage
from .statistics_page import StatisticsPage
from .settings_page import SettingsPage

__all__ = ['MainWindow', 'TimerPage', 'TasksPage', 'StatisticsPage', 'SettingsPage']
