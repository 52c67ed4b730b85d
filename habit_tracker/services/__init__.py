# services/__init__.py

"""
Модуль сервисов трекера привычек

Store-ы с оптимистичными обновлениями, статистика и фасад для UI.
"""

from .base import ObservableStore
from .habit_service import HabitListStore
from .completion_service import CompletionStore
from .stats_service import HabitStats, StatsReport, StatsService, count_completions
from .tracker import HabitTracker

__all__ = [
    'ObservableStore',
    'HabitListStore',
    'CompletionStore',
    'HabitStats',
    'StatsReport',
    'StatsService',
    'count_completions',
    'HabitTracker',
]
