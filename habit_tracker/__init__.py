#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker
Личный трекер привычек: упорядоченный список привычек, отметки по дням,
оптимистичные обновления с откатом и статистика за неделю/месяц

Версия: 1.0.0
"""

__version__ = "1.0.0"

from habit_tracker.core import (
    Completion,
    DateCursor,
    Habit,
    OperationResult,
    RemoteStore,
    TrackerError,
)
from habit_tracker.services import CompletionStore, HabitListStore, HabitTracker, StatsService
from habit_tracker.database import InMemoryRemoteStore, JsonFileRemoteStore

__all__ = [
    '__version__',
    'Completion',
    'DateCursor',
    'Habit',
    'OperationResult',
    'RemoteStore',
    'TrackerError',
    'CompletionStore',
    'HabitListStore',
    'HabitTracker',
    'StatsService',
    'InMemoryRemoteStore',
    'JsonFileRemoteStore',
]
