#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker - In-Memory Remote Store
Хранилище привычек и отметок в памяти с изоляцией по владельцу

Версия: 1.0.0
"""

import threading
import uuid
import logging
from datetime import datetime
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from habit_tracker.core.dates import normalize_date
from habit_tracker.core.models import (
    AuthorizationError,
    Completion,
    Habit,
    NotFoundError,
    ValidationError,
    validate_text,
)
from habit_tracker.core.remote import RemoteStore

logger = logging.getLogger(__name__)

CompletionKey = Tuple[str, str, str]

@dataclass
class StoreStats:
    """Статистика хранилища"""
    reads: int = 0
    writes: int = 0
    rejected: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'reads': self.reads, 'writes': self.writes, 'rejected': self.rejected}

class InMemoryRemoteStore(RemoteStore):
    """
    Реализация RemoteStore в памяти

    - Уникальность отметки по (owner_id, habit_id, date)
    - Каскадное удаление отметок вместе с привычкой
    - Вызов от имени чужого владельца -> AuthorizationError
    """

    def __init__(self, session_owner: Optional[str] = None):
        # Если задан, хранилище обслуживает только этого владельца
        self.session_owner = session_owner
        self.stats = StoreStats()
        self._habits: Dict[str, Habit] = {}
        self._completions: Dict[CompletionKey, Completion] = {}
        self._lock = threading.RLock()

    # ===== HELPERS =====

    def _authorize(self, owner_id: str) -> None:
        if not owner_id:
            self.stats.rejected += 1
            raise AuthorizationError("Пользователь не аутентифицирован")
        if self.session_owner is not None and owner_id != self.session_owner:
            self.stats.rejected += 1
            raise AuthorizationError(f"Нет доступа к данным владельца {owner_id}")

    def _owned_habit(self, habit_id: str, owner_id: str) -> Habit:
        habit = self._habits.get(habit_id)
        if habit is None:
            raise NotFoundError(f"Привычка {habit_id} не найдена", habit_id=habit_id)
        if habit.owner_id != owner_id:
            self.stats.rejected += 1
            raise AuthorizationError(f"Привычка {habit_id} принадлежит другому владельцу", habit_id=habit_id)
        return habit

    def _commit(self) -> None:
        """Вызывается после каждой записи; наследники сохраняют состояние"""
        self.stats.writes += 1

    # ===== ПРИВЫЧКИ =====

    async def list_habits(self, owner_id: str) -> List[Habit]:
        self._authorize(owner_id)
        with self._lock:
            self.stats.reads += 1
            habits = [habit for habit in self._habits.values() if habit.owner_id == owner_id]
        return sorted(habits, key=lambda habit: (habit.sort_order, habit.created_at))

    async def insert_habit(self, owner_id: str, name: str, sort_order: int) -> Habit:
        self._authorize(owner_id)
        habit = Habit(
            id=str(uuid.uuid4()),
            name=validate_text(name, field_name="name"),
            sort_order=int(sort_order),
            owner_id=owner_id,
            created_at=datetime.now().isoformat(),
        )
        with self._lock:
            self._habits[habit.id] = habit
            self._commit()
        logger.debug(f"insert_habit {habit.id} для {owner_id}")
        return habit

    async def update_habit_name(self, habit_id: str, owner_id: str, name: str) -> Habit:
        self._authorize(owner_id)
        with self._lock:
            habit = replace(self._owned_habit(habit_id, owner_id), name=validate_text(name, field_name="name"))
            self._habits[habit_id] = habit
            self._commit()
        return habit

    async def update_habit_sort_order(self, habit_id: str, owner_id: str, sort_order: int) -> None:
        self._authorize(owner_id)
        with self._lock:
            habit = self._owned_habit(habit_id, owner_id)
            self._habits[habit_id] = replace(habit, sort_order=int(sort_order))
            self._commit()

    async def delete_habit(self, habit_id: str, owner_id: str) -> None:
        self._authorize(owner_id)
        with self._lock:
            self._owned_habit(habit_id, owner_id)
            del self._habits[habit_id]
            orphaned = [key for key in self._completions if key[0] == owner_id and key[1] == habit_id]
            for key in orphaned:
                del self._completions[key]
            self._commit()
        logger.debug(f"delete_habit {habit_id}: удалено отметок {len(orphaned)}")

    # ===== ОТМЕТКИ =====

    async def list_completions(self, owner_id: str, date: str) -> List[Completion]:
        self._authorize(owner_id)
        key = normalize_date(date)
        with self._lock:
            self.stats.reads += 1
            return [c for c in self._completions.values() if c.owner_id == owner_id and c.date == key]

    async def list_completions_in_range(self, owner_id: str, start: str, end: str) -> List[Completion]:
        self._authorize(owner_id)
        start_key, end_key = normalize_date(start), normalize_date(end)
        if start_key > end_key:
            raise ValidationError(f"Начало периода {start_key} позже конца {end_key}")
        with self._lock:
            self.stats.reads += 1
            rows = [
                c for c in self._completions.values()
                if c.owner_id == owner_id and start_key <= c.date <= end_key
            ]
        return sorted(rows, key=lambda c: (c.date, c.habit_id))

    async def insert_completion(self, owner_id: str, habit_id: str, date: str) -> None:
        self._authorize(owner_id)
        key = (owner_id, habit_id, normalize_date(date))
        with self._lock:
            self._owned_habit(habit_id, owner_id)
            if key in self._completions:
                return
            self._completions[key] = Completion(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                habit_id=habit_id,
                date=key[2],
            )
            self._commit()

    async def delete_completion(self, owner_id: str, habit_id: str, date: str) -> None:
        self._authorize(owner_id)
        key = (owner_id, habit_id, normalize_date(date))
        with self._lock:
            if self._completions.pop(key, None) is not None:
                self._commit()

    # ===== СЕРИАЛИЗАЦИЯ =====

    def completion_count(self, owner_id: str, habit_id: str, date: str) -> int:
        """Сколько отметок хранится для (owner_id, habit_id, date)"""
        key = normalize_date(date)
        with self._lock:
            return sum(
                1 for c in self._completions.values()
                if c.owner_id == owner_id and c.habit_id == habit_id and c.date == key
            )

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'habits': [habit.to_dict() for habit in self._habits.values()],
                'completions': [completion.to_dict() for completion in self._completions.values()],
            }

    def load_dict(self, data: Dict[str, Any]) -> None:
        """Заменить состояние данными из словаря (формат to_dict)"""
        habits = [Habit.from_dict(item) for item in data.get('habits', [])]
        completions = [Completion.from_dict(item) for item in data.get('completions', [])]
        with self._lock:
            self._habits = {habit.id: habit for habit in habits}
            self._completions = {completion.key: completion for completion in completions}
        logger.info(f"📂 Загружено {len(habits)} привычек и {len(completions)} отметок")
