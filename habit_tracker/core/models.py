#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker - Core Data Models
Модели данных, результаты операций и иерархия ошибок

Версия: 1.0.0
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar
from dataclasses import dataclass, field, asdict
from enum import Enum
import logging

logger = logging.getLogger(__name__)

PROVISIONAL_PREFIX = "provisional-"

T = TypeVar("T")

# ===== ENUMS =====

class PendingOperation(Enum):
    """Операция, которая сейчас выполняется над сущностью"""
    NONE = "none"
    ADDING = "adding"
    RENAMING = "renaming"
    DELETING = "deleting"
    REORDERING = "reordering"
    TOGGLING = "toggling"

# ===== EXCEPTIONS =====

class TrackerError(Exception):
    """Базовое исключение ядра трекера"""

    def __init__(self, message: str = "", habit_id: Optional[str] = None):
        super().__init__(message)
        self.habit_id = habit_id

class ValidationError(TrackerError):
    """Ошибка валидации входных данных (никогда не уходит в remote store)"""
    pass

class FetchError(TrackerError):
    """Ошибка сети или транспорта при обращении к remote store"""
    pass

class NotFoundError(TrackerError):
    """Сущность исчезла на стороне сервера (или локально)"""
    pass

class AuthorizationError(TrackerError):
    """Владелец не совпадает с владельцем сессии"""
    pass

class PendingOperationError(TrackerError):
    """Над сущностью уже выполняется операция"""

    def __init__(self, message: str, habit_id: Optional[str] = None,
                 operation: PendingOperation = PendingOperation.NONE):
        super().__init__(message, habit_id)
        self.operation = operation

# ===== VALIDATION HELPERS =====

def validate_text(text: str, min_length: int = 1, max_length: int = 200, field_name: str = "name") -> str:
    """Валидация текстовых полей, возвращает очищенный текст"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} не может быть пустым")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} должен содержать максимум {max_length} символов")

    return text

def new_provisional_id() -> str:
    return f"{PROVISIONAL_PREFIX}{uuid.uuid4()}"

def is_provisional_id(value: str) -> bool:
    return value.startswith(PROVISIONAL_PREFIX)

# ===== CORE MODELS =====

@dataclass(frozen=True)
class Habit:
    """Привычка пользователя"""
    id: str
    name: str
    sort_order: int
    owner_id: str
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    provisional: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        """Десериализация из словаря (формат строки хранилища)"""
        return cls(
            id=str(data["id"]),
            name=data["name"],
            sort_order=int(data.get("sort_order", 0)),
            owner_id=str(data.get("owner_id", data.get("user_id", ""))),
            created_at=data.get("created_at") or datetime.now().isoformat(),
            provisional=bool(data.get("provisional", False)),
        )

    @classmethod
    def create_provisional(cls, name: str, sort_order: int, owner_id: str) -> "Habit":
        """Локальная заготовка, ожидающая подтверждения сервером"""
        return cls(
            id=new_provisional_id(),
            name=name,
            sort_order=sort_order,
            owner_id=owner_id,
            provisional=True,
        )

@dataclass(frozen=True)
class Completion:
    """Отметка о выполнении привычки в конкретный день"""
    id: str
    owner_id: str
    habit_id: str
    date: str  # YYYY-MM-DD, локальная таймзона
    provisional: bool = False

    @property
    def key(self) -> tuple:
        return (self.owner_id, self.habit_id, self.date)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Completion":
        return cls(
            id=str(data["id"]),
            owner_id=str(data.get("owner_id", data.get("user_id", ""))),
            habit_id=str(data["habit_id"]),
            date=data.get("date", data.get("completion_date")),
            provisional=bool(data.get("provisional", False)),
        )

    @classmethod
    def create_provisional(cls, owner_id: str, habit_id: str, date: str) -> "Completion":
        return cls(
            id=new_provisional_id(),
            owner_id=owner_id,
            habit_id=habit_id,
            date=date,
            provisional=True,
        )

# ===== OPERATION RESULTS =====

@dataclass
class OperationResult(Generic[T]):
    """
    Результат операции хранилища

    Операции не бросают исключения через границу store/UI:
    успех содержит value, неудача содержит error.
    """
    ok: bool
    value: Optional[T] = None
    error: Optional[TrackerError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: TrackerError) -> "OperationResult[T]":
        return cls(ok=False, error=error)

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    def unwrap(self) -> T:
        """Вернуть значение или поднять сохранённую ошибку"""
        if not self.ok:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "error": self.error_message,
            "error_type": type(self.error).__name__ if self.error is not None else None,
        }
