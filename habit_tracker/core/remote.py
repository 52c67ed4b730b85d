# core/remote.py

"""
Контракт удалённого хранилища (RemoteStore)

Хранилище передаётся в каждый store через конструктор, поэтому в тестах
его легко заменить фейком. Все вызовы асинхронные и выполняются от имени
владельца; сервер остаётся источником истины.
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, List, TypeVar

from habit_tracker.core.models import Completion, FetchError, Habit, TrackerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

class RemoteStore(ABC):
    """Набор возможностей удалённого хранилища привычек"""

    @abstractmethod
    async def list_habits(self, owner_id: str) -> List[Habit]:
        """Привычки владельца по возрастанию sort_order"""

    @abstractmethod
    async def insert_habit(self, owner_id: str, name: str, sort_order: int) -> Habit:
        """Создать привычку, сервер назначает id и created_at"""

    @abstractmethod
    async def update_habit_name(self, habit_id: str, owner_id: str, name: str) -> Habit:
        ...

    @abstractmethod
    async def update_habit_sort_order(self, habit_id: str, owner_id: str, sort_order: int) -> None:
        ...

    @abstractmethod
    async def delete_habit(self, habit_id: str, owner_id: str) -> None:
        """Удалить привычку вместе с её отметками"""

    @abstractmethod
    async def list_completions(self, owner_id: str, date: str) -> List[Completion]:
        ...

    @abstractmethod
    async def list_completions_in_range(self, owner_id: str, start: str, end: str) -> List[Completion]:
        """Отметки за период, границы включительно"""

    @abstractmethod
    async def insert_completion(self, owner_id: str, habit_id: str, date: str) -> None:
        """Идемпотентно: повторная вставка существующей отметки ничего не делает"""

    @abstractmethod
    async def delete_completion(self, owner_id: str, habit_id: str, date: str) -> None:
        ...

async def call_remote(operation: str, awaitable: Awaitable[T]) -> T:
    """
    Выполнить вызов хранилища

    Ошибки трекера пробрасываются как есть, всё остальное считается
    транспортной ошибкой и заворачивается в FetchError.
    """
    try:
        return await awaitable
    except TrackerError:
        raise
    except Exception as e:
        logger.exception(f"❌ Ошибка транспорта в {operation}: {e}")
        raise FetchError(f"{operation}: {e}") from e
