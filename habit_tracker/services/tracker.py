# services/tracker.py

"""
Фасад трекера для слоя представления

Объединяет список привычек, отметки выбранного дня, навигацию по датам
и статистику. Все методы возвращают OperationResult.
"""

import asyncio
import logging
from typing import Callable, Optional, Sequence, Tuple

from habit_tracker.core.dates import DateCursor, DateLike, SUNDAY, to_local_date
from habit_tracker.core.models import (
    Habit,
    NotFoundError,
    OperationResult,
    PendingOperation,
    PendingOperationError,
    TrackerError,
    ValidationError,
)
from habit_tracker.core.remote import RemoteStore
from habit_tracker.services.completion_service import CompletionStore
from habit_tracker.services.habit_service import HabitListStore
from habit_tracker.services.stats_service import StatsReport, StatsService

logger = logging.getLogger(__name__)

class HabitTracker:
    """
    Сессия трекера одного владельца

    Возможности:
    - Список привычек и отметки выбранного дня
    - Навигация по датам, свайпы и pull-to-refresh
    - Каскад отметок при удалении привычки
    - Статистика за неделю и месяц
    """

    def __init__(self, remote: RemoteStore, owner_id: str, cursor: Optional[DateCursor] = None,
                 haptics: Optional[Callable[[], None]] = None, week_starts_on: int = SUNDAY):
        self.owner_id = owner_id
        self.cursor = cursor or DateCursor()
        self.habit_store = HabitListStore(remote, owner_id)
        self.completion_store = CompletionStore(remote, haptics=haptics)
        self.stats_service = StatsService(
            self.completion_store, week_starts_on=week_starts_on, today_provider=self.cursor.today
        )
        self.last_error: Optional[TrackerError] = None

        self.habit_store.add_removal_listener(self.completion_store.forget_habit)

    # ===== СОСТОЯНИЕ =====

    @property
    def habits(self) -> Tuple[Habit, ...]:
        return self.habit_store.habits

    @property
    def selected_date(self) -> str:
        return self.cursor.key

    @property
    def loading(self) -> bool:
        return self.habit_store.loading or self.completion_store.loading

    @property
    def draft(self) -> str:
        return self.habit_store.draft

    def is_habit_done(self, habit_id: str) -> bool:
        return self.completion_store.is_done(habit_id)

    def is_pending(self, habit_id: str) -> bool:
        return (self.habit_store.is_pending(habit_id)
                or self.completion_store.is_cell_pending(habit_id, self.cursor.selected))

    def subscribe(self, listener: Callable[["HabitTracker"], None]) -> Callable[[], None]:
        """Слушатель получает фасад после любого изменения в любом store"""
        unsubscribe_habits = self.habit_store.subscribe(lambda _snapshot: listener(self))
        unsubscribe_completions = self.completion_store.subscribe(lambda _snapshot: listener(self))

        def unsubscribe() -> None:
            unsubscribe_habits()
            unsubscribe_completions()

        return unsubscribe

    def _track(self, result: OperationResult) -> OperationResult:
        self.last_error = None if result.ok else result.error
        return result

    # ===== ЗАГРУЗКА =====

    async def start(self) -> OperationResult[None]:
        logger.info(f"🚀 Запуск трекера для {self.owner_id} на {self.selected_date}")
        return await self.refresh()

    async def refresh(self) -> OperationResult[None]:
        """Pull-to-refresh: привычки и отметки дня загружаются параллельно"""
        habits_result, completions_result = await asyncio.gather(
            self.habit_store.load(self.owner_id),
            self.completion_store.load_for_date(self.owner_id, self.cursor.selected),
        )
        for result in (habits_result, completions_result):
            if not result.ok:
                return self._track(OperationResult.failure(result.error))
        return self._track(OperationResult.success())

    # ===== ПРИВЫЧКИ =====

    async def add_habit(self, name: str) -> OperationResult[Habit]:
        return self._track(await self.habit_store.add(name))

    async def rename_habit(self, habit_id: str, name: str) -> OperationResult[Habit]:
        return self._track(await self.habit_store.rename(habit_id, name))

    async def remove_habit(self, habit_id: str) -> OperationResult[str]:
        result = await self.habit_store.remove(habit_id)
        if not result.ok and self.completion_store.active_date is not None:
            # Каскад уже убрал отметку из кэша, возвращаем правду сервера
            await self.completion_store.load_for_date(self.owner_id, self.cursor.selected)
        return self._track(result)

    async def reorder_habits(self, new_order: Sequence[str]) -> OperationResult[Tuple[Habit, ...]]:
        return self._track(await self.habit_store.reorder(new_order))

    async def move_habit(self, source_index: int, destination_index: int) -> OperationResult[Tuple[Habit, ...]]:
        return self._track(await self.habit_store.move(source_index, destination_index))

    async def drop_habit(self, dragged_id: str, target_id: str) -> OperationResult[Tuple[Habit, ...]]:
        return self._track(await self.habit_store.drop(dragged_id, target_id))

    # ===== ОТМЕТКИ =====

    async def toggle_habit(self, habit_id: str) -> OperationResult[bool]:
        habit = self.habit_store.get(habit_id)
        if habit is None:
            return self._track(OperationResult.failure(
                NotFoundError(f"Привычка {habit_id} не найдена", habit_id=habit_id)
            ))
        if habit.provisional:
            return self._track(OperationResult.failure(PendingOperationError(
                f"Привычка {habit_id} ещё не сохранена",
                habit_id=habit_id,
                operation=PendingOperation.ADDING,
            )))

        return self._track(
            await self.completion_store.toggle(self.owner_id, habit_id, self.cursor.selected)
        )

    # ===== НАВИГАЦИЯ ПО ДАТАМ =====

    async def _load_selected(self) -> OperationResult[str]:
        result = await self.completion_store.load_for_date(self.owner_id, self.cursor.selected)
        if not result.ok:
            return self._track(OperationResult.failure(result.error))
        return self._track(OperationResult.success(self.selected_date))

    async def go_to_date(self, value: DateLike) -> OperationResult[str]:
        try:
            target = to_local_date(value)
        except ValidationError as e:
            return self._track(OperationResult.failure(e))

        if not self.cursor.go_to(target):
            return self._track(OperationResult.failure(
                ValidationError(f"Нельзя выбрать будущую дату {target.isoformat()}")
            ))
        return await self._load_selected()

    async def step_date(self, delta_days: int) -> OperationResult[str]:
        """Шаг по дням; шаг в будущее ничего не делает"""
        if not self.cursor.step(delta_days):
            return self._track(OperationResult.success(self.selected_date))
        return await self._load_selected()

    async def on_swipe_left(self) -> OperationResult[str]:
        return await self.step_date(1)

    async def on_swipe_right(self) -> OperationResult[str]:
        return await self.step_date(-1)

    def can_step_forward(self) -> bool:
        return self.cursor.can_step_forward()

    def is_today(self) -> bool:
        return self.cursor.is_today()

    # ===== СТАТИСТИКА =====

    async def stats(self, view: str = "week", anchor: Optional[DateLike] = None,
                    direction: Optional[str] = None) -> OperationResult[StatsReport]:
        """Статистика периода с anchor; direction сдвигает на соседний период"""
        confirmed = [habit for habit in self.habits if not habit.provisional]
        if anchor is None:
            anchor = self.cursor.selected
        if direction is not None:
            try:
                anchor = self.stats_service.navigate(anchor, view, direction)
            except ValidationError as e:
                return self._track(OperationResult.failure(e))
        return self._track(
            await self.stats_service.habit_counts(self.owner_id, confirmed, view, anchor)
        )
