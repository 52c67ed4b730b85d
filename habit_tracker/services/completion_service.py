# services/completion_service.py

import logging
from dataclasses import replace
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from habit_tracker.core.dates import DateLike, normalize_date
from habit_tracker.core.models import (
    AuthorizationError,
    Completion,
    OperationResult,
    PendingOperation,
    TrackerError,
    ValidationError,
)
from habit_tracker.core.remote import RemoteStore, call_remote
from habit_tracker.services.base import ObservableStore

logger = logging.getLogger(__name__)

class CompletionStore(ObservableStore):
    """
    Отметки о выполнении привычек для выбранной даты

    Возможности:
    - Загрузка отметок за день с отбрасыванием устаревших ответов
    - Загрузка за период (только чтение, для статистики)
    - Оптимистичное переключение отметки; при ошибке набор за день
      перезагружается с сервера
    """

    def __init__(self, remote: RemoteStore, haptics: Optional[Callable[[], None]] = None):
        super().__init__()
        self.remote = remote
        self.haptics = haptics
        self.owner_id: Optional[str] = None
        self.active_date: Optional[str] = None
        self.loading = False

        # habit_id -> Completion для active_date
        self._completions: Dict[str, Completion] = {}

        # (habit_id, date) -> целевое состояние незавершённого переключения
        self._toggle_targets: Dict[Tuple[str, str], bool] = {}

    # ===== СОСТОЯНИЕ =====

    @property
    def completions(self) -> Tuple[Completion, ...]:
        return tuple(self._completions.values())

    def snapshot(self) -> Tuple[Completion, ...]:
        return self.completions

    def done_habit_ids(self) -> FrozenSet[str]:
        return frozenset(self._completions)

    def is_done(self, habit_id: str) -> bool:
        return habit_id in self._completions

    def is_cell_pending(self, habit_id: str, date: Optional[DateLike] = None) -> bool:
        key = normalize_date(date) if date is not None else self.active_date
        return self.is_pending((habit_id, key))

    def forget_habit(self, habit_id: str) -> None:
        """Каскад: привычка удалена, убираем её отметку из кэша"""
        if self._completions.pop(habit_id, None) is not None:
            self._notify()

    # ===== ЗАГРУЗКА =====

    async def load_for_date(self, owner_id: str, date: DateLike) -> OperationResult[Tuple[Completion, ...]]:
        """
        Загрузить отметки за день

        Запрос помечается датой. Если к приходу ответа выбрана другая дата,
        ответ отбрасывается.
        """
        try:
            key = normalize_date(date)
        except ValidationError as e:
            return OperationResult.failure(e)

        if key != self.active_date or owner_id != self.owner_id:
            # Отметки другого дня не показываем даже до ответа сервера
            self._completions = {}
            self.active_date = key
            self.owner_id = owner_id
            self._notify()

        self.loading = True
        try:
            rows = await call_remote("list_completions", self.remote.list_completions(owner_id, key))
        except TrackerError as e:
            logger.warning(f"⚠️ Не удалось загрузить отметки за {key}: {e}")
            if self.active_date == key:
                self.loading = False
            return OperationResult.failure(e)

        if self.active_date != key or self.owner_id != owner_id:
            logger.debug(f"Устаревший ответ за {key} отброшен, выбрана дата {self.active_date}")
            return OperationResult.success(tuple(rows))

        self.loading = False
        fresh = {row.habit_id: row for row in rows if row.date == key}

        # Ячейки с незавершённым переключением показывают его целевое состояние
        for (habit_id, cell_date), target in self._toggle_targets.items():
            if cell_date != key:
                continue
            if not target:
                fresh.pop(habit_id, None)
            elif habit_id not in fresh:
                fresh[habit_id] = self._completions.get(habit_id) or Completion.create_provisional(
                    owner_id, habit_id, key
                )

        self._completions = fresh
        logger.debug(f"Загружено {len(fresh)} отметок за {key}")
        self._notify()
        return OperationResult.success(self.completions)

    async def load_for_range(self, owner_id: str, start: DateLike, end: DateLike) -> OperationResult[List[Completion]]:
        """Отметки за период для статистики; набор для переключения не меняется"""
        try:
            start_key = normalize_date(start)
            end_key = normalize_date(end)
            if start_key > end_key:
                raise ValidationError(f"Начало периода {start_key} позже конца {end_key}")
            rows = await call_remote(
                "list_completions_in_range",
                self.remote.list_completions_in_range(owner_id, start_key, end_key),
            )
        except TrackerError as e:
            logger.warning(f"⚠️ Не удалось загрузить отметки за период: {e}")
            return OperationResult.failure(e)

        return OperationResult.success(list(rows))

    # ===== ПЕРЕКЛЮЧЕНИЕ =====

    def _request_haptics(self) -> None:
        if self.haptics is None:
            return
        try:
            self.haptics()
        except Exception as e:
            logger.warning(f"⚠️ Вибрация недоступна: {e}")

    def _clear_toggle(self, cell: Tuple[str, str]) -> None:
        self._clear_pending(cell)
        self._toggle_targets.pop(cell, None)

    def _revert_cell(self, habit_id: str, previous: Optional[Completion]) -> None:
        if previous is None:
            self._completions.pop(habit_id, None)
        else:
            self._completions[habit_id] = previous

    async def toggle(self, owner_id: str, habit_id: str, date: DateLike) -> OperationResult[bool]:
        """
        Переключить отметку привычки за день

        Возвращает новое состояние (True - выполнено). При ошибке сервера
        точечный откат не делается: набор за день перезагружается, так как
        "уже существует" и "уже удалено" локально не различить.
        """
        try:
            key = normalize_date(date)
            if key != self.active_date:
                raise ValidationError(f"Дата {key} не загружена, выбрана {self.active_date}")
            if owner_id != self.owner_id:
                raise AuthorizationError(
                    f"Отметки загружены для владельца {self.owner_id}, а не {owner_id}",
                    habit_id=habit_id,
                )
            cell = (habit_id, key)
            self._ensure_idle(cell)
        except TrackerError as e:
            return OperationResult.failure(e)

        previous = self._completions.get(habit_id)
        target = previous is None

        if target:
            self._completions[habit_id] = Completion.create_provisional(owner_id, habit_id, key)
        else:
            del self._completions[habit_id]

        self._mark_pending(cell, PendingOperation.TOGGLING)
        self._toggle_targets[cell] = target
        self._notify()
        self._request_haptics()

        try:
            if target:
                await call_remote("insert_completion", self.remote.insert_completion(owner_id, habit_id, key))
            else:
                await call_remote("delete_completion", self.remote.delete_completion(owner_id, habit_id, key))
        except TrackerError as e:
            logger.warning(f"⚠️ Переключение {habit_id} за {key} не удалось, перезагружаем: {e}")
            self._clear_toggle(cell)
            if self.active_date == key:
                reload = await self.load_for_date(owner_id, key)
                if not reload.ok and self.active_date == key:
                    logger.error(f"❌ Перезагрузка за {key} не удалась, откатываем отметку {habit_id}")
                    self._revert_cell(habit_id, previous)
                    self._notify()
            return OperationResult.failure(e)

        self._clear_toggle(cell)
        if self.active_date == key:
            # Загрузка дня за время запроса могла убрать оптимистичную отметку
            if not target:
                self._completions.pop(habit_id, None)
            else:
                current = self._completions.get(habit_id)
                if current is None:
                    current = Completion.create_provisional(owner_id, habit_id, key)
                self._completions[habit_id] = replace(current, provisional=False)
        self._notify()
        return OperationResult.success(target)
