# services/habit_service.py

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from habit_tracker.core.models import (
    AuthorizationError,
    FetchError,
    Habit,
    NotFoundError,
    OperationResult,
    PendingOperation,
    TrackerError,
    ValidationError,
    validate_text,
)
from habit_tracker.core.remote import RemoteStore, call_remote
from habit_tracker.core.reorder import move_before_target, move_item
from habit_tracker.services.base import ObservableStore

logger = logging.getLogger(__name__)

class HabitListStore(ObservableStore):
    """
    Упорядоченный список привычек пользователя

    Возможности:
    - Загрузка привычек владельца из RemoteStore
    - Добавление, переименование, удаление и перестановка с оптимистичным
      применением и откатом при ошибке
    - Маркер pending на каждую привычку против пересекающихся правок
    - Подписка на снимки списка
    """

    def __init__(self, remote: RemoteStore, owner_id: Optional[str] = None):
        super().__init__()
        self.remote = remote
        self.owner_id = owner_id
        self.loading = False

        # Текст поля ввода новой привычки
        self.draft = ""

        self._habits: List[Habit] = []
        self._removal_listeners: List[Callable[[str], None]] = []
        self._load_generation = 0

    # ===== СОСТОЯНИЕ =====

    @property
    def habits(self) -> Tuple[Habit, ...]:
        return tuple(self._habits)

    def snapshot(self) -> Tuple[Habit, ...]:
        return self.habits

    @property
    def ids(self) -> List[str]:
        return [habit.id for habit in self._habits]

    def get(self, habit_id: str) -> Optional[Habit]:
        for habit in self._habits:
            if habit.id == habit_id:
                return habit
        return None

    def add_removal_listener(self, listener: Callable[[str], None]) -> None:
        """Вызывается при оптимистичном удалении привычки (каскад отметок)"""
        self._removal_listeners.append(listener)

    @staticmethod
    def _sorted(habits: Iterable[Habit]) -> List[Habit]:
        return sorted(habits, key=lambda habit: habit.sort_order)

    def _require_owner(self) -> str:
        if not self.owner_id:
            raise ValidationError("Владелец не задан, сначала загрузите привычки")
        return self.owner_id

    def _require_habit(self, habit_id: str) -> Habit:
        habit = self.get(habit_id)
        if habit is None:
            raise NotFoundError(f"Привычка {habit_id} не найдена", habit_id=habit_id)
        return habit

    def _replace_habit(self, updated: Habit) -> None:
        self._habits = [updated if habit.id == updated.id else habit for habit in self._habits]

    # ===== ЗАГРУЗКА =====

    async def load(self, owner_id: Optional[str] = None) -> OperationResult[Tuple[Habit, ...]]:
        """Загрузить привычки владельца; при ошибке состояние не меняется"""
        owner_id = owner_id or self.owner_id
        if not owner_id:
            return OperationResult.failure(ValidationError("Не указан владелец"))

        self._load_generation += 1
        generation = self._load_generation
        self.loading = True

        try:
            habits = await call_remote("list_habits", self.remote.list_habits(owner_id))
        except TrackerError as e:
            logger.warning(f"⚠️ Не удалось загрузить привычки {owner_id}: {e}")
            if generation == self._load_generation:
                self.loading = False
            return OperationResult.failure(e)

        if generation != self._load_generation:
            logger.debug(f"Устаревший ответ list_habits для {owner_id} отброшен")
            return OperationResult.success(self.habits)

        self.loading = False
        self.owner_id = owner_id
        self._habits = self._sorted(habits)
        logger.info(f"📂 Загружено {len(self._habits)} привычек для {owner_id}")
        self._notify()
        return OperationResult.success(self.habits)

    async def _force_reload(self, owner_id: str) -> None:
        result = await self.load(owner_id)
        if not result.ok:
            logger.error(f"❌ Принудительная перезагрузка не удалась: {result.error}")

    # ===== ДОБАВЛЕНИЕ =====

    async def _next_remote_sort_order(self, owner_id: str, fallback: int) -> int:
        """Следующий sort_order по текущему максимуму на сервере"""
        try:
            habits = await call_remote("list_habits", self.remote.list_habits(owner_id))
        except FetchError as e:
            logger.warning(f"⚠️ Не удалось получить max sort_order, используем {fallback}: {e}")
            return fallback

        return max((habit.sort_order for habit in habits), default=-1) + 1

    async def add(self, name: str) -> OperationResult[Habit]:
        """
        Добавить привычку

        Заготовка сразу появляется в списке, поле ввода очищается. При ошибке
        заготовка удаляется, а текст возвращается в поле ввода.
        """
        try:
            clean_name = validate_text(name, field_name="Название привычки")
            owner_id = self._require_owner()
        except ValidationError as e:
            return OperationResult.failure(e)

        provisional_order = max((habit.sort_order for habit in self._habits), default=-1) + 1
        provisional = Habit.create_provisional(clean_name, provisional_order, owner_id)

        self._habits = self._sorted(self._habits + [provisional])
        self._mark_pending(provisional.id, PendingOperation.ADDING)
        self.draft = ""
        self._notify()

        try:
            sort_order = await self._next_remote_sort_order(owner_id, provisional_order)
            confirmed = await call_remote(
                "insert_habit", self.remote.insert_habit(owner_id, clean_name, sort_order)
            )
        except TrackerError as e:
            logger.warning(f"⚠️ Откат добавления '{clean_name}': {e}")
            self._clear_pending(provisional.id)
            self._habits = [habit for habit in self._habits if habit.id != provisional.id]
            self.draft = name
            self._notify()
            return OperationResult.failure(e)

        self._clear_pending(provisional.id)
        if self.get(provisional.id) is not None:
            self._habits = self._sorted(
                confirmed if habit.id == provisional.id else habit for habit in self._habits
            )
        elif self.get(confirmed.id) is None:
            # Список перезагрузили, пока шла вставка
            self._habits = self._sorted(self._habits + [confirmed])

        logger.info(f"✅ Привычка добавлена: {confirmed.id} '{confirmed.name}'")
        self._notify()
        return OperationResult.success(confirmed)

    # ===== ПЕРЕИМЕНОВАНИЕ =====

    async def rename(self, habit_id: str, new_name: str) -> OperationResult[Habit]:
        try:
            clean_name = validate_text(new_name, field_name="Название привычки")
            owner_id = self._require_owner()
            previous = self._require_habit(habit_id)
            self._ensure_idle(habit_id)
        except TrackerError as e:
            return OperationResult.failure(e)

        if previous.name == clean_name:
            return OperationResult.success(previous)

        self._replace_habit(replace(previous, name=clean_name))
        self._mark_pending(habit_id, PendingOperation.RENAMING)
        self._notify()

        try:
            confirmed = await call_remote(
                "update_habit_name", self.remote.update_habit_name(habit_id, owner_id, clean_name)
            )
        except NotFoundError as e:
            logger.warning(f"⚠️ Привычка {habit_id} исчезла на сервере, перезагружаем список")
            self._clear_pending(habit_id)
            await self._force_reload(owner_id)
            return OperationResult.failure(e)
        except TrackerError as e:
            logger.warning(f"⚠️ Откат переименования {habit_id}: {e}")
            self._clear_pending(habit_id)
            current = self.get(habit_id)
            if current is not None:
                self._replace_habit(replace(current, name=previous.name))
            self._notify()
            return OperationResult.failure(e)

        self._clear_pending(habit_id)
        current = self.get(habit_id)
        if current is not None:
            current = replace(current, name=confirmed.name)
            self._replace_habit(current)
        self._notify()
        return OperationResult.success(current or confirmed)

    # ===== УДАЛЕНИЕ =====

    async def remove(self, habit_id: str) -> OperationResult[str]:
        """Удалить привычку; при ошибке восстанавливается весь прежний список"""
        try:
            owner_id = self._require_owner()
            self._require_habit(habit_id)
            self._ensure_idle(habit_id)
        except TrackerError as e:
            return OperationResult.failure(e)

        removed = self.get(habit_id)
        self._habits = [habit for habit in self._habits if habit.id != habit_id]
        self._mark_pending(habit_id, PendingOperation.DELETING)
        self._notify()

        for listener in list(self._removal_listeners):
            try:
                listener(habit_id)
            except Exception as e:
                logger.exception(f"❌ Ошибка каскадного удаления {habit_id}: {e}")

        try:
            await call_remote("delete_habit", self.remote.delete_habit(habit_id, owner_id))
        except NotFoundError as e:
            logger.warning(f"⚠️ Привычка {habit_id} уже удалена на сервере, перезагружаем список")
            self._clear_pending(habit_id)
            await self._force_reload(owner_id)
            return OperationResult.failure(e)
        except TrackerError as e:
            logger.warning(f"⚠️ Откат удаления {habit_id}: {e}")
            self._clear_pending(habit_id)
            # Возвращаем только удалённую привычку: остальные могли измениться за время запроса
            if self.get(habit_id) is None:
                self._habits = self._sorted(self._habits + [removed])
            self._notify()
            return OperationResult.failure(e)

        self._clear_pending(habit_id)
        logger.info(f"🗑️ Привычка удалена: {habit_id}")
        self._notify()
        return OperationResult.success(habit_id)

    # ===== ПЕРЕСТАНОВКА =====

    def _validate_permutation(self, new_ordered_ids: Sequence[str]) -> List[str]:
        ids = list(new_ordered_ids)
        current = self.ids
        if len(ids) != len(current) or len(set(ids)) != len(ids) or set(ids) != set(current):
            raise ValidationError("Новый порядок должен быть перестановкой текущих привычек")
        return ids

    def _restore_sort_orders(self, previous_orders: Dict[str, int]) -> None:
        """Откат перестановки; привычки, добавленные за время запроса, остаются"""
        restored = [
            replace(habit, sort_order=previous_orders[habit.id]) if habit.id in previous_orders else habit
            for habit in self._habits
        ]
        # Стабильная сортировка: сначала прежний порядок, потом новые привычки
        restored.sort(key=lambda habit: habit.id not in previous_orders)
        self._habits = self._sorted(restored)

    @staticmethod
    def _reorder_error(error: TrackerError, habit_id: str) -> TrackerError:
        message = f"Не удалось изменить порядок привычки {habit_id}: {error}"
        if isinstance(error, (NotFoundError, AuthorizationError)):
            return type(error)(message, habit_id=habit_id)
        return FetchError(message, habit_id=habit_id)

    async def reorder(self, new_ordered_ids: Sequence[str]) -> OperationResult[Tuple[Habit, ...]]:
        """
        Применить новый порядок привычек

        sort_order = индекс в new_ordered_ids. Обновления уходят на сервер по
        одному; первая ошибка прерывает оставшиеся и откатывает весь порядок.
        """
        try:
            owner_id = self._require_owner()
            ids = self._validate_permutation(new_ordered_ids)
            for habit_id in ids:
                self._ensure_idle(habit_id)
        except TrackerError as e:
            return OperationResult.failure(e)

        previous_orders = {habit.id: habit.sort_order for habit in self._habits}
        by_id = {habit.id: habit for habit in self._habits}
        self._habits = [replace(by_id[habit_id], sort_order=index) for index, habit_id in enumerate(ids)]
        for habit_id in ids:
            self._mark_pending(habit_id, PendingOperation.REORDERING)
        self._notify()

        for index, habit_id in enumerate(ids):
            try:
                await call_remote(
                    "update_habit_sort_order",
                    self.remote.update_habit_sort_order(habit_id, owner_id, index),
                )
            except TrackerError as e:
                error = self._reorder_error(e, habit_id)
                logger.warning(f"⚠️ Откат перестановки: {error}")
                for pending_id in ids:
                    self._clear_pending(pending_id)
                self._restore_sort_orders(previous_orders)
                self._notify()
                return OperationResult.failure(error)

        for habit_id in ids:
            self._clear_pending(habit_id)
        logger.info(f"🔀 Порядок привычек обновлён для {owner_id}")
        self._notify()
        return OperationResult.success(self.habits)

    async def move(self, source_index: int, destination_index: int) -> OperationResult[Tuple[Habit, ...]]:
        """Переместить привычку по индексам (drag-and-drop или команда)"""
        try:
            ids = move_item(self.ids, source_index, destination_index)
        except ValidationError as e:
            return OperationResult.failure(e)
        return await self.reorder(ids)

    async def drop(self, dragged_id: str, target_id: str) -> OperationResult[Tuple[Habit, ...]]:
        """Перетащенная привычка занимает место цели"""
        if dragged_id == target_id:
            return OperationResult.success(self.habits)
        try:
            ids = move_before_target(self.ids, dragged_id, target_id)
        except ValidationError as e:
            return OperationResult.failure(e)
        return await self.reorder(ids)
