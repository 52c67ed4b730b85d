# core/dates.py

"""
Навигация по датам и нормализация дат

Все сравнения дат и все запросы к хранилищу используют строку YYYY-MM-DD
в локальной таймзоне. Сравнение сырых datetime из разных таймзон даёт
ошибки "на один день".
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Tuple, Union

from habit_tracker.core.models import ValidationError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]

WEEK = "week"
MONTH = "month"
VIEW_TYPES = (WEEK, MONTH)

# datetime.weekday(): понедельник = 0, воскресенье = 6
SUNDAY = 6
MONDAY = 0

def local_today() -> date:
    """Начало сегодняшнего дня в локальной таймзоне"""
    return datetime.now().date()

def to_local_date(value: DateLike) -> date:
    """Привести значение к календарному дню в локальной таймзоне"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return to_local_date(datetime.fromisoformat(text.replace('Z', '+00:00')))
        except ValueError:
            raise ValidationError(f"Неверный формат даты: {value}")

    raise ValidationError(f"Неподдерживаемый тип даты: {type(value).__name__}")

def normalize_date(value: DateLike) -> str:
    """Каноническая строка YYYY-MM-DD в локальной таймзоне"""
    return to_local_date(value).isoformat()

def is_in_future(value: DateLike, today: Optional[date] = None) -> bool:
    return to_local_date(value) > (today or local_today())

# ===== ПЕРИОДЫ ДЛЯ СТАТИСТИКИ =====

def _check_view(view: str) -> None:
    if view not in VIEW_TYPES:
        raise ValidationError(f"view должен быть одним из: {list(VIEW_TYPES)}")

def period_range(anchor: DateLike, view: str, week_starts_on: int = SUNDAY) -> Tuple[date, date]:
    """Границы недели или месяца, содержащих anchor (включительно)"""
    _check_view(view)
    day = to_local_date(anchor)

    if view == WEEK:
        start = day - timedelta(days=(day.weekday() - week_starts_on) % 7)
        return start, start + timedelta(days=6)

    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)

def shift_period(anchor: DateLike, view: str, steps: int) -> date:
    """Сдвинуть anchor на steps недель или месяцев"""
    _check_view(view)
    day = to_local_date(anchor)

    if view == WEEK:
        return day + timedelta(weeks=steps)

    month_index = day.year * 12 + (day.month - 1) + steps
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))

def can_navigate_next(anchor: DateLike, view: str, today: Optional[date] = None,
                      week_starts_on: int = SUNDAY) -> bool:
    """Следующий период доступен, только если текущий уже закончился"""
    _, end = period_range(anchor, view, week_starts_on)
    return end < (today or local_today())

# ===== DATE CURSOR =====

class DateCursor:
    """
    Выбранная дата трекера

    Шаг в один день, будущие даты запрещены. Без I/O.
    """

    def __init__(self, selected: Optional[DateLike] = None,
                 today_provider: Optional[Callable[[], date]] = None):
        self._today_provider = today_provider or local_today
        today = self.today()

        if selected is None:
            self.selected = today
        else:
            self.selected = to_local_date(selected)
            if self.selected > today:
                logger.warning(f"⚠️ Дата {self.selected} в будущем, используем сегодня")
                self.selected = today

    def today(self) -> date:
        return self._today_provider()

    @property
    def key(self) -> str:
        """Нормализованная выбранная дата для запросов"""
        return normalize_date(self.selected)

    @staticmethod
    def normalize(value: DateLike) -> str:
        return normalize_date(value)

    def step(self, delta_days: int) -> bool:
        """Сдвинуть дату; шаг в будущее игнорируется. Возвращает True при сдвиге"""
        target = self.selected + timedelta(days=delta_days)
        if target > self.today():
            logger.debug(f"Шаг на {target} отклонён: дата в будущем")
            return False

        self.selected = target
        return True

    def go_to(self, value: DateLike) -> bool:
        target = to_local_date(value)
        if target > self.today():
            logger.debug(f"Переход на {target} отклонён: дата в будущем")
            return False

        self.selected = target
        return True

    def is_today(self) -> bool:
        return self.key == normalize_date(self.today())

    def can_step_forward(self) -> bool:
        return self.selected < self.today()

    def __repr__(self) -> str:
        return f"DateCursor(selected={self.key!r})"
