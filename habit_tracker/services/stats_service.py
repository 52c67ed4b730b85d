# services/stats_service.py

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from habit_tracker.core.dates import (
    DateLike,
    MONTH,
    SUNDAY,
    WEEK,
    can_navigate_next,
    local_today,
    period_range,
    shift_period,
    to_local_date,
)
from habit_tracker.core.models import Completion, Habit, OperationResult, TrackerError, ValidationError
from habit_tracker.services.completion_service import CompletionStore

logger = logging.getLogger(__name__)

NAVIGATION_STEPS = {"prev": -1, "next": 1}

# ===== МОДЕЛИ СТАТИСТИКИ =====

@dataclass
class HabitStats:
    """Количество выполнений привычки за период"""
    habit_id: str
    name: str
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"habit_id": self.habit_id, "name": self.name, "count": self.count}

@dataclass
class StatsReport:
    """Статистика за неделю или месяц"""
    view: str
    anchor: date
    start: date
    end: date
    can_navigate_next: bool
    habits: List[HabitStats] = field(default_factory=list)

    @property
    def label(self) -> str:
        if self.view == WEEK:
            return f"{self.start.strftime('%b')} {self.start.day} - {self.end.strftime('%b')} {self.end.day}"
        return self.start.strftime('%B %Y')

    @property
    def total(self) -> int:
        return sum(item.count for item in self.habits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.view,
            "label": self.label,
            "anchor": self.anchor.isoformat(),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "can_navigate_next": self.can_navigate_next,
            "total": self.total,
            "habits": [item.to_dict() for item in self.habits],
        }

def count_completions(habits: Iterable[Habit], completions: Iterable[Completion]) -> List[HabitStats]:
    """Подсчёт отметок по привычкам; отметки неизвестных привычек игнорируются"""
    counts = Counter(completion.habit_id for completion in completions)
    return [HabitStats(habit.id, habit.name, counts.get(habit.id, 0)) for habit in habits]

# ===== СЕРВИС =====

class StatsService:
    """Недельная и месячная статистика выполнения привычек"""

    def __init__(self, completion_store: CompletionStore, week_starts_on: int = SUNDAY,
                 today_provider: Optional[Callable[[], date]] = None):
        self.completion_store = completion_store
        self.week_starts_on = week_starts_on
        self._today_provider = today_provider or local_today

    def period(self, anchor: DateLike, view: str = WEEK):
        return period_range(anchor, view, self.week_starts_on)

    def navigate(self, anchor: DateLike, view: str, direction: str) -> date:
        """
        Соседний период: direction = "prev" или "next"

        Следующий период доступен, только если текущий уже закончился.
        """
        if direction not in NAVIGATION_STEPS:
            raise ValidationError(f"direction должен быть одним из: {list(NAVIGATION_STEPS)}")
        if direction == "next" and not can_navigate_next(
            anchor, view, self._today_provider(), self.week_starts_on
        ):
            raise ValidationError("Следующий период ещё не начался")
        return shift_period(anchor, view, NAVIGATION_STEPS[direction])

    async def habit_counts(self, owner_id: str, habits: Iterable[Habit], view: str = WEEK,
                           anchor: Optional[DateLike] = None) -> OperationResult[StatsReport]:
        try:
            day = to_local_date(anchor) if anchor is not None else self._today_provider()
            start, end = self.period(day, view)
        except TrackerError as e:
            return OperationResult.failure(e)

        result = await self.completion_store.load_for_range(owner_id, start, end)
        if not result.ok:
            return OperationResult.failure(result.error)

        report = StatsReport(
            view=view,
            anchor=day,
            start=start,
            end=end,
            can_navigate_next=can_navigate_next(day, view, self._today_provider(), self.week_starts_on),
            habits=count_completions(habits, result.value),
        )
        logger.debug(f"📊 Статистика {view} {start}..{end}: {report.total} отметок")
        return OperationResult.success(report)

__all__ = ['HabitStats', 'StatsReport', 'StatsService', 'count_completions', 'WEEK', 'MONTH']
