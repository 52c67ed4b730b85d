from typing import Optional

from fastapi import APIRouter, Depends, Query

from habit_tracker.dashboard.dependencies import get_tracker, raise_for_result
from habit_tracker.dashboard.schemas import StatsOut
from habit_tracker.services.tracker import HabitTracker

router = APIRouter(prefix="/api/stats", tags=["statistics"])

@router.get("", response_model=StatsOut)
async def get_stats(
    view: str = Query("week", pattern="^(week|month)$"),
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    direction: Optional[str] = Query(None, pattern="^(prev|next)$"),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Количество выполнений каждой привычки за неделю или месяц,
    содержащие date (по умолчанию выбранный день трекера).
    direction=prev|next открывает соседний период; next доступен
    только для уже закончившегося периода.
    """
    report = raise_for_result(await tracker.stats(view, date, direction))
    return StatsOut.from_report(report)
