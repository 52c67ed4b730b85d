from typing import Optional

from fastapi import APIRouter, Depends, Query

from habit_tracker.dashboard.dependencies import get_tracker, raise_for_result
from habit_tracker.dashboard.schemas import DateStep, HabitOut, ToggleOut, TrackerState
from habit_tracker.services.tracker import HabitTracker

router = APIRouter(prefix="/api/tracker", tags=["tracker"])

def _state(tracker: HabitTracker) -> TrackerState:
    return TrackerState(
        date=tracker.selected_date,
        is_today=tracker.is_today(),
        can_step_forward=tracker.can_step_forward(),
        loading=tracker.loading,
        habits=[
            HabitOut.from_habit(habit, tracker.is_habit_done(habit.id), tracker.is_pending(habit.id))
            for habit in tracker.habits
        ],
    )

@router.get("", response_model=TrackerState)
async def get_tracker_state(
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    tracker: HabitTracker = Depends(get_tracker)
):
    """Отметки за выбранный день; date переключает выбранный день"""
    if date is not None and date != tracker.selected_date:
        raise_for_result(await tracker.go_to_date(date))
    return _state(tracker)

@router.post("/step", response_model=TrackerState)
async def step_date(payload: DateStep, tracker: HabitTracker = Depends(get_tracker)):
    """Шаг по дням; шаг в будущее игнорируется"""
    raise_for_result(await tracker.step_date(payload.delta_days))
    return _state(tracker)

@router.post("/refresh", response_model=TrackerState)
async def refresh(tracker: HabitTracker = Depends(get_tracker)):
    raise_for_result(await tracker.refresh())
    return _state(tracker)

@router.post("/{habit_id}/toggle", response_model=ToggleOut)
async def toggle_habit(habit_id: str, tracker: HabitTracker = Depends(get_tracker)):
    done = raise_for_result(await tracker.toggle_habit(habit_id))
    return ToggleOut(habit_id=habit_id, date=tracker.selected_date, done=done)
