from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from habit_tracker.dashboard.dependencies import get_tracker, raise_for_result
from habit_tracker.dashboard.schemas import HabitCreate, HabitMove, HabitOrder, HabitOut, HabitRename
from habit_tracker.services.tracker import HabitTracker

router = APIRouter(prefix="/api/habits", tags=["habits"])

def _habit_list(tracker: HabitTracker) -> List[HabitOut]:
    return [
        HabitOut.from_habit(habit, tracker.is_habit_done(habit.id), tracker.is_pending(habit.id))
        for habit in tracker.habits
    ]

@router.get("", response_model=List[HabitOut])
async def list_habits(tracker: HabitTracker = Depends(get_tracker)):
    """Привычки пользователя в порядке отображения"""
    return _habit_list(tracker)

@router.post("", response_model=HabitOut, status_code=status.HTTP_201_CREATED)
async def add_habit(payload: HabitCreate, tracker: HabitTracker = Depends(get_tracker)):
    habit = raise_for_result(await tracker.add_habit(payload.name))
    return HabitOut.from_habit(habit)

@router.put("/order", response_model=List[HabitOut])
async def reorder_habits(payload: HabitOrder, tracker: HabitTracker = Depends(get_tracker)):
    """Полная перестановка: sort_order = позиция в списке ids"""
    raise_for_result(await tracker.reorder_habits(payload.ids))
    return _habit_list(tracker)

@router.post("/move", response_model=List[HabitOut])
async def move_habit(payload: HabitMove, tracker: HabitTracker = Depends(get_tracker)):
    raise_for_result(await tracker.move_habit(payload.source_index, payload.destination_index))
    return _habit_list(tracker)

@router.patch("/{habit_id}", response_model=HabitOut)
async def rename_habit(habit_id: str, payload: HabitRename, tracker: HabitTracker = Depends(get_tracker)):
    habit = raise_for_result(await tracker.rename_habit(habit_id, payload.name))
    return HabitOut.from_habit(habit, tracker.is_habit_done(habit.id))

@router.delete("/{habit_id}", response_model=Dict[str, Any])
async def remove_habit(habit_id: str, tracker: HabitTracker = Depends(get_tracker)):
    """Удаление привычки вместе с её отметками"""
    raise_for_result(await tracker.remove_habit(habit_id))
    return {"ok": True, "habit_id": habit_id}
