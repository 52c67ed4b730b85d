from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from habit_tracker.core.models import Habit
from habit_tracker.services.stats_service import StatsReport

# ===== ЗАПРОСЫ =====

class HabitCreate(BaseModel):
    name: str = Field(..., max_length=200)

class HabitRename(BaseModel):
    name: str = Field(..., max_length=200)

class HabitOrder(BaseModel):
    ids: List[str]

class HabitMove(BaseModel):
    source_index: int = Field(..., ge=0)
    destination_index: int = Field(..., ge=0)

class DateStep(BaseModel):
    delta_days: int = Field(..., ge=-366, le=366)

# ===== ОТВЕТЫ =====

class HabitOut(BaseModel):
    id: str
    name: str
    sort_order: int
    provisional: bool = False
    done: bool = False
    pending: bool = False

    @classmethod
    def from_habit(cls, habit: Habit, done: bool = False, pending: bool = False) -> "HabitOut":
        return cls(
            id=habit.id,
            name=habit.name,
            sort_order=habit.sort_order,
            provisional=habit.provisional,
            done=done,
            pending=pending,
        )

class TrackerState(BaseModel):
    date: str
    is_today: bool
    can_step_forward: bool
    loading: bool = False
    habits: List[HabitOut] = Field(default_factory=list)

class ToggleOut(BaseModel):
    habit_id: str
    date: str
    done: bool

class HabitStatsOut(BaseModel):
    habit_id: str
    name: str
    count: int

class StatsOut(BaseModel):
    view: str
    label: str
    start: str
    end: str
    can_navigate_next: bool
    total: int
    habits: List[HabitStatsOut] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: StatsReport) -> "StatsOut":
        data = report.to_dict()
        data.pop("anchor")
        return cls(**data)

class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    data: Optional[Dict[str, Any]] = None
