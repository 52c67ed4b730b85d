"""
Ядро трекера: модели, контракт хранилища, даты и перестановка
"""

from .models import (
    PendingOperation,
    TrackerError,
    ValidationError,
    FetchError,
    NotFoundError,
    AuthorizationError,
    PendingOperationError,
    Habit,
    Completion,
    OperationResult,
    validate_text,
)

from .remote import RemoteStore, call_remote

from .dates import (
    DateCursor,
    normalize_date,
    to_local_date,
    local_today,
    period_range,
    shift_period,
    can_navigate_next,
    WEEK,
    MONTH,
)

from .reorder import move_item, move_before_target

__all__ = [
    # Models
    'PendingOperation',
    'Habit',
    'Completion',
    'OperationResult',
    'validate_text',

    # Errors
    'TrackerError',
    'ValidationError',
    'FetchError',
    'NotFoundError',
    'AuthorizationError',
    'PendingOperationError',

    # Remote store
    'RemoteStore',
    'call_remote',

    # Dates
    'DateCursor',
    'normalize_date',
    'to_local_date',
    'local_today',
    'period_range',
    'shift_period',
    'can_navigate_next',
    'WEEK',
    'MONTH',

    # Reorder
    'move_item',
    'move_before_target',
]
