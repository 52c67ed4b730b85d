#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker - Dashboard Dependencies
Провайдеры зависимостей для FastAPI приложения

Версия: 1.0.0
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, Optional, Type

from fastapi import Depends, Header, HTTPException, status

from habit_tracker.config import StoreBackend, TrackerConfig, get_config
from habit_tracker.core.models import (
    AuthorizationError,
    FetchError,
    NotFoundError,
    OperationResult,
    PendingOperationError,
    TrackerError,
    ValidationError,
)
from habit_tracker.core.remote import RemoteStore
from habit_tracker.database import InMemoryRemoteStore, JsonFileRemoteStore
from habit_tracker.services.tracker import HabitTracker

logger = logging.getLogger(__name__)

# ===== ГЛОБАЛЬНЫЕ ПЕРЕМЕННЫЕ =====

# Хранилище (синглтон)
_remote_store: Optional[RemoteStore] = None

# Трекеры по владельцам, от давно использованных к недавним
_trackers: "OrderedDict[str, HabitTracker]" = OrderedDict()
_trackers_lock: Optional[asyncio.Lock] = None

_config: Optional[TrackerConfig] = None

ERROR_STATUS: Dict[Type[TrackerError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PendingOperationError: status.HTTP_409_CONFLICT,
    FetchError: status.HTTP_502_BAD_GATEWAY,
}

# ===== ИНИЦИАЛИЗАЦИЯ КОМПОНЕНТОВ =====

def init_dependencies(config: Optional[TrackerConfig] = None,
                      remote: Optional[RemoteStore] = None) -> RemoteStore:
    """Инициализация хранилища и сброс сессий трекеров"""
    global _remote_store, _config

    _config = config or get_config()
    _trackers.clear()

    if remote is not None:
        _remote_store = remote
    elif _config.store.backend == StoreBackend.JSON:
        logger.info(f"🔄 JSON хранилище: {_config.store.path}")
        _remote_store = JsonFileRemoteStore(_config.store.path)
    else:
        logger.info("🔄 Хранилище в памяти")
        _remote_store = InMemoryRemoteStore()

    return _remote_store

def reset_dependencies() -> None:
    global _remote_store, _config, _trackers_lock
    _remote_store = None
    _config = None
    _trackers_lock = None
    _trackers.clear()

def active_sessions() -> int:
    return len(_trackers)

# ===== ПРОВАЙДЕРЫ ЗАВИСИМОСТЕЙ =====

def get_remote_store() -> RemoteStore:
    if _remote_store is None:
        return init_dependencies()
    return _remote_store

async def get_owner_id(x_owner_id: Optional[str] = Header(None)) -> str:
    """Владелец из заголовка X-Owner-Id (аутентификация выполняется выше)"""
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Требуется заголовок X-Owner-Id",
        )
    return x_owner_id.strip()

async def get_tracker(owner_id: str = Depends(get_owner_id),
                      remote: RemoteStore = Depends(get_remote_store)) -> HabitTracker:
    """Трекер владельца; создаётся и загружается при первом запросе"""
    global _trackers_lock

    tracker = _trackers.get(owner_id)
    if tracker is not None:
        _trackers.move_to_end(owner_id)
        return tracker

    if _trackers_lock is None:
        _trackers_lock = asyncio.Lock()

    async with _trackers_lock:
        tracker = _trackers.get(owner_id)
        if tracker is None:
            config = _config or get_config()
            tracker = HabitTracker(remote, owner_id, week_starts_on=config.tracker.week_starts_on)
            raise_for_result(await tracker.start())
            _trackers[owner_id] = tracker
            logger.info(f"👤 Новая сессия трекера: {owner_id}")

            while len(_trackers) > config.server.max_sessions:
                evicted, _ = _trackers.popitem(last=False)
                logger.info(f"🧹 Сессия трекера {evicted} вытеснена")

    return tracker

# ===== ОШИБКИ =====

def error_status(error: TrackerError) -> int:
    for error_class, code in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR

def raise_for_result(result: OperationResult):
    """Вернуть значение результата или поднять HTTPException"""
    if result.ok:
        return result.value

    error = result.error
    detail = {"error": str(error), "error_type": type(error).__name__}
    if error.habit_id is not None:
        detail["habit_id"] = error.habit_id
    raise HTTPException(status_code=error_status(error), detail=detail)
