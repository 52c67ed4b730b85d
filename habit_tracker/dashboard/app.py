#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker - FastAPI Application
HTTP интерфейс к трекеру привычек: список, отметки по дням, статистика

Версия: 1.0.0
"""

import time
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from habit_tracker import __version__
from habit_tracker.config import TrackerConfig, get_config, setup_logging
from habit_tracker.core.models import TrackerError
from habit_tracker.core.remote import RemoteStore
from habit_tracker.dashboard import dependencies
from habit_tracker.dashboard.api import habits, stats, tracker
from habit_tracker.dashboard.schemas import HealthCheck

logger = logging.getLogger(__name__)

def create_app(config: Optional[TrackerConfig] = None, remote: Optional[RemoteStore] = None) -> FastAPI:
    """Фабрика для создания приложения"""
    config = config or get_config()
    app_start_time = time.time()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управление жизненным циклом приложения"""
        logger.info("🚀 Запуск Habit Tracker Dashboard...")
        dependencies.init_dependencies(config, remote)
        logger.info(f"⚙️ Конфигурация: {config.to_dict()}")
        logger.info(f"🌐 Dashboard доступен на: http://{config.server.host}:{config.server.port}")

        yield

        logger.info("🛑 Остановка Dashboard...")
        dependencies.reset_dependencies()

    app = FastAPI(
        title="Habit Tracker",
        description="Личный трекер привычек с оптимистичными обновлениями",
        version=__version__,
        docs_url="/api/docs" if config.server.debug_mode else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if config.server.debug_mode else None,
        lifespan=lifespan
    )

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Логирование запросов и времени обработки"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = str(process_time)
        return response

    # ===== ОБРАБОТЧИКИ ОШИБОК =====

    @app.exception_handler(TrackerError)
    async def tracker_error_handler(request: Request, exc: TrackerError):
        return JSONResponse(
            status_code=dependencies.error_status(exc),
            content={
                "detail": {"error": str(exc), "error_type": type(exc).__name__},
            }
        )

    # ===== РОУТЕРЫ =====

    app.include_router(habits.router)
    app.include_router(tracker.router)
    app.include_router(stats.router)

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        """Health check для мониторинга"""
        store = dependencies.get_remote_store()
        store_stats = getattr(store, "stats", None)

        return HealthCheck(
            status="healthy",
            service="habit-tracker",
            version=__version__,
            timestamp=time.time(),
            data={
                "store": type(store).__name__,
                "store_stats": store_stats.to_dict() if store_stats is not None else None,
                "sessions": dependencies.active_sessions(),
                "uptime_seconds": time.time() - app_start_time,
            }
        )

    return app

def run_dashboard(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False):
    """Запуск дашборда"""
    config = get_config()
    setup_logging(config)

    host = host or config.server.host
    port = port or config.server.port

    logger.info(f"🌐 Запуск Dashboard на http://{host}:{port}")
    logger.info(f"📊 Хранилище: {config.store.backend.value}")

    try:
        uvicorn.run(
            "habit_tracker.dashboard.app:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level="debug" if config.server.debug_mode else "info",
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("👋 Dashboard остановлен")

def main():
    import argparse

    parser = argparse.ArgumentParser(description='Запуск Habit Tracker Dashboard')
    parser.add_argument('--host', default=None, help='Host для запуска')
    parser.add_argument('--port', type=int, default=None, help='Port для запуска')
    parser.add_argument('--reload', action='store_true', help='Автоперезагрузка')

    args = parser.parse_args()
    run_dashboard(host=args.host, port=args.port, reload=args.reload)

if __name__ == "__main__":
    main()
