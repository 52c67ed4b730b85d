#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Habit Tracker - Configuration
Централизованная конфигурация из переменных окружения с валидацией

Версия: 1.0.0
"""

import os
import sys
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum

from habit_tracker.core.dates import MONDAY, SUNDAY

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class StoreBackend(Enum):
    """Реализация RemoteStore для дашборда"""
    MEMORY = "memory"
    JSON = "json"

@dataclass
class StoreConfig:
    """Конфигурация хранилища"""
    backend: StoreBackend = StoreBackend.MEMORY
    data_dir: Path = Path("data")
    file_name: str = "habits.json"

    @property
    def path(self) -> Path:
        return self.data_dir / self.file_name

@dataclass
class ServerConfig:
    """Конфигурация HTTP сервера"""
    host: str = "0.0.0.0"
    port: int = 8000
    debug_mode: bool = False
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    # Сколько сессий трекера держит дашборд; самые давние вытесняются
    max_sessions: int = 100

@dataclass
class TrackerSettings:
    """Поведение трекера"""
    week_starts_on: int = SUNDAY

def _env_bool(key: str, default: str = 'false') -> bool:
    return os.getenv(key, default).lower() == 'true'

class TrackerConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self._errors: List[str] = []
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""
        self.environment = self._parse_enum(Environment, 'ENVIRONMENT', 'development')

        self.store = StoreConfig(
            backend=self._parse_enum(StoreBackend, 'STORE_BACKEND', 'memory'),
            data_dir=Path(os.getenv('DATA_DIR', 'data')),
            file_name=os.getenv('DATA_FILE', 'habits.json'),
        )

        origins = os.getenv('ALLOWED_ORIGINS', '*')
        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=self._parse_int('PORT', 8000),
            debug_mode=_env_bool('DEBUG_MODE'),
            allowed_origins=[origin.strip() for origin in origins.split(',') if origin.strip()],
            max_sessions=self._parse_int('MAX_SESSIONS', 100),
        )

        week_start = os.getenv('WEEK_STARTS_ON', 'sunday').lower()
        if week_start not in ('sunday', 'monday'):
            self._errors.append(f"WEEK_STARTS_ON должен быть sunday или monday, получено {week_start}")
        self.tracker = TrackerSettings(
            week_starts_on=MONDAY if week_start == 'monday' else SUNDAY,
        )

        # Логирование
        self.log_level = self._parse_enum(LogLevel, 'LOG_LEVEL', 'INFO')
        self.log_to_file = _env_bool('LOG_TO_FILE')
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _parse_enum(self, enum_class, key: str, default: str):
        value = os.getenv(key, default)
        try:
            return enum_class(value)
        except ValueError:
            valid_values = [e.value for e in enum_class]
            self._errors.append(f"{key} должен быть одним из: {valid_values}")
            return enum_class(default)

    def _parse_int(self, key: str, default: int) -> int:
        value = os.getenv(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            self._errors.append(f"{key} должен быть целым числом, получено {value}")
            return default

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = list(self._errors)

        if not 1 <= self.server.port <= 65535:
            errors.append(f"Порт {self.server.port} вне допустимого диапазона (1-65535)")

        if self.server.max_sessions < 1:
            errors.append(f"MAX_SESSIONS должен быть не меньше 1, получено {self.server.max_sessions}")

        if not self.server.allowed_origins:
            errors.append("ALLOWED_ORIGINS не может быть пустым")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования для dictConfig"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config: Dict[str, Any] = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"habit_tracker_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'store': {
                'backend': self.store.backend.value,
                'path': str(self.store.path),
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode,
            },
            'week_starts_on': 'monday' if self.tracker.week_starts_on == MONDAY else 'sunday',
            'log_level': self.log_level.value,
        }

_config: Optional[TrackerConfig] = None

def get_config() -> TrackerConfig:
    """Глобальный экземпляр конфигурации (создаётся при первом обращении)"""
    global _config
    if _config is None:
        _config = TrackerConfig()
    return _config

def setup_logging(config: Optional[TrackerConfig] = None) -> logging.Logger:
    """Применить конфигурацию логирования"""
    config = config or get_config()
    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(config.get_logging_config())
    return logging.getLogger('habit_tracker')

__all__ = [
    'get_config',
    'setup_logging',
    'TrackerConfig',
    'Environment',
    'LogLevel',
    'StoreBackend',
    'StoreConfig',
    'ServerConfig',
    'TrackerSettings',
]
