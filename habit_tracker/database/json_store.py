# database/json_store.py

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from habit_tracker.core.models import FetchError
from habit_tracker.database.memory_store import InMemoryRemoteStore

logger = logging.getLogger(__name__)

class JsonFileRemoteStore(InMemoryRemoteStore):
    """
    Хранилище в памяти с сохранением в JSON-файл после каждой записи

    Подходит для локальной разработки дашборда.
    """

    def __init__(self, path: Union[str, Path], session_owner: Optional[str] = None):
        super().__init__(session_owner=session_owner)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._load_from_disk()

        # Последнее состояние, успешно записанное на диск
        self._saved = self.to_dict()

    def _load_from_disk(self) -> None:
        if not self.path.exists():
            logger.info(f"📂 Файл {self.path} не найден, начинаем с пустой базы")
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Ошибка парсинга JSON {self.path}: {e}")
            self._move_corrupted()
            return

        if not isinstance(data, dict):
            logger.warning("⚠️ Неверный формат файла данных")
            self._move_corrupted()
            return

        self.load_dict(data)

    def _move_corrupted(self) -> None:
        """Поврежденный файл переносится рядом, база начинается с нуля"""
        backup_path = self.path.with_name(
            f"corrupted_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        )
        self.path.replace(backup_path)
        logger.warning(f"🔄 Поврежденный файл перемещен в {backup_path}")

    def _commit(self) -> None:
        # Атомарное сохранение через временный файл
        temp_file = self.path.with_suffix('.tmp')
        data = self.to_dict()
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            temp_file.replace(self.path)
            self._saved = data
            super()._commit()
        except OSError as e:
            logger.error(f"❌ Ошибка сохранения данных в {self.path}: {e}")
            # Изменение не сохранено, возвращаем память к состоянию файла
            self.load_dict(self._saved)
            raise FetchError(f"Не удалось сохранить данные: {e}") from e

        logger.debug(f"💾 Данные сохранены в {self.path}")
