# services/base.py

import logging
from typing import Any, Callable, Dict, Hashable, List

from habit_tracker.core.models import PendingOperation, PendingOperationError

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

class ObservableStore:
    """
    База для store с подпиской на изменения и маркерами pending

    Слушатели получают неизменяемый снимок состояния после каждого
    изменения. Маркер pending не даёт запустить вторую мутацию для той же
    сущности, пока первая не завершилась.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._pending: Dict[Hashable, PendingOperation] = {}

    def snapshot(self) -> Any:
        raise NotImplementedError

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Подписаться на изменения, возвращает функцию отписки"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.exception(f"❌ Ошибка слушателя {listener!r}: {e}")

    # ===== PENDING MARKERS =====

    def pending_operation(self, key: Hashable) -> PendingOperation:
        return self._pending.get(key, PendingOperation.NONE)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def has_pending(self) -> bool:
        return bool(self._pending)

    def _ensure_idle(self, key: Hashable) -> None:
        operation = self._pending.get(key)
        if operation is not None:
            habit_id = key[0] if isinstance(key, tuple) else key
            raise PendingOperationError(
                f"Операция {operation.value} для {habit_id} ещё выполняется",
                habit_id=habit_id,
                operation=operation,
            )

    def _mark_pending(self, key: Hashable, operation: PendingOperation) -> None:
        self._pending[key] = operation

    def _clear_pending(self, key: Hashable) -> None:
        self._pending.pop(key, None)
