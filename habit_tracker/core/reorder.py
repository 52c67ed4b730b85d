# core/reorder.py

"""Перестановка привычек: чистые функции без побочных эффектов"""

from typing import List, Sequence

from habit_tracker.core.models import ValidationError

def move_item(ids: Sequence[str], source_index: int, destination_index: int) -> List[str]:
    """
    Переместить элемент из source_index в destination_index

    Семантика splice: удаляем по source_index, затем вставляем по
    destination_index в уже укороченный список. Порядок остальных
    элементов сохраняется.
    """
    count = len(ids)
    if not 0 <= source_index < count:
        raise ValidationError(f"source_index {source_index} вне диапазона 0..{count - 1}")
    if not 0 <= destination_index < count:
        raise ValidationError(f"destination_index {destination_index} вне диапазона 0..{count - 1}")

    result = list(ids)
    item = result.pop(source_index)
    result.insert(destination_index, item)
    return result

def move_before_target(ids: Sequence[str], dragged_id: str, target_id: str) -> List[str]:
    """Drag-and-drop: перетащенный элемент занимает позицию цели"""
    try:
        source_index = list(ids).index(dragged_id)
        target_index = list(ids).index(target_id)
    except ValueError:
        raise ValidationError(f"Неизвестный id при перетаскивании: {dragged_id} -> {target_id}")

    if source_index == target_index:
        return list(ids)

    return move_item(ids, source_index, target_index)
