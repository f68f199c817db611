"""Утилиты для работы со значениями параметров и шаблонами путей"""

import re
from typing import Any, Dict, List, Tuple
from urllib.parse import quote

PLACEHOLDER = re.compile(r"\{(\w+)\}")


def stringify(value: Any) -> str:
    """
    Приводит скалярное значение к строке так, как оно записывается в JSON.

    Args:
        value: Значение параметра

    Returns:
        Строковое представление для URL, заголовка или поля формы

    Examples:
        >>> stringify(True)
        'true'
        >>> stringify(None)
        ''
        >>> stringify(1.5)
        '1.5'
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def split_path(path: str) -> Tuple[str, ...]:
    """Разбивает шаблон пути на непустые сегменты"""
    return tuple(segment for segment in path.split("/") if segment)


def expand_segment(segment: str, params: Dict[str, Any]) -> str:
    """
    Подставляет значения в плейсхолдеры {name} одного сегмента пути.

    Отсутствующее значение заменяется пустой строкой, результат
    экранируется целиком, поэтому "/" в значении не создает новый сегмент.

    Examples:
        >>> expand_segment("{id}.json", {"id": 42})
        '42.json'
        >>> expand_segment("{id}", {})
        ''
    """
    expanded = PLACEHOLDER.sub(lambda m: stringify(params.get(m.group(1))), segment)
    return quote(expanded, safe="")


def expand_path(base_path: str, segments: Tuple[str, ...], params: Dict[str, Any]) -> str:
    """Собирает путь запроса из префикса и сегментов шаблона"""
    path = base_path + "".join("/" + expand_segment(s, params) for s in segments)
    return path or "/"


def query_items(name: str, value: Any) -> List[Tuple[str, str]]:
    """Пары для строки запроса; список повторяет ключ для каждого элемента"""
    if isinstance(value, (list, tuple)):
        return [(name, stringify(item)) for item in value]
    return [(name, stringify(value))]


def form_value(value: Any):
    if isinstance(value, (list, tuple)):
        return [stringify(item) for item in value]
    return stringify(value)
