"""
Исключения клиента
"""

from typing import Any, Optional


class OpenApiRuntimeError(Exception):
    """Базовое исключение пакета"""


class SpecificationError(OpenApiRuntimeError):
    """Спецификацию не удалось загрузить или она некорректна"""

    def __init__(self, message: str, locator: Any = None):
        self.message = message
        self.locator = locator
        super().__init__(f"{locator}: {message}" if locator is not None else message)


class OperationNameCollision(OpenApiRuntimeError):
    """Две операции дают одинаковое имя метода"""

    def __init__(self, name: str, first: str, second: str):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Operation name '{name}' is generated by both '{first}' and '{second}'"
        )


class UnknownOperation(OpenApiRuntimeError, AttributeError):
    """Операция не описана в спецификации"""

    def __init__(self, name: str, identity: Optional[str] = None):
        self.name = name
        self.identity = identity
        super().__init__(f"{identity or 'client'} has no operation '{name}'")
