import logging
import threading
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from simple_singleton import Singleton

from ..parser.openapi import Locator, SchemaAccessor, load_and_validate_schema
from ..types.models import BaseUrl, OperationDefinition
from ..types.names import spec_identity
from .operations import generate_operations

logger = logging.getLogger(__name__)


class ClientType:
    """Сгенерированный по спецификации тип клиента: схема и таблица операций"""

    def __init__(self, identity: str, accessor: SchemaAccessor):
        self.identity = identity
        self.accessor = accessor
        self.operations: Mapping[str, OperationDefinition] = {}

    def default_base_url(self) -> BaseUrl:
        return self.accessor.default_base_url()

    def operation(self, name: str) -> Optional[OperationDefinition]:
        return self.operations.get(name)

    def __repr__(self):
        return f"<ClientType {self.identity} ({len(self.operations)} operations)>"


class ClientTypeRegistry(metaclass=Singleton):
    """
    Процессный кеш типов клиентов по идентификатору спецификации.

    Записи никогда не удаляются: повторная загрузка той же спецификации
    возвращает уже построенный тип без повторного разбора.
    """

    def __init__(self):
        self._types: Dict[str, ClientType] = {}
        self._lock = threading.Lock()

    def resolve(self, locator: Locator, options: Dict[str, Any] = None) -> ClientType:
        identity = spec_identity(locator)
        client_type = self._types.get(identity)
        if client_type is not None:
            return client_type

        with self._lock:
            client_type = self._types.get(identity)
            if client_type is not None:
                return client_type

            accessor = load_and_validate_schema(locator, options)
            client_type = ClientType(identity, accessor)
            operations = generate_operations(client_type, accessor)
            client_type.operations = MappingProxyType(operations)
            self._types[identity] = client_type

        logger.debug(f"Registered {client_type!r}")
        return client_type

    def get(self, identity: str) -> Optional[ClientType]:
        return self._types.get(identity)

    def identities(self) -> Iterator[str]:
        return iter(list(self._types))

    def __contains__(self, identity: str) -> bool:
        return identity in self._types

    def __len__(self):
        return len(self._types)


def resolve(locator: Locator, options: Dict[str, Any] = None) -> ClientType:
    return ClientTypeRegistry().resolve(locator, options)
