"""
Клиент, построенный по OpenAPI спецификации во время выполнения
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional, Set, Union

from .config import ClientConfig, configure_logging
from .exceptions import UnknownOperation
from .internal.generator.dispatcher import Callback, invoke, invoke_async
from .internal.generator.http_client import HttpxTransport, create_transport
from .internal.generator.registry import ClientType, ClientTypeRegistry
from .internal.parser.openapi import Locator
from .internal.types.models import BaseUrl, OperationDefinition, Transaction

logger = logging.getLogger(__name__)

LOCAL_HOST = "localhost"


class OperationCallable:
    """Метод клиента, привязанный к операции спецификации"""

    def __init__(self, client: "OpenApiClient", operation: OperationDefinition):
        self._client = client
        self.operation = operation
        self.__name__ = operation.name
        self.__doc__ = operation.summary

    def __call__(
        self,
        params: Optional[Mapping[str, Any]] = None,
        callback: Optional[Callback] = None,
        /,
        **kwargs: Any,
    ):
        if kwargs:
            params = {**(params or {}), **kwargs}
        return invoke(self._client, self.operation, params, callback)

    def __repr__(self):
        return (
            f"<operation {self.operation.name}: "
            f"{self.operation.http_method.upper()} {self.operation.path}>"
        )


class OpenApiClient:
    """
    Клиент для API, описанного OpenAPI спецификацией.

    Каждая операция с operationId доступна как метод:

        client = OpenApiClient("file:///path/to/api.json")
        tx = client.listPets({"limit": 10})            # блокирующий вызов
        client.listPets({"limit": 10}, callback)       # неблокирующий вызов
    """

    def __init__(
        self,
        locator: Locator,
        config: Optional[ClientConfig] = None,
        base_url: Union[str, BaseUrl, None] = None,
        **attrs: Any,
    ):
        self.config = (config or ClientConfig.from_env()).merge(**attrs)
        configure_logging(self.config.debug)

        self.client_type: ClientType = ClientTypeRegistry().resolve(
            locator, {"timeout": self.config.timeout}
        )
        self.transport: HttpxTransport = create_transport(self.config)
        self._pending: Set[asyncio.Task] = set()

        self._base_url = self.client_type.default_base_url()
        if self.config.base_url:
            self.base_url = self.config.base_url
        if base_url is not None:
            self.base_url = base_url

    @property
    def base_url(self) -> BaseUrl:
        return self._base_url

    @base_url.setter
    def base_url(self, value: Union[str, BaseUrl]):
        self._base_url = BaseUrl.parse(value) if isinstance(value, str) else value

    @property
    def operations(self) -> Mapping[str, OperationDefinition]:
        return MappingProxyType(dict(self.client_type.operations))

    def local_app(self, app: Any) -> "OpenApiClient":
        """Отправка запросов в WSGI/ASGI приложение (для тестов)"""
        self.transport.mount(app)
        self.base_url.host = LOCAL_HOST
        self.base_url.port = None
        logger.debug(f"[{self.client_type.identity}] Requests go to {app!r}")
        return self

    def call(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        callback: Optional[Callback] = None,
        /,
    ):
        return invoke(self, self._operation(name), params, callback)

    async def call_async(
        self, name: str, params: Optional[Mapping[str, Any]] = None
    ) -> Transaction:
        return await invoke_async(self, self._operation(name), params)

    def _operation(self, name: str) -> OperationDefinition:
        operation = self.client_type.operation(name)
        if operation is None:
            raise UnknownOperation(name, self.client_type.identity)
        return operation

    def __getattr__(self, name: str) -> OperationCallable:
        if name.startswith("_") or "client_type" not in self.__dict__:
            raise AttributeError(name)
        return OperationCallable(self, self._operation(name))

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self.client_type.operations))

    def close(self):
        self.transport.close()

    async def aclose(self):
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.transport.aclose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def __repr__(self):
        return f"<OpenApiClient {self.client_type.identity} {self.base_url}>"
