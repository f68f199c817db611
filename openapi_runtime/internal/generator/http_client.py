import asyncio
import inspect
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import aiohttp
import httpx
from aiohttp import ClientError, ClientSession, ClientTimeout, TCPConnector

from ...config import ClientConfig, DEFAULT_USER_AGENT
from ..types.models import SynthesizedRequest, Transaction

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Транспорт на базе httpx: блокирующая и асинхронная отправка"""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: Dict[str, str] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.headers: Dict[str, str] = dict(headers) if headers else {}
        self._client: Optional[httpx.Client] = None
        self._aclient: Optional[httpx.AsyncClient] = None
        self._app: Any = None
        self._app_kind: Optional[str] = None

    def mount(self, app: Any) -> "HttpxTransport":
        """Отправка запросов в WSGI/ASGI приложение внутри процесса"""
        self.close()
        self._aclient = None
        self._app = app
        self._app_kind = "asgi" if _is_asgi(app) else "wsgi"
        logger.debug(f"Mounted {self._app_kind.upper()} application {app!r}")
        return self

    def build_request(self, request: SynthesizedRequest) -> httpx.Request:
        headers = {"User-Agent": self.user_agent, **self.headers, **request.headers}
        kwargs: Dict[str, Any] = {}
        if request.form:
            kwargs["data"] = request.form
        if request.files:
            kwargs["files"] = {
                name: (_file_name(name, value), value)
                for name, value in request.files.items()
            }
        if not kwargs and request.body is not None:
            kwargs["content"] = request.body
        return httpx.Request(
            request.method,
            request.url,
            # httpx кодирует строковые заголовки как ASCII
            headers={name: value.encode("utf-8") for name, value in headers.items()},
            **kwargs,
        )

    def send(self, request: SynthesizedRequest) -> Transaction:
        """Блокирующая отправка"""
        if self._app_kind == "asgi":
            # ASGI приложение работает только внутри event loop
            with ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, self._send_isolated(request)).result()

        try:
            http_request = self.build_request(request)
            logger.debug(f"Making {request.method} request to {http_request.url}")
            response = self._sync_client().send(http_request)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning(f"Request to {request.raw_url} failed: {exc}")
            return Transaction.from_exception(request, exc)

        logger.debug(f"Response status: {response.status_code}")
        return _from_httpx(request, response)

    async def send_async(self, request: SynthesizedRequest) -> Transaction:
        """Асинхронная отправка"""
        if self._app_kind == "wsgi":
            return await asyncio.to_thread(self.send, request)
        return await self._send_with(self._async_client(), request)

    async def _send_isolated(self, request: SynthesizedRequest) -> Transaction:
        async with self._new_async_client() as client:
            return await self._send_with(client, request)

    async def _send_with(
        self, client: httpx.AsyncClient, request: SynthesizedRequest
    ) -> Transaction:
        try:
            http_request = self.build_request(request)
            logger.debug(f"Making {request.method} request to {http_request.url}")
            response = await client.send(http_request)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning(f"Request to {request.raw_url} failed: {exc}")
            return Transaction.from_exception(request, exc)

        logger.debug(f"Response status: {response.status_code}")
        return _from_httpx(request, response)

    def _sync_client(self) -> httpx.Client:
        if self._client is None:
            transport = httpx.WSGITransport(app=self._app) if self._app_kind else None
            self._client = httpx.Client(timeout=self.timeout, transport=transport)
        return self._client

    def _async_client(self) -> httpx.AsyncClient:
        if self._aclient is None:
            self._aclient = self._new_async_client()
        return self._aclient

    def _new_async_client(self) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=self._app) if self._app_kind else None
        return httpx.AsyncClient(timeout=self.timeout, transport=transport)

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self):
        self.close()
        if self._aclient is not None:
            await self._aclient.aclose()
            self._aclient = None


class ConnectionPool:
    """Пул соединений для эффективного управления ресурсами"""

    def __init__(self, max_connections: int = 100, max_connections_per_host: int = 10):
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self._connector: Optional[TCPConnector] = None

    def get_connector(self) -> TCPConnector:
        if self._connector is None or self._connector.closed:
            self._connector = TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ttl_dns_cache=30,
                use_dns_cache=True,
                keepalive_timeout=60,
                enable_cleanup_closed=True,
            )
        return self._connector

    async def close(self):
        if self._connector and not self._connector.closed:
            await self._connector.close()


class AiohttpTransport(HttpxTransport):
    """Асинхронная отправка через aiohttp с connection pooling"""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: Dict[str, str] = None,
        max_connections: int = 100,
        max_connections_per_host: int = 10,
    ):
        super().__init__(timeout, user_agent, headers)
        self._session: Optional[ClientSession] = None
        self._connection_pool = ConnectionPool(max_connections, max_connections_per_host)

    async def _ensure_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                connector=self._connection_pool.get_connector(),
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent, **self.headers},
            )
        return self._session

    async def send_async(self, request: SynthesizedRequest) -> Transaction:
        if self._app_kind is not None:
            return await super().send_async(request)

        session = await self._ensure_session()
        request_kwargs: Dict[str, Any] = {"headers": request.headers}

        if request.form or request.files:
            form_data = aiohttp.FormData()
            for field_name, value in request.form.items():
                for item in value if isinstance(value, list) else [value]:
                    form_data.add_field(field_name, item)
            for field_name, value in request.files.items():
                form_data.add_field(
                    field_name, value, filename=_file_name(field_name, value)
                )
            request_kwargs["data"] = form_data
        elif request.body is not None:
            request_kwargs["data"] = request.body

        logger.debug(f"Making {request.method} request to {request.raw_url}")
        try:
            url = str(request.url)
            async with session.request(request.method, url, **request_kwargs) as response:
                logger.debug(f"Response status: {response.status}")
                content = await response.read()
                return Transaction(
                    method=request.method,
                    url=url,
                    request=request,
                    status_code=response.status,
                    reason=response.reason or "",
                    headers=httpx.Headers(list(response.headers.items())),
                    content=content,
                )
        except (ClientError, asyncio.TimeoutError, httpx.InvalidURL, ValueError) as exc:
            logger.warning(f"Request to {request.raw_url} failed: {exc}")
            return Transaction.from_exception(request, exc)

    async def aclose(self):
        """Закрытие сессии и освобождение ресурсов"""
        await super().aclose()
        if self._session and not self._session.closed:
            await self._session.close()

        await self._connection_pool.close()


def create_transport(config: ClientConfig) -> HttpxTransport:
    transport_class = AiohttpTransport if config.transport == "aiohttp" else HttpxTransport
    return transport_class(
        timeout=config.timeout, user_agent=config.user_agent, headers=config.headers
    )


def _from_httpx(request: SynthesizedRequest, response: httpx.Response) -> Transaction:
    return Transaction(
        method=request.method,
        url=str(response.request.url),
        request=request,
        status_code=response.status_code,
        reason=response.reason_phrase,
        headers=response.headers,
        content=response.content,
    )


def _is_asgi(app: Any) -> bool:
    if inspect.isfunction(app) or inspect.ismethod(app):
        return inspect.iscoroutinefunction(app)
    return inspect.iscoroutinefunction(getattr(app, "__call__", None))


def _file_name(field_name: str, value: Any) -> str:
    name = getattr(value, "name", None)
    if isinstance(name, str) and name:
        return os.path.basename(name)
    return field_name
