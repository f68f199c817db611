"""Выполнение операций в блокирующем и неблокирующем режимах"""

import asyncio
import functools
import logging
from typing import Any, Callable, Mapping, Optional, TYPE_CHECKING

from ..types.models import OperationDefinition, Transaction, ValidationFailure
from .synthesizer import synthesize

if TYPE_CHECKING:
    from ...client import OpenApiClient

logger = logging.getLogger(__name__)

Callback = Callable[["OpenApiClient", Transaction], Any]


def invoke(
    client: "OpenApiClient",
    operation: OperationDefinition,
    params: Optional[Mapping[str, Any]] = None,
    callback: Optional[Callback] = None,
):
    """
    Вызов операции.

    Без callback возвращает Transaction (ответ, ошибку транспорта или
    ошибку валидации). С callback возвращает сам клиент, а callback
    вызывается из event loop после возврата управления, в том числе
    при ошибке валидации.
    """
    if callback is not None and not callable(callback):
        raise TypeError(f"callback must be callable, not {type(callback).__name__}")

    result = synthesize(
        client.base_url, operation, params or {}, client.client_type.accessor
    )

    if callback is None:
        if isinstance(result, ValidationFailure):
            return Transaction.from_validation_failure(result)
        return client.transport.send(result)

    loop = asyncio.get_running_loop()
    if isinstance(result, ValidationFailure):
        loop.call_soon(callback, client, Transaction.from_validation_failure(result))
        return client

    task = loop.create_task(client.transport.send_async(result))
    client._pending.add(task)
    task.add_done_callback(functools.partial(_complete, client, callback))
    return client


async def invoke_async(
    client: "OpenApiClient",
    operation: OperationDefinition,
    params: Optional[Mapping[str, Any]] = None,
) -> Transaction:
    """Асинхронный вызов операции с ожиданием результата"""
    result = synthesize(
        client.base_url, operation, params or {}, client.client_type.accessor
    )
    if isinstance(result, ValidationFailure):
        await asyncio.sleep(0)
        return Transaction.from_validation_failure(result)
    return await client.transport.send_async(result)


def _complete(client: "OpenApiClient", callback: Callback, task: asyncio.Task):
    client._pending.discard(task)
    if task.cancelled():
        return

    exc = task.exception()
    if exc is not None:
        task.get_loop().call_exception_handler(
            {"message": "Unhandled error while sending request", "exception": exc, "task": task}
        )
        return

    callback(client, task.result())
