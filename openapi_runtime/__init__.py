"""Клиент для OpenAPI/Swagger API, генерируемый во время выполнения"""

from .client import OpenApiClient, OperationCallable
from .config import ClientConfig
from .exceptions import (
    OpenApiRuntimeError,
    OperationNameCollision,
    SpecificationError,
    UnknownOperation,
)
from .internal.generator.registry import ClientType, ClientTypeRegistry
from .internal.types.models import BaseUrl, Transaction

__version__ = "0.1.0"

__all__ = [
    "OpenApiClient",
    "OperationCallable",
    "ClientConfig",
    "ClientType",
    "ClientTypeRegistry",
    "BaseUrl",
    "Transaction",
    "OpenApiRuntimeError",
    "OperationNameCollision",
    "SpecificationError",
    "UnknownOperation",
]
