import logging
from typing import Dict, TYPE_CHECKING

from ...exceptions import OperationNameCollision
from ..parser.openapi import SchemaAccessor
from ..types.models import OperationDefinition
from ..types.names import operation_name
from ..utils import split_path

if TYPE_CHECKING:
    from .registry import ClientType

logger = logging.getLogger(__name__)


def generate_operations(
    client_type: "ClientType", accessor: SchemaAccessor
) -> Dict[str, OperationDefinition]:
    """Заполнение таблицы операций типа клиента по спецификации"""
    table: Dict[str, OperationDefinition] = {}

    for entry in accessor.operations():
        operation_id = entry.operation.get("operationId")
        if not operation_id:
            logger.debug(
                f"[{client_type.identity}] Skip {entry.http_method.upper()} "
                f"{entry.path} without operationId"
            )
            continue

        name = operation_name(str(operation_id))
        if name in table:
            raise OperationNameCollision(name, table[name].operation_id, operation_id)

        table[name] = OperationDefinition(
            name=name,
            operation_id=str(operation_id),
            http_method=entry.http_method,
            path=entry.path,
            path_segments=split_path(entry.path),
            parameters=entry.parameters,
            summary=entry.operation.get("summary"),
        )
        logger.debug(
            f"[{client_type.identity}] Add method {client_type.identity}.{name}()"
        )

    client_type.operations = table
    return table
