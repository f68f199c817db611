import hashlib
import json
import re
from typing import Any, Mapping

# Длинные идентификаторы заменяются md5, чтобы ограничить длину ключа
MAX_IDENTITY_LENGTH = 110

_SCHEME = re.compile(r"^\w+?://")
_NON_WORD = re.compile(r"\W", re.ASCII)


def spec_identity(locator: Any) -> str:
    """
    Детерминированный идентификатор спецификации по ее адресу.

    Схема (http://, file://) отбрасывается, остальные не-word символы
    заменяются на "_". Результат длиннее MAX_IDENTITY_LENGTH заменяется md5.

    Examples:
        >>> spec_identity("https://api.example.com/v1/spec.json")
        'api_example_com_v1_spec_json'
    """
    if isinstance(locator, Mapping):
        canonical = json.dumps(locator, sort_keys=True, default=str)
        return "inline_" + hashlib.md5(canonical.encode()).hexdigest()

    identity = _NON_WORD.sub("_", _SCHEME.sub("", str(locator)))
    if len(identity) > MAX_IDENTITY_LENGTH:
        identity = hashlib.md5(identity.encode()).hexdigest()
    if identity[:1].isdigit():
        identity = "_" + identity
    return identity or "_"


def operation_name(operation_id: str) -> str:
    """Имя метода клиента из operationId"""
    return _NON_WORD.sub("_", operation_id)
