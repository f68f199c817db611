"""Загрузка и проверка OpenAPI/Swagger спецификаций"""

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

import httpx
import jsonref
import yaml
from jsonschema import Draft4Validator, FormatChecker, validators
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ...exceptions import SpecificationError
from ..types.models import BaseUrl, ParameterSpec

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")
FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

Locator = Union[str, os.PathLike, Mapping[str, Any]]


def _is_file(checker, instance) -> bool:
    return isinstance(instance, (bytes, str)) or hasattr(instance, "read")


# Swagger 2.0 допускает тип "file" у параметров formData
ParameterValidator = validators.extend(
    Draft4Validator,
    type_checker=Draft4Validator.TYPE_CHECKER.redefine("file", _is_file),
)


class SchemaError(BaseModel):
    """Ошибка проверки значения по JSON Schema"""

    model_config = ConfigDict(frozen=True)

    path: str
    message: str

    def __str__(self):
        return f"{self.path}: {self.message}"


class OperationEntry(NamedTuple):
    path: str
    http_method: str
    operation: Dict[str, Any]
    parameters: Tuple[ParameterSpec, ...]


class _DocumentModel(BaseModel):
    """Минимальная структура документа, без которой клиент не построить"""

    model_config = ConfigDict(extra="allow")

    swagger: Optional[str] = None
    openapi: Optional[str] = None
    paths: Dict[str, Dict[str, Any]] = {}

    @field_validator("swagger", "openapi", mode="before")
    def version_check(cls, value):
        # "swagger: 2.0" без кавычек в YAML читается как float
        return None if value is None else str(value)

    def check_version(self):
        if self.swagger == "2.0" or (self.openapi or "").startswith("3."):
            return
        raise ValueError(
            "Document must declare 'swagger: \"2.0\"' or 'openapi: \"3.x\"'"
        )


class SchemaAccessor:
    """Доступ только на чтение к загруженной спецификации"""

    def __init__(self, document: Dict[str, Any], locator: Any = None):
        self.document = document
        self.locator = locator
        self._entries: Optional[List[OperationEntry]] = None

    @property
    def is_openapi3(self) -> bool:
        return "openapi" in self.document

    def get(self, pointer: str) -> Any:
        """Чтение значения по JSON pointer, None если его нет"""
        value: Any = self.document
        if pointer in ("", "/"):
            return value

        for token in pointer.lstrip("/").split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if isinstance(value, Mapping):
                if token not in value:
                    return None
                value = value[token]
            elif isinstance(value, list):
                if not token.isdigit() or int(token) >= len(value):
                    return None
                value = value[int(token)]
            else:
                return None
        return value

    def validate(self, instance: Any, schema: Dict[str, Any]) -> List[SchemaError]:
        """Проверка значения; пустой список означает корректное значение"""
        validator = ParameterValidator(schema, format_checker=FormatChecker())
        errors = [
            SchemaError(
                path="/" + "/".join(str(part) for part in error.absolute_path),
                message=error.message,
            )
            for error in validator.iter_errors(instance)
        ]
        return sorted(errors, key=lambda e: (e.path, e.message))

    def operations(self) -> List[OperationEntry]:
        """Все операции документа в порядке объявления"""
        if self._entries is None:
            self._entries = list(self._iter_operations())
        return self._entries

    def default_base_url(self) -> BaseUrl:
        """Базовый URL из host/basePath/schemes или servers[0]"""
        if self.is_openapi3:
            return self._server_base_url()

        schemes = self.get("/schemes") or []
        scheme = schemes[0] if schemes else "http"
        host = self.get("/host")
        base_path = self.get("/basePath") or ""
        if not host:
            return BaseUrl(scheme=scheme, base_path=base_path)
        return BaseUrl.parse(f"{scheme}://{host}{base_path}")

    def _server_base_url(self) -> BaseUrl:
        servers = self.get("/servers") or []
        if not servers:
            return BaseUrl()

        server = servers[0]
        variables = server.get("variables") or {}
        url = re.sub(
            r"\{(\w+)\}",
            lambda m: str((variables.get(m.group(1)) or {}).get("default", "")),
            server.get("url") or "/",
        )
        if url.startswith("/"):
            return BaseUrl(base_path=url)
        return BaseUrl.parse(url)

    def _iter_operations(self):
        for path, path_item in (self.get("/paths") or {}).items():
            shared = path_item.get("parameters") or []
            for http_method, operation in path_item.items():
                if http_method.lower() not in HTTP_METHODS:
                    continue
                if not isinstance(operation, Mapping):
                    raise SpecificationError(
                        f"Operation {http_method.upper()} {path} must be an object",
                        self.locator,
                    )
                parameters = self._parameters(path, http_method, shared, operation)
                yield OperationEntry(path, http_method.lower(), operation, parameters)

    def _parameters(self, path, http_method, shared, operation) -> Tuple[ParameterSpec, ...]:
        merged: Dict[Tuple[Any, Any], Dict[str, Any]] = {}
        for parameter in [*shared, *(operation.get("parameters") or [])]:
            if not isinstance(parameter, Mapping):
                raise SpecificationError(
                    f"Parameter of {http_method.upper()} {path} must be an object",
                    self.locator,
                )
            # Параметр операции перекрывает одноименный параметр пути
            merged[(parameter.get("name"), parameter.get("in"))] = parameter

        try:
            specs = [ParameterSpec.from_openapi(p) for p in merged.values()]
            specs.extend(self._request_body_parameters(operation))
        except ValidationError as exc:
            raise SpecificationError(
                f"Invalid parameter in {http_method.upper()} {path}: {exc}",
                self.locator,
            ) from exc

        return tuple(specs)

    @staticmethod
    def _request_body_parameters(operation: Dict[str, Any]) -> List[ParameterSpec]:
        request_body = operation.get("requestBody")
        if not request_body:
            return []

        content = request_body.get("content") or {}
        form_type = next((t for t in FORM_MEDIA_TYPES if t in content), None)
        if form_type and "application/json" not in content:
            schema = (content[form_type] or {}).get("schema") or {}
            required = set(schema.get("required") or [])
            return [
                ParameterSpec(
                    name=name,
                    location="formData",
                    required=name in required,
                    fragment=fragment,
                )
                for name, fragment in (schema.get("properties") or {}).items()
            ]

        media = content.get("application/json") or next(iter(content.values()), {})
        return [
            ParameterSpec(
                name="body",
                location="body",
                required=bool(request_body.get("required", False)),
                fragment=(media or {}).get("schema") or {},
            )
        ]


def load_and_validate_schema(
    locator: Locator, options: Dict[str, Any] = None
) -> SchemaAccessor:
    """
    Загружает спецификацию (JSON или YAML), разрешает $ref и проверяет структуру.

    Args:
        locator: Путь к файлу, file:// или http(s):// URL, либо готовый словарь
        options: Дополнительные настройки загрузки (timeout)

    Returns:
        SchemaAccessor над разрешенным документом

    Raises:
        SpecificationError: документ недоступен или некорректен
    """
    options = options or {}
    document, base_uri = _load_document(locator, options.get("timeout", 30))
    logger.debug(f"Loaded specification from {base_uri or 'inline document'}")

    try:
        resolved = jsonref.replace_refs(
            document, base_uri=base_uri, proxies=False, lazy_load=False
        )
    except jsonref.JsonRefError as exc:
        raise SpecificationError(f"Unresolvable $ref: {exc}", locator) from exc

    try:
        _DocumentModel.model_validate(resolved).check_version()
    except (ValidationError, ValueError) as exc:
        raise SpecificationError(f"Invalid document: {exc}", locator) from exc

    accessor = SchemaAccessor(resolved, locator)
    accessor.operations()
    return accessor


def _load_document(locator: Locator, timeout: float) -> Tuple[Dict[str, Any], str]:
    if isinstance(locator, Mapping):
        return copy.deepcopy(dict(locator)), ""

    locator = os.fspath(locator)
    if locator.startswith(("http://", "https://")):
        try:
            response = httpx.get(locator, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SpecificationError(f"Failed to fetch: {exc}", locator) from exc
        content_type = response.headers.get("content-type", "")
        return _parse(response.text, locator, content_type), locator

    path = unquote(urlparse(locator).path) if locator.startswith("file://") else locator
    path = os.path.abspath(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as exc:
        raise SpecificationError(f"Failed to read: {exc}", locator) from exc

    return _parse(text, path, ""), Path(path).as_uri()


def _parse(text: str, name: str, content_type: str) -> Dict[str, Any]:
    try:
        if name.endswith(".json") or "json" in content_type:
            document = json.loads(text)
        else:
            # YAML является надмножеством JSON
            document = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise SpecificationError(f"Failed to parse: {exc}", name) from exc

    if not isinstance(document, dict):
        raise SpecificationError("Document root must be an object", name)
    return document
