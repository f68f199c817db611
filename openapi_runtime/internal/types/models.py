import json
from dataclasses import dataclass, field
from urllib.parse import quote, urlencode
from typing import Optional, Union, Literal, Any, Dict, List, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

ParameterLocation = Literal["path", "query", "header", "cookie", "formData", "body"]

# Ключи объекта параметра Swagger 2.0, которые не относятся к JSON Schema
NON_SCHEMA_KEYS = frozenset(
    ["name", "in", "required", "description", "allowEmptyValue", "collectionFormat"]
)


class ParameterSpec(BaseModel):
    """Описание параметра операции"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    location: ParameterLocation = Field(alias="in")
    required: bool = False
    fragment: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_openapi(cls, parameter: Dict[str, Any]) -> "ParameterSpec":
        """Создание из объекта параметра Swagger 2.0 / OpenAPI 3"""
        if "schema" in parameter:
            fragment = parameter["schema"]
        else:
            fragment = {k: v for k, v in parameter.items() if k not in NON_SCHEMA_KEYS}

        return cls.model_validate(
            {
                "name": parameter.get("name"),
                "in": parameter.get("in"),
                "required": parameter.get("required", False),
                "fragment": fragment,
            }
        )

    def validation_schema(self) -> Dict[str, Any]:
        """Схема объекта из одного поля для проверки значения параметра"""
        return {
            "type": "object",
            "required": [self.name] if self.required else [],
            "properties": {self.name: self.fragment},
        }


class OperationDefinition(BaseModel):
    """Неизменяемое описание операции, общее для всех вызовов"""

    model_config = ConfigDict(frozen=True)

    name: str
    operation_id: str
    http_method: str
    path: str
    path_segments: Tuple[str, ...] = ()
    parameters: Tuple[ParameterSpec, ...] = ()
    summary: Optional[str] = None


class BaseUrl(BaseModel):
    """Схема, хост и префикс пути, относительно которых строятся запросы"""

    model_config = ConfigDict(validate_assignment=True)

    scheme: str = "http"
    host: str = "localhost"
    port: Optional[int] = None
    base_path: str = ""

    @field_validator("base_path", mode="before")
    def base_path_check(cls, value):
        value = (value or "").strip()
        if not value or value == "/":
            return ""
        return "/" + value.strip("/")

    @field_validator("host", mode="before")
    def host_check(cls, value):
        return value or "localhost"

    @classmethod
    def parse(cls, url: str) -> "BaseUrl":
        """Разбор строки вида scheme://host:port/path"""
        if "://" not in url:
            url = "http://" + url.lstrip("/")
        parsed = httpx.URL(url)
        return cls(
            scheme=parsed.scheme or "http",
            host=parsed.host,
            port=parsed.port,
            base_path=parsed.path,
        )

    def clone(self) -> "BaseUrl":
        return self.model_copy(deep=True)

    @property
    def origin(self) -> str:
        port = f":{self.port}" if self.port is not None else ""
        # IPv6 адрес в URL записывается в квадратных скобках
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}{port}"

    def __str__(self):
        return self.origin + self.base_path


class SynthesizedRequest(BaseModel):
    """Готовый к отправке запрос"""

    method: str
    base_url: BaseUrl
    path: str = "/"
    query: List[Tuple[str, str]] = []
    headers: Dict[str, str] = {}
    form: Dict[str, Union[str, List[str]]] = {}
    files: Dict[str, Any] = {}
    body: Optional[Union[bytes, str]] = None

    @property
    def url(self) -> httpx.URL:
        return build_url(self.base_url, self.path, self.query)

    @property
    def raw_url(self) -> str:
        return render_url(self.base_url, self.path, self.query)


class ParameterError(BaseModel):
    """Ошибка проверки одного параметра"""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str
    path: str
    message: str

    def to_json(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}

    def __str__(self):
        return f"{self.path}: {self.message}"


class ValidationFailure(BaseModel):
    """Результат вызова с некорректными параметрами"""

    method: str
    url: str
    errors: Tuple[ParameterError, ...]
    status: int = 400

    @property
    def messages(self) -> List[str]:
        return [str(error) for error in self.errors]


@dataclass
class Transaction:
    """Пара запрос/ответ (или запрос/ошибка), возвращаемая каждым вызовом"""

    method: str
    url: str
    request: Optional[SynthesizedRequest] = None
    status_code: Optional[int] = None
    reason: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    transport_error: Optional[Dict[str, Any]] = None
    validation: Optional[ValidationFailure] = None

    @classmethod
    def from_validation_failure(cls, failure: ValidationFailure) -> "Transaction":
        content = json.dumps(
            {"errors": [error.to_json() for error in failure.errors]}
        ).encode()
        return cls(
            method=failure.method,
            url=failure.url,
            status_code=failure.status,
            reason=httpx.codes.get_reason_phrase(failure.status),
            headers=httpx.Headers({"Content-Type": "application/json"}),
            content=content,
            transport_error={"message": "Invalid input", "code": failure.status},
            validation=failure,
        )

    @classmethod
    def from_exception(
        cls, request: SynthesizedRequest, exc: BaseException
    ) -> "Transaction":
        return cls(
            method=request.method,
            url=request.raw_url,
            request=request,
            transport_error={"message": str(exc) or exc.__class__.__name__},
        )

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content) if self.content else None

    @property
    def error(self) -> Optional[Dict[str, Any]]:
        """Ошибка транзакции: транспортная, валидации или HTTP статус >= 400"""
        if self.transport_error is not None:
            return self.transport_error
        if self.status_code is not None and self.status_code >= 400:
            return {"message": self.reason, "code": self.status_code}
        return None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def __repr__(self):
        return f"<Transaction {self.method} {self.url} [{self.status_code}]>"


def build_url(
    base_url: BaseUrl, path: str, query: List[Tuple[str, str]] = None
) -> httpx.URL:
    if query:
        return httpx.URL(base_url.origin + path, params=query)
    return httpx.URL(base_url.origin + path)


def render_url(
    base_url: BaseUrl, path: str, query: List[Tuple[str, str]] = None
) -> str:
    """Строка URL без разбора httpx, для диагностики и ошибок"""
    url = base_url.origin + path
    if query:
        url += "?" + urlencode(query, quote_via=quote)
    return url
