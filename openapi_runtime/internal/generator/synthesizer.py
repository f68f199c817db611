"""Построение HTTP запроса из описания операции и параметров вызова"""

import json
import logging
from typing import Any, Dict, List, Mapping, Union

from ..parser.openapi import SchemaAccessor
from ..types.models import (
    BaseUrl,
    OperationDefinition,
    ParameterError,
    SynthesizedRequest,
    ValidationFailure,
    render_url,
)
from ..utils import expand_path, form_value, query_items, stringify

logger = logging.getLogger(__name__)

SynthesisResult = Union[SynthesizedRequest, ValidationFailure]


def synthesize(
    base_url: BaseUrl,
    operation: OperationDefinition,
    params: Mapping[str, Any],
    validator: SchemaAccessor,
) -> SynthesisResult:
    """
    Проверяет параметры и собирает запрос.

    Каждый параметр проверяется отдельно, ошибки всех параметров
    собираются вместе. Для некорректного ввода возвращается
    ValidationFailure, исключения не выбрасываются.

    Args:
        base_url: Базовый URL клиента (не изменяется)
        operation: Описание операции
        params: Значения параметров вызова
        validator: Источник проверки по JSON Schema

    Returns:
        SynthesizedRequest или ValidationFailure
    """
    params = params or {}
    url = base_url.clone()
    path = expand_path(url.base_path, operation.path_segments, params)

    query: List[tuple] = []
    headers: Dict[str, str] = {}
    cookies: List[str] = []
    form: Dict[str, Any] = {}
    files: Dict[str, Any] = {}
    body = None
    errors: List[ParameterError] = []

    for parameter in operation.parameters:
        name = parameter.name
        value = params.get(name)

        if value is not None or parameter.required:
            instance = {} if value is None else {name: value}
            schema_errors = validator.validate(instance, parameter.validation_schema())
            if schema_errors:
                logger.debug(
                    f"Invalid '{name}' in '{parameter.location}': "
                    + " ".join(map(str, schema_errors))
                )
                errors.extend(
                    ParameterError(
                        name=name,
                        location=parameter.location,
                        # Ошибка корня объекта (отсутствует поле) относится к параметру
                        path=f"/{name}" if e.path == "/" else e.path,
                        message=e.message,
                    )
                    for e in schema_errors
                )
                continue

        if value is None:
            continue

        if parameter.location == "query":
            query.extend(query_items(name, value))
        elif parameter.location == "header":
            headers[name] = stringify(value)
        elif parameter.location == "cookie":
            cookies.append(f"{name}={stringify(value)}")
        elif parameter.location == "formData" and parameter.fragment.get("type") == "file":
            files[name] = value
        elif parameter.location == "formData":
            form[name] = form_value(value)
        elif parameter.location == "body":
            body = _encode_body(value)
            if isinstance(value, (dict, list, tuple)):
                headers.setdefault("Content-Type", "application/json")

    if cookies:
        headers["Cookie"] = "; ".join(cookies)

    full_url = render_url(url, path, query)
    logger.debug(
        f"Input validation for '{full_url}': "
        + (" ".join(map(str, errors)) if errors else "Success")
    )

    if errors:
        return ValidationFailure(
            method=operation.http_method.upper(),
            url=full_url,
            errors=tuple(errors),
        )

    return SynthesizedRequest(
        method=operation.http_method.upper(),
        base_url=url,
        path=path,
        query=query,
        headers=headers,
        form=form,
        files=files,
        body=body,
    )


def _encode_body(value: Any) -> Union[str, bytes]:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    if isinstance(value, (str, bytes)):
        return value
    return stringify(value)
