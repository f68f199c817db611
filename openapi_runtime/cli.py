import argparse
import json
import sys
from typing import Any, Dict, List

from openapi_runtime.client import OpenApiClient
from openapi_runtime.config import ClientConfig
from openapi_runtime.exceptions import OpenApiRuntimeError


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    """Разбор параметров вида name=value; значение читается как JSON, если возможно"""
    params = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Параметр должен иметь вид name=value: {pair}")
        try:
            params[name] = json.loads(raw)
        except ValueError:
            params[name] = raw
    return params


def list_operations(client: OpenApiClient):
    """Вывод списка операций клиента"""
    operations = client.operations
    print(f"📋 {len(operations)} операций, базовый URL: {client.base_url}")
    for name, operation in sorted(operations.items()):
        summary = f"  {operation.summary}" if operation.summary else ""
        print(f"  {name}: {operation.http_method.upper()} {operation.path}{summary}")


def call_operation(client: OpenApiClient, name: str, params: Dict[str, Any]) -> int:
    """Вызов операции и вывод результата"""
    tx = client.call(name, params)

    if tx.status_code is None:
        print(f"❌ Ошибка запроса: {tx.error['message']}")
        return 1

    print(f"{'✅' if not tx.is_error else '❌'} {tx.method} {tx.url} [{tx.status_code}]")
    try:
        print(json.dumps(tx.json(), indent=2, ensure_ascii=False))
    except ValueError:
        print(tx.text)

    return 1 if tx.is_error else 0


def main(argv: List[str] = None) -> int:
    """Вызов операций OpenAPI спецификации из командной строки"""
    parser = argparse.ArgumentParser(description="Вызов операций OpenAPI API")
    parser.add_argument("spec", help="Путь или URL к OpenAPI спецификации")
    parser.add_argument("operation", nargs="?", help="Имя операции (operationId)")
    parser.add_argument(
        "-p", "--param", action="append", default=[], help="Параметр name=value"
    )
    parser.add_argument("--list", action="store_true", help="Показать операции")
    parser.add_argument("--base-url", type=str, help="Переопределить базовый URL")
    parser.add_argument("--config", type=str, help="Путь к openapi.toml")

    args = parser.parse_args(argv)

    config = ClientConfig.from_env()
    if args.config:
        file_config = ClientConfig.from_file(args.config)
        if file_config is None:
            print(f"❌ Не удалось прочитать конфиг {args.config}")
            return 1
        config = file_config

    try:
        params = parse_params(args.param)
        client = OpenApiClient(args.spec, config=config, base_url=args.base_url)
    except (OpenApiRuntimeError, ValueError) as e:
        print(f"❌ Ошибка: {e}")
        return 1

    with client:
        if args.list or not args.operation:
            list_operations(client)
            return 0

        if args.operation not in client.operations:
            print(f"❌ Операция {args.operation} не найдена")
            return 1

        return call_operation(client, args.operation, params)


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
