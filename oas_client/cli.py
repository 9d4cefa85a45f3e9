import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import httpx

from oas_client.client import Client
from oas_client.config import OpenApiConfig, configure_logging
from oas_client.exceptions import ClientError


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    """
    Разбор --param name=value, повторное имя собирает список

    Examples:
        >>> parse_params(["id=1", "tag=a", "tag=b"])
        {'id': '1', 'tag': ['a', 'b']}
    """
    params: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Parameter must look like name=value: {pair}")
        name, value = pair.split("=", 1)
        if name in params:
            if not isinstance(params[name], list):
                params[name] = [params[name]]
            params[name].append(value)
        else:
            params[name] = value
    return params


def list_operations(client: Client) -> None:
    """Вывод операций спецификации"""
    for operation_id, route in sorted(client.routes.items()):
        print(f"{operation_id}\t{route.method.upper()} {route.path}")


def run_operation(client: Client, args) -> int:
    params = parse_params(args.param or [])
    content = {}
    if args.body is not None:
        content["json"] = json.loads(args.body)

    tx = client.call(args.operation, params, **content)

    print(f"{tx.request.method} {tx.request.url}")
    print(f"{tx.response.code} {tx.response.message or ''}".strip())
    if tx.response.body:
        print(tx.response.text)

    if tx.error:
        print(f"❌ {tx.error.message}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Вызов операций OpenAPI спецификации")
    parser.add_argument("operation", nargs="?", help="operationId для вызова")
    parser.add_argument("--url", type=str, help="Путь или URL к OpenAPI спецификации")
    parser.add_argument("--base-url", type=str, help="Адрес сервера вместо указанного в спецификации")
    parser.add_argument("--coerce", type=str, help="booleans,numbers,strings")
    parser.add_argument("-p", "--param", action="append", help="Параметр name=value")
    parser.add_argument("--body", type=str, help="JSON тело запроса")
    parser.add_argument("--list", action="store_true", help="Показать операции")
    parser.add_argument(
        "--init-config", action="store_true", help="Создать конфиг файл openapi.toml"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Точка входа oas-client"""
    configure_logging()
    args = build_parser().parse_args(argv)

    if args.init_config:
        config = OpenApiConfig().merge_with_args(args)
        config.save_to_file()
        print("✅ Создан конфиг файл openapi.toml")
        return 0

    file_config = OpenApiConfig.from_file()
    config = file_config.merge_with_args(args) if file_config else OpenApiConfig().merge_with_args(args)

    if not config.url:
        print("❌ Ошибка: Укажите --url или создайте конфиг с --init-config", file=sys.stderr)
        return 1

    try:
        with Client.from_config(config) as client:
            if args.list or not args.operation:
                list_operations(client)
                return 0
            return run_operation(client, args)
    except (ClientError, ValueError, OSError, httpx.HTTPError) as exc:
        print(f"❌ Ошибка: {exc}", file=sys.stderr)
        return 1


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
