"""Генерация функций операций: блокирующий, callback и promise вызовы"""

import asyncio
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from ...exceptions import ClientError, HandshakeFailed
from ..types.models import Route, Transaction

if TYPE_CHECKING:
    from ...client import Client


def split_arguments(
    args: Tuple[Any, ...]
) -> Tuple[Optional[Dict[str, Any]], Optional[Callable]]:
    """Разбор позиционных аргументов: (params?, callback?)"""
    args = list(args)
    callback = args.pop() if args and callable(args[-1]) else None

    if len(args) > 1:
        raise TypeError(f"Expected at most one params mapping, got {len(args)}")

    params = args[0] if args else None
    if params is not None and not isinstance(params, dict):
        raise TypeError(f"params must be a dict, not {type(params).__name__}")
    return params, callback


def generate_method(route: Route) -> Callable:
    """Функция операции с блокирующим и callback вызовом"""

    def operation(client: "Client", *args, **content):
        params, callback = split_arguments(args)
        tx = client.build_route_tx(route, params, content)

        if tx.error:
            if callback is None:
                return tx
            # Ошибку валидации отдаем на следующем тике, как и ответ транспорта
            asyncio.get_running_loop().call_soon(callback, client, tx)
            return client

        if callback is None:
            return client.ua.start(tx)

        client.ua.start(tx, lambda completed: callback(client, completed))
        return client

    operation.__name__ = route.operation_id or "operation"
    operation.route = route
    return operation


def generate_method_p(route: Route) -> Callable:
    """Функция операции, возвращающая корутину"""

    async def operation_p(client: "Client", *args, **content) -> Transaction:
        params, _ = split_arguments(args)
        tx = client.build_route_tx(route, params, content)

        error = tx.error
        if not error:
            return await client.ua.start_p(tx)
        if error.code is None:
            raise ClientError(error.message)
        if tx.request.is_handshake and not tx.is_websocket:
            raise HandshakeFailed()
        return tx

    operation_p.__name__ = f"{route.operation_id or 'operation'}_p"
    operation_p.route = route
    return operation_p
