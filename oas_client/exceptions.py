"""
Исключения клиента
"""

from typing import List, Optional


class ClientError(Exception):
    """Базовая ошибка клиента"""


class SpecificationError(ClientError):
    """Спецификация не прошла валидацию"""

    def __init__(self, source, errors: List[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(
            f"Invalid schema: {_describe(source)} has the following errors:\n"
            + "\n".join(self.errors)
        )


class UnknownOperation(ClientError):
    """Запрошена операция, которой нет в таблице операций"""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"No such operationId: {operation_id}")


class HandshakeFailed(ClientError):
    def __init__(self, message: str = "WebSocket handshake failed"):
        super().__init__(message)


class TransportError(ClientError):
    """Ошибка отправки запроса на уровне транспорта"""

    def __init__(self, message, url, status_code: Optional[int] = None):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(f"[{status_code or '-'}] {url}: {message}")


def _describe(source) -> str:
    if isinstance(source, str):
        return source if len(source) < 80 else source[:77] + "..."
    return type(source).__name__
