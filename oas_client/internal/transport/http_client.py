import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import aiohttp
import httpx
from aiohttp import ClientError, ClientTimeout

from ...exceptions import HandshakeFailed, TransportError
from ..types.models import Request, Response, Transaction, TransactionError

logger = logging.getLogger(__name__)

Generator = Callable[[Request, Any], Request]

# Базовый адрес для запросов к приложению внутри процесса
APP_BASE_URL = "http://app.local"


def _encode_with_httpx(request: Request, **kwargs) -> Request:
    """Кодирование тела через httpx.Request с переносом Content-Type"""
    encoded = httpx.Request(request.method, str(request.url), **kwargs)
    request.body = encoded.read()
    content_type = encoded.headers.get("Content-Type")
    if content_type and request.get_header("Content-Type") is None:
        request.headers["Content-Type"] = content_type
    return request


def json_generator(request: Request, data: Any) -> Request:
    return _encode_with_httpx(request, json=data)


def form_generator(request: Request, data: Mapping[str, Any]) -> Request:
    fields = {}
    files = {}
    for name, value in data.items():
        if value is None:
            continue
        if isinstance(value, (bytes, bytearray)) or hasattr(value, "read"):
            files[name] = value
        elif isinstance(value, (list, tuple)):
            fields[name] = [str(_) for _ in value]
        else:
            fields[name] = str(value)

    if files:
        return _encode_with_httpx(request, data=fields, files=files)
    return _encode_with_httpx(request, data=fields)


def multipart_generator(request: Request, data: Mapping[str, Any]) -> Request:
    return _encode_with_httpx(request, files=dict(data))


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value).encode("utf-8")


class UserAgent:
    """HTTP транспорт: блокирующая отправка через httpx, неблокирующая через aiohttp"""

    def __init__(
        self,
        name: str = "OAS-Client (Python)",
        timeout: int = 30,
        app=None,
        content_precedence: Optional[Sequence[str]] = None,
    ):
        self.name = name
        self.timeout = int(timeout) if timeout else 30
        self._client: Optional[httpx.Client] = None
        self.app = app
        self.content_precedence = (
            list(content_precedence) if content_precedence else None
        )
        self.generators: Dict[str, Generator] = {
            "form": form_generator,
            "json": json_generator,
            "multipart": multipart_generator,
        }
        self._tasks = set()

    def add_generator(self, name: str, generator: Generator) -> "UserAgent":
        """Регистрация генератора тела запроса под именем name"""
        self.generators[name] = generator
        return self

    def content_order(self) -> List[str]:
        """Порядок выбора источника тела: body, затем генераторы по алфавиту"""
        if self.content_precedence:
            return list(self.content_precedence)
        return ["body"] + sorted(self.generators)

    def build_tx(
        self,
        method: str,
        url: httpx.URL,
        headers: Optional[Dict[str, Any]] = None,
        content: Optional[Dict[str, Any]] = None,
    ) -> Transaction:
        request = Request(method=method.upper(), url=url, headers=dict(headers or {}))
        content = content or {}

        unknown = set(content) - set(self.generators) - {"body"}
        if unknown:
            raise ValueError(f"No content generator for {', '.join(sorted(unknown))}")

        for kind in self.content_order():
            if kind not in content:
                continue
            if kind == "body":
                if content["body"] is None:
                    continue
                body = content["body"]
                if isinstance(body, (bytes, bytearray, str)):
                    request.body = _to_bytes(body)
                else:
                    request = json_generator(request, body)
            else:
                request = self.generators[kind](request, content[kind])
            break

        return Transaction(request=request)

    def start(
        self, tx: Transaction, callback: Optional[Callable[[Transaction], Any]] = None
    ) -> Optional[Transaction]:
        """Отправка транзакции, с callback неблокирующая"""
        if callback is None:
            return self._send_blocking(tx)

        task = asyncio.get_running_loop().create_task(self.start_async(tx))
        self._tasks.add(task)

        def done(finished: asyncio.Task):
            self._tasks.discard(finished)
            callback(finished.result())

        task.add_done_callback(done)
        return None

    async def start_async(self, tx: Transaction) -> Transaction:
        """Неблокирующая отправка, ошибка транспорта попадает в tx.error"""
        try:
            return await self._send_async(tx)
        except TransportError as exc:
            tx.error = TransactionError(message=exc.message, code=exc.status_code)
            return tx

    async def start_p(self, tx: Transaction) -> Transaction:
        """Неблокирующая отправка, ошибка транспорта выбрасывается"""
        tx = await self._send_async(tx)
        if tx.request.is_handshake and not tx.is_websocket:
            raise HandshakeFailed()
        return tx

    @property
    def app(self):
        return self._app

    @app.setter
    def app(self, value):
        if value is not getattr(self, "_app", None):
            self.close()
        self._app = value

    def _http(self) -> httpx.Client:
        if self._client is None:
            kwargs = {"headers": {"User-Agent": self.name}, "timeout": self.timeout}
            if self.app is not None:
                kwargs["transport"] = httpx.WSGITransport(app=self.app)
                kwargs["base_url"] = APP_BASE_URL
            self._client = httpx.Client(**kwargs)
        return self._client

    def _send_blocking(self, tx: Transaction) -> Transaction:
        request = tx.request
        logger.debug(f"Making {request.method} request to {request.url}")
        try:
            response = self._http().request(
                request.method,
                str(request.url),
                headers=request.header_items(),
                content=request.body,
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Request to {request.url} failed: {exc}")
            tx.error = TransactionError(message=str(exc))
            return tx

        logger.debug(f"Response status: {response.status_code}")
        return self._complete(
            tx,
            Response(
                code=response.status_code,
                message=response.reason_phrase,
                headers=dict(response.headers),
                body=response.content,
            ),
        )

    async def _send_async(self, tx: Transaction) -> Transaction:
        if self.app is not None:
            return await asyncio.to_thread(self._send_blocking, tx)

        request = tx.request
        logger.debug(f"Making {request.method} request to {request.url}")
        timeout = ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(
                timeout=timeout, headers={"User-Agent": self.name}
            ) as session:
                async with session.request(
                    request.method,
                    str(request.url),
                    headers=request.header_items(),
                    data=request.body,
                ) as response:
                    body = await response.read()
                    logger.debug(f"Response status: {response.status}")
                    result = Response(
                        code=response.status,
                        message=response.reason,
                        headers=dict(response.headers),
                        body=body,
                    )
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.warning(f"Request to {request.url} failed: {exc}")
            raise TransportError(str(exc) or type(exc).__name__, url=str(request.url))

        return self._complete(tx, result)

    @staticmethod
    def _complete(tx: Transaction, response: Response) -> Transaction:
        tx.response = response
        if response.code is not None and response.code >= 400:
            tx.error = TransactionError(
                message=response.message or "Error", code=response.code
            )
        return tx

    def close(self):
        """Закрытие блокирующего клиента"""
        if self._client is not None:
            self._client.close()
            self._client = None
