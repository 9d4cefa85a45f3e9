"""
Клиент OpenAPI: операции спецификации как методы экземпляра
"""

import functools
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import httpx

from .config import OpenApiConfig
from .exceptions import UnknownOperation
from .internal.generator.descriptor import (
    PROMISE_SUFFIX,
    ClientDescriptor,
    compile_descriptor,
)
from .internal.generator.request_builder import RequestBuilder
from .internal.transport.http_client import UserAgent
from .internal.types.models import Route, Transaction
from .internal.validator.schema import Schema

logger = logging.getLogger(__name__)

AfterBuildHook = Callable[["Client", Transaction], Any]


class Client:
    """
    Клиент, построенный из OpenAPI спецификации.

    Examples:
        client = Client("https://petstore.example.com/openapi.yaml")

        tx = client.listPets({"limit": 10})
        client.listPets({"limit": 10}, lambda client, tx: print(tx.response.code))
        tx = await client.listPets_p({"limit": 10})
        tx = client.call("list pets", {"limit": 10})
    """

    def __init__(
        self,
        specification,
        base_url: Union[str, httpx.URL, None] = None,
        app=None,
        coerce: Optional[str] = None,
        ua: Optional[UserAgent] = None,
        after_build_tx: Optional[AfterBuildHook] = None,
    ):
        self.descriptor: ClientDescriptor = compile_descriptor(
            specification, coerce=coerce, app=app
        )
        self.ua = ua or UserAgent(app=app)
        self.after_build_tx = after_build_tx
        self._builder = RequestBuilder(self.descriptor.schema, self.ua)

        self.base_url = base_url if base_url else self._default_base_url()
        if app is not None:
            # Запросы к приложению внутри процесса: только путь
            self.ua.app = app
            self.base_url = httpx.URL(path=self.base_url.path)

    @classmethod
    def from_config(cls, config: OpenApiConfig, **kwargs) -> "Client":
        if not config.url:
            raise ValueError("Specification url is not set")
        kwargs.setdefault("base_url", config.base_url)
        kwargs.setdefault("coerce", config.coerce)
        kwargs.setdefault("ua", UserAgent(timeout=config.timeout))
        return cls(config.url, **kwargs)

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    @base_url.setter
    def base_url(self, value: Union[str, httpx.URL]):
        self._base_url = value if isinstance(value, httpx.URL) else httpx.URL(value)

    def _default_base_url(self) -> httpx.URL:
        url = self.descriptor.schema.base_url
        return url if url is not None else httpx.URL("http://localhost")

    @property
    def validator(self) -> Schema:
        return self.descriptor.schema

    @property
    def routes(self) -> Mapping[str, Route]:
        return self.descriptor.routes

    @property
    def operations(self) -> List[str]:
        return sorted(self.descriptor.operations)

    def __getattr__(self, name: str):
        descriptor = self.__dict__.get("descriptor")
        if descriptor is not None:
            operation = descriptor.operations.get(name)
            if operation is not None:
                return functools.partial(operation, self)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(self.descriptor.operations))

    def call(self, operation_id: str, *args, **content):
        """Вызов операции по имени, включая имена, не являющиеся идентификаторами"""
        operation = self.descriptor.operations.get(operation_id)
        if operation is None:
            raise UnknownOperation(operation_id)
        return operation(self, *args, **content)

    async def call_p(self, operation_id: str, *args, **content) -> Transaction:
        operation = self.descriptor.operations.get(operation_id + PROMISE_SUFFIX)
        if operation is None:
            raise UnknownOperation(operation_id)
        return await operation(self, *args, **content)

    def build_tx(
        self, operation_id: str, params: Optional[Dict[str, Any]] = None, **content
    ) -> Transaction:
        """Транзакция операции без отправки"""
        route = self.descriptor.routes.get(operation_id)
        if route is None:
            raise UnknownOperation(operation_id)
        return self.build_route_tx(route, params, content)

    def build_route_tx(
        self,
        route: Route,
        params: Optional[Dict[str, Any]],
        content: Optional[Dict[str, Any]],
    ) -> Transaction:
        tx = self._builder.build(route, self.base_url, params, content)
        if self.after_build_tx is not None:
            self.after_build_tx(self, tx)
        return tx

    def close(self):
        self.ua.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
