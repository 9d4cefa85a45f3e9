import hashlib
import json
import logging
import re
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from simple_singleton import Singleton

from ...exceptions import SpecificationError
from ..types.models import Route
from ..validator.schema import JSONValidator, Schema
from .dispatcher import generate_method, generate_method_p

logger = logging.getLogger(__name__)

# Длиннее идентификатор заменяется md5 суммой
MAX_IDENTITY_LENGTH = 110

PROMISE_SUFFIX = "_p"


def specification_identity(source) -> str:
    """
    Идентификатор спецификации для кэша описаний.

    Examples:
        >>> specification_identity("https://api.example.com/v1/openapi.json")
        'api_example_com_v1_openapi_json'
    """
    if isinstance(source, str):
        identity = source
    else:
        identity = json.dumps(source, sort_keys=True, default=str)

    identity = re.sub(r"^\w+?://", "", identity)
    identity = re.sub(r"\W", "_", identity)
    if len(identity) > MAX_IDENTITY_LENGTH:
        identity = hashlib.md5(identity.encode("utf-8")).hexdigest()
    return identity


@dataclass(frozen=True)
class ClientDescriptor:
    """Скомпилированная таблица операций одной спецификации"""

    identity: str
    schema: Schema
    routes: Mapping[str, Route]
    operations: Mapping[str, Callable]


class DescriptorRegistry(metaclass=Singleton):
    """Кэш описаний на время жизни процесса"""

    def __init__(self) -> None:
        self._descriptors: Dict[str, ClientDescriptor] = {}
        self._lock = threading.Lock()

    def get(self, identity: str) -> Optional[ClientDescriptor]:
        return self._descriptors.get(identity)

    def add(self, descriptor: ClientDescriptor) -> ClientDescriptor:
        """Сохранение описания, при гонке остается первое сохраненное"""
        with self._lock:
            return self._descriptors.setdefault(descriptor.identity, descriptor)

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()

    def __contains__(self, identity: str) -> bool:
        return identity in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


class ClientDescriptorCompiler:
    def __init__(
        self,
        coerce: Optional[str] = None,
        app=None,
        registry: Optional[DescriptorRegistry] = None,
    ):
        self.validator = JSONValidator(coerce)
        self.app = app
        self.registry = registry or DescriptorRegistry()

    def compile(self, source) -> ClientDescriptor:
        identity = specification_identity(source)
        cached = self.registry.get(identity)
        if cached is not None:
            return cached

        schema = self.validator.schema(source, app=self.app)
        if schema.errors:
            raise SpecificationError(source, schema.errors)

        routes: Dict[str, Route] = {}
        operations: Dict[str, Callable] = {}
        for route in schema.routes() or []:
            if not route.operation_id:
                continue
            logger.debug(
                f"[{identity}] Add method {route.operation_id}() "
                f"for {route.method} {route.path}"
            )
            routes[route.operation_id] = route
            operations[route.operation_id] = generate_method(route)
            operations[route.operation_id + PROMISE_SUFFIX] = generate_method_p(route)

        descriptor = ClientDescriptor(
            identity=identity,
            schema=schema,
            routes=MappingProxyType(routes),
            operations=MappingProxyType(operations),
        )
        return self.registry.add(descriptor)


def compile_descriptor(source, coerce: Optional[str] = None, app=None) -> ClientDescriptor:
    """Описание клиента для спецификации, из кэша если уже собрано"""
    return ClientDescriptorCompiler(coerce=coerce, app=app).compile(source)
