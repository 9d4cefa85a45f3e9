"""
Клиент для OpenAPI v2/v3 спецификаций с валидацией параметров до отправки
"""

from .client import Client
from .config import OpenApiConfig
from .exceptions import (
    ClientError,
    HandshakeFailed,
    SpecificationError,
    TransportError,
    UnknownOperation,
)
from .internal.generator.descriptor import ClientDescriptor, compile_descriptor
from .internal.transport.http_client import UserAgent
from .internal.types.models import Route, Transaction

__all__ = [
    "Client",
    "ClientDescriptor",
    "ClientError",
    "HandshakeFailed",
    "OpenApiConfig",
    "Route",
    "SpecificationError",
    "Transaction",
    "TransportError",
    "UnknownOperation",
    "UserAgent",
    "compile_descriptor",
]
