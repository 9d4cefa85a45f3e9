import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

Location = Literal["path", "query", "header", "formData", "body"]

HeaderValue = Union[str, List[str]]


@dataclass
class ParameterValue:
    """Ответ accessor-функции валидатору: значение и признак наличия"""

    exists: bool
    value: Any = None


class ParameterSpec(BaseModel):
    """Описание параметра операции из OpenAPI"""

    model_config = ConfigDict(frozen=True)

    name: str
    location: Location
    type: Optional[str] = None
    collection_format: Optional[str] = None
    required: bool = False

    # JSON Schema значения параметра, $ref разрешаются валидатором
    value_schema: Dict[str, Any] = Field(default_factory=dict)


class Route(BaseModel):
    """Скомпилированная операция: метод, шаблон пути и параметры"""

    model_config = ConfigDict(frozen=True)

    operation_id: Optional[str] = None
    method: str
    path: str
    parameters: Tuple[ParameterSpec, ...] = ()

    @field_validator("method", mode="before")
    def method_check(cls, value):
        return str(value).lower()

    @field_validator("parameters", mode="before")
    def parameters_check(cls, value):
        return tuple(value or ())


class Request(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str
    url: httpx.URL
    headers: Dict[str, HeaderValue] = {}
    body: Optional[bytes] = None
    env: Dict[str, Any] = {}

    @field_validator("url", mode="before")
    def url_check(cls, value):
        return value if isinstance(value, httpx.URL) else httpx.URL(str(value))

    def header_items(self) -> List[Tuple[str, str]]:
        """Заголовки в виде пар, список значений дает несколько строк"""
        items = []
        for name, value in self.headers.items():
            if isinstance(value, (list, tuple)):
                items.extend((name, str(_)) for _ in value)
            elif value is not None:
                items.append((name, str(value)))
        return items

    def get_header(self, name: str) -> Optional[str]:
        for key, value in self.header_items():
            if key.lower() == name.lower():
                return value
        return None

    @property
    def is_handshake(self) -> bool:
        return (self.get_header("Upgrade") or "").lower() == "websocket"


class Response(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None
    headers: Dict[str, str] = {}
    body: bytes = b""

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class TransactionError(BaseModel):
    message: str
    code: Optional[int] = None


class Transaction(BaseModel):
    """Запрос, ответ и ошибка одного вызова операции"""

    request: Request
    response: Response = Field(default_factory=Response)
    error: Optional[TransactionError] = None

    @property
    def is_websocket(self) -> bool:
        return self.response.code == 101
