"""
Валидатор спецификации и параметров запроса.

Ядро клиента работает с ним через узкий протокол: Schema.validate_request()
получает маршрут и accessor-функции по месту параметра и возвращает список
строк с ошибками.
"""

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

import httpx
from jsonschema import Draft4Validator
from openapi_spec_validator import (
    OpenAPIV2SpecValidator,
    OpenAPIV30SpecValidator,
    OpenAPIV31SpecValidator,
)

from ..parser.openapi import OpenApiParser, load_document
from ..types.models import ParameterSpec, ParameterValue, Route

logger = logging.getLogger(__name__)

COERCE_ALL = "booleans,numbers,strings"
COERCE_NAMES = {"booleans", "numbers", "strings"}

Accessor = Callable[[str, ParameterSpec], ParameterValue]

TRUE_VALUES = {"true", "1"}
FALSE_VALUES = {"false", "0"}
NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?([eE][-+]?\d+)?$")


def parse_coerce(coerce: Optional[str]) -> Set[str]:
    """
    Разбор опции coerce.

    Examples:
        >>> sorted(parse_coerce("numbers, booleans"))
        ['booleans', 'numbers']
    """
    if coerce is None:
        coerce = COERCE_ALL
    names = {_.strip() for _ in str(coerce).split(",") if _.strip()}
    unknown = names - COERCE_NAMES
    if unknown:
        raise ValueError(f"Unknown coerce option: {', '.join(sorted(unknown))}")
    return names


def _pointer(path: Iterable[Any]) -> str:
    return "".join(f"/{_}" for _ in path)


class Schema:
    """Проверенная спецификация и проверка запросов по ней"""

    def __init__(
        self,
        document: Dict[str, Any],
        errors: List[str],
        parser: OpenApiParser,
        coerce: Set[str],
    ):
        self.document = document
        self.errors = errors
        self.coerce = coerce
        self._parser = parser

    @property
    def is_api(self) -> bool:
        return self._parser.is_api

    def routes(self) -> Optional[List[Route]]:
        """Таблица маршрутов или None, если документ не описывает API"""
        if not self.is_api:
            return None
        return self._parser.routes()

    @property
    def base_url(self) -> Optional[httpx.URL]:
        return self._parser.base_url() if self.is_api else None

    def validate_request(
        self, route: Route, accessors: Dict[str, Accessor]
    ) -> List[str]:
        errors = []
        for param in route.parameters:
            accessor = accessors.get(param.location)
            if accessor is None:
                continue

            found = accessor(param.name, param)
            if not found.exists:
                if param.required:
                    errors.append(f"/{param.name}: Missing property.")
                continue

            errors.extend(self._validate_value(param, found.value))
        return errors

    def _validate_value(self, param: ParameterSpec, value: Any) -> List[str]:
        value_schema = param.value_schema
        if not value_schema or value_schema.get("type") == "file":
            return []

        if param.location != "body":
            if isinstance(value, list) and value_schema.get("type") != "array":
                value = value[-1] if value else None
            value = self._coerce(value, value_schema)

        validator = Draft4Validator(value_schema)
        return [
            f"/{param.name}{_pointer(error.absolute_path)}: {error.message}"
            for error in sorted(
                validator.iter_errors(value), key=lambda e: list(map(str, e.path))
            )
        ]

    def _coerce(self, value: Any, value_schema: Dict[str, Any]) -> Any:
        schema_type = value_schema.get("type")

        if isinstance(value, list):
            items = value_schema.get("items", {})
            return [self._coerce(_, items) for _ in value]

        if schema_type == "boolean" and "booleans" in self.coerce:
            if isinstance(value, str) and value.lower() in TRUE_VALUES:
                return True
            if isinstance(value, str) and value.lower() in FALSE_VALUES:
                return False

        if schema_type in ("integer", "number") and "numbers" in self.coerce:
            if isinstance(value, str) and NUMBER_RE.match(value):
                number = float(value)
                if schema_type == "integer" and number.is_integer():
                    return int(number)
                return int(value) if re.match(r"^-?\d+$", value) else number

        if schema_type == "string" and "strings" in self.coerce:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)

        return value


class JSONValidator:
    """Загрузка и проверка спецификации"""

    def __init__(self, coerce: Optional[str] = None):
        self.coerce = parse_coerce(coerce)

    def schema(self, source, app=None) -> Schema:
        document, base_uri = load_document(source, app=app)
        parser = OpenApiParser(document, base_uri)
        errors = list(self._document_errors(document, base_uri, parser.version))
        return Schema(document, errors, parser, self.coerce)

    @staticmethod
    def _document_errors(document, base_uri: str, version: Optional[int]):
        if version is None:
            validator = Draft4Validator(Draft4Validator.META_SCHEMA)
            errors = validator.iter_errors(document)
        else:
            if version == 2:
                validator_class = OpenAPIV2SpecValidator
            elif str(document.get("openapi", "")).startswith("3.1"):
                validator_class = OpenAPIV31SpecValidator
            else:
                validator_class = OpenAPIV30SpecValidator
            errors = validator_class(document, base_uri=base_uri).iter_errors()

        for error in errors:
            yield f"{_pointer(error.absolute_path) or '/'}: {error.message}"
