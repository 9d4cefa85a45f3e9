import copy
import json
import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx
import jsonref
import yaml

from ..types.models import ParameterSpec, Route

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

FORM_MEDIA_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Ключи параметра v2, которые не входят в JSON Schema значения
NON_SCHEMA_KEYS = {
    "name",
    "in",
    "required",
    "description",
    "allowEmptyValue",
    "collectionFormat",
}

V3_STYLE_FORMATS = {
    "form": "csv",
    "simple": "csv",
    "spaceDelimited": "ssv",
    "pipeDelimited": "pipes",
}


def load_document(source, app=None) -> Tuple[Dict[str, Any], str]:
    """
    Загрузка документа спецификации.

    Возвращает документ и base_uri для разрешения внешних ссылок.
    Принимает словарь, http(s) URL, file:// URL, путь к файлу или текст JSON/YAML.
    """
    if isinstance(source, Mapping):
        return copy.deepcopy(dict(source)), ""

    source = str(source)

    if source.startswith(("http://", "https://")):
        logger.debug(f"Fetching specification from {source}")
        if app is not None:
            transport = httpx.WSGITransport(app=app)
            with httpx.Client(transport=transport) as client:
                response = client.get(source)
        else:
            response = httpx.get(source, follow_redirects=True)
        response.raise_for_status()
        return _parse_text(response.text), source

    path = source[len("file://") :] if source.startswith("file://") else source
    if "\n" not in path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        return _parse_text(text), "file://" + os.path.abspath(path)

    if source.lstrip().startswith(("{", "[")) or "\n" in source:
        return _parse_text(source), ""

    raise FileNotFoundError(f"Specification not found: {source}")


def _string_keys(value: Any) -> Any:
    """Ключи отображений YAML как строки, код ответа 200 становится '200'"""
    if isinstance(value, dict):
        return {str(key): _string_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_string_keys(_) for _ in value]
    return value


def _parse_text(text: str) -> Dict[str, Any]:
    if text.lstrip().startswith("{"):
        document = json.loads(text)
    else:
        document = _string_keys(yaml.safe_load(text))

    if not isinstance(document, dict):
        raise ValueError("Specification document must be a mapping")
    return document


class OpenApiParser:
    """Разбор OpenAPI v2/v3 документа в таблицу маршрутов"""

    def __init__(self, document: Dict[str, Any], base_uri: str = ""):
        self.document = document
        self.base_uri = base_uri
        self._resolved: Optional[Dict[str, Any]] = None

    @property
    def version(self) -> Optional[int]:
        if "swagger" in self.document:
            return 2
        if "openapi" in self.document:
            return 3
        return None

    @property
    def is_api(self) -> bool:
        return self.version is not None

    @property
    def resolved(self) -> Dict[str, Any]:
        """Документ с разрешенными $ref"""
        if self._resolved is None:
            self._resolved = jsonref.replace_refs(
                self.document,
                base_uri=self.base_uri,
                proxies=False,
                lazy_load=False,
            )
        return self._resolved

    def routes(self) -> List[Route]:
        routes = []
        for path, path_spec in self.resolved.get("paths", {}).items():
            if not isinstance(path_spec, dict):
                continue
            common = path_spec.get("parameters", [])
            for method, method_spec in path_spec.items():
                if method not in HTTP_METHODS or not isinstance(method_spec, dict):
                    continue
                routes.append(
                    Route(
                        operation_id=method_spec.get("operationId"),
                        method=method,
                        path=path,
                        parameters=self._parameters(common, method_spec),
                    )
                )
        return routes

    def base_url(self) -> httpx.URL:
        """URL сервера по умолчанию из спецификации"""
        if self.version == 2:
            schemes = self.document.get("schemes") or ["http"]
            host = self.document.get("host") or "localhost"
            base_path = self.document.get("basePath", "")
            return httpx.URL(f"{schemes[0]}://{host}{base_path}")

        servers = self.document.get("servers") or []
        url = ""
        if servers:
            url = servers[0].get("url", "")
            for name, variable in servers[0].get("variables", {}).items():
                url = url.replace("{" + name + "}", str(variable.get("default", "")))

        if not re.match(r"^\w+://", url):
            url = "http://localhost" + ("" if url.startswith("/") or not url else "/") + url
        return httpx.URL(url)

    def _parameters(self, common: List[Dict], method_spec: Dict) -> List[ParameterSpec]:
        # Параметры операции перекрывают параметры пути с тем же (name, in)
        merged = {}
        for param in list(common) + list(method_spec.get("parameters", [])):
            merged[(param.get("name"), param.get("in"))] = param

        parameters = []
        for param in merged.values():
            spec = self._parameter(param)
            if spec is not None:
                parameters.append(spec)

        if self.version == 3 and "requestBody" in method_spec:
            parameters.extend(self._request_body(method_spec["requestBody"]))

        return parameters

    def _parameter(self, param: Dict) -> Optional[ParameterSpec]:
        location = param.get("in")
        if location not in ("path", "query", "header", "formData", "body"):
            logger.debug(f"Skip parameter {param.get('name')} in {location}")
            return None

        if self.version == 2:
            if location == "body":
                value_schema = param.get("schema", {})
            else:
                value_schema = {
                    k: v for k, v in param.items() if k not in NON_SCHEMA_KEYS
                }
            return ParameterSpec(
                name=param["name"],
                location=location,
                type=param.get("type"),
                collection_format=param.get("collectionFormat"),
                required=bool(param.get("required")),
                value_schema=value_schema,
            )

        value_schema = param.get("schema", {})
        return ParameterSpec(
            name=param["name"],
            location=location,
            type=value_schema.get("type"),
            collection_format=self._style_format(param, value_schema),
            required=bool(param.get("required")),
            value_schema=value_schema,
        )

    @staticmethod
    def _style_format(param: Dict, value_schema: Dict) -> Optional[str]:
        """collectionFormat из style/explode OpenAPI v3"""
        if value_schema.get("type") != "array":
            return None

        default_style = "form" if param.get("in") == "query" else "simple"
        style = param.get("style", default_style)
        explode = param.get("explode", style == "form")
        if explode and style in ("form", "spaceDelimited", "pipeDelimited"):
            return "multi"
        return V3_STYLE_FORMATS.get(style, "csv")

    @staticmethod
    def _request_body(request_body: Dict) -> List[ParameterSpec]:
        content = request_body.get("content", {})
        required = bool(request_body.get("required"))

        media_types = list(content)
        if media_types and all(_ in FORM_MEDIA_TYPES for _ in media_types):
            form_schema = content[media_types[0]].get("schema", {})
            required_fields = set(form_schema.get("required", []))
            return [
                ParameterSpec(
                    name=name,
                    location="formData",
                    type=field_schema.get("type"),
                    required=name in required_fields,
                    value_schema=field_schema,
                )
                for name, field_schema in form_schema.get("properties", {}).items()
            ]

        media_type = next(
            (_ for _ in media_types if "json" in _),
            media_types[0] if media_types else None,
        )
        value_schema = content[media_type].get("schema", {}) if media_type else {}
        return [
            ParameterSpec(
                name="body",
                location="body",
                type=value_schema.get("type"),
                required=required,
                value_schema=value_schema,
            )
        ]
