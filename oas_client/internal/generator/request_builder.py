import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from ..transport.http_client import UserAgent
from ..types.models import (
    ParameterSpec,
    ParameterValue,
    Request,
    Response,
    Route,
    Transaction,
    TransactionError,
)
from ..utils import as_array, apply_collection_format, stringify
from ..validator.schema import Schema

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{([-\w]+)\}")


class RequestBuilder:
    """
    Построение транзакции для маршрута из параметров вызова.

    Параметры раскладываются по месту (path, query, header, formData, body),
    валидатор получает их через accessor-функции. При ошибках валидации
    возвращается синтетическая транзакция с ответом 400, транспорт не вызывается.
    """

    def __init__(self, schema: Schema, user_agent: UserAgent):
        self.schema = schema
        self.user_agent = user_agent

    def build(
        self,
        route: Route,
        base_url: httpx.URL,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[Dict[str, Any]] = None,
    ) -> Transaction:
        params = dict(params or {})
        content = dict(content or {})
        headers: Dict[str, List[str]] = {}
        query: Dict[str, Any] = {}

        def path_accessor(name: str, param: ParameterSpec) -> ParameterValue:
            return ParameterValue(exists=name in params, value=params.get(name))

        def query_accessor(name: str, param: ParameterSpec) -> ParameterValue:
            value = as_array(name, params)
            if value:
                query[name] = apply_collection_format(value, param)
            return ParameterValue(exists=bool(value), value=value)

        def header_accessor(name: str, param: ParameterSpec) -> ParameterValue:
            value = as_array(name, params)
            if value:
                headers[name] = [stringify(_) for _ in value]
            return ParameterValue(exists=bool(value), value=value)

        def form_accessor(name: str, param: ParameterSpec) -> ParameterValue:
            value = as_array(name, params)
            content.setdefault("form", {})[name] = params.get(name)
            return ParameterValue(exists=bool(value), value=value)

        def body_accessor(name: str, param: ParameterSpec) -> ParameterValue:
            if name in params:
                content["json"] = params[name]
                content.pop("body", None)
            else:
                for kind in self.user_agent.content_order():
                    if kind in content:
                        params[name] = content[kind]
                        break
            return ParameterValue(exists=name in params, value=params.get(name))

        url = base_url.copy_with(path=self.build_path(base_url, route, params))
        errors = self.schema.validate_request(
            route,
            {
                "body": body_accessor,
                "formData": form_accessor,
                "header": header_accessor,
                "path": path_accessor,
                "query": query_accessor,
            },
        )
        url = self._with_query(url, query)

        if errors:
            logger.debug(
                f"Validation for {route.method} {url} failed: {'; '.join(errors)}"
            )
            tx = self.failure(route, url, errors, headers)
        else:
            logger.debug(f"Validation for {route.method} {url} was successful")
            tx = self.user_agent.build_tx(route.method, url, headers, content)

        tx.request.env["operationId"] = route.operation_id
        return tx

    @staticmethod
    def build_path(base_url: httpx.URL, route: Route, params: Dict[str, Any]) -> str:
        """
        Путь запроса: путь base_url и сегменты шаблона маршрута.

        Пустые сегменты после подстановки отбрасываются.
        """

        def substitute(match: re.Match) -> str:
            return quote(stringify(params.get(match.group(1))), safe="")

        segments = [_ for _ in base_url.path.split("/") if _]
        for segment in route.path.split("/"):
            segment = PLACEHOLDER_RE.sub(substitute, segment)
            if segment:
                segments.append(segment)
        return "/" + "/".join(segments)

    @staticmethod
    def _with_query(url: httpx.URL, query: Dict[str, Any]) -> httpx.URL:
        if not query:
            return url

        pairs: List[Tuple[str, str]] = [
            (name, value)
            for name, value in url.params.multi_items()
            if name not in query
        ]
        for name, value in query.items():
            if isinstance(value, list):
                pairs.extend((name, stringify(_)) for _ in value)
            else:
                pairs.append((name, value))
        return url.copy_with(params=pairs)

    @staticmethod
    def failure(
        route: Route,
        url: httpx.URL,
        errors: List[str],
        headers: Optional[Dict[str, List[str]]] = None,
    ) -> Transaction:
        """Синтетическая транзакция для запроса, не прошедшего валидацию"""
        return Transaction(
            request=Request(
                method=route.method.upper(), url=url, headers=dict(headers or {})
            ),
            response=Response(
                code=400,
                message="Bad Request",
                headers={"Content-Type": "application/json"},
                body=json.dumps({"errors": errors}).encode("utf-8"),
            ),
            error=TransactionError(message="Invalid input", code=400),
        )
