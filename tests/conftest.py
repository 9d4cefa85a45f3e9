"""
Общие фикстуры: спецификации, транспорт без сети и WSGI приложение
"""

import asyncio
import copy
import json

import pytest

from oas_client import Client
from oas_client.internal.generator.descriptor import DescriptorRegistry
from oas_client.internal.transport.http_client import UserAgent
from oas_client.internal.types.models import Response

PET_ID_PARAM = {"name": "petId", "in": "path", "required": True, "type": "integer"}

PETSTORE_V2 = {
    "swagger": "2.0",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "host": "petstore.example.com",
    "basePath": "/v1",
    "schemes": ["http"],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {"name": "limit", "in": "query", "type": "integer"},
                    {
                        "name": "tags",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "string"},
                    },
                    {
                        "name": "ids",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "integer"},
                        "collectionFormat": "pipes",
                    },
                    {
                        "name": "names",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "string"},
                        "collectionFormat": "multi",
                    },
                    {
                        "name": "words",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "string"},
                        "collectionFormat": "ssv",
                    },
                    {
                        "name": "columns",
                        "in": "query",
                        "type": "array",
                        "items": {"type": "string"},
                        "collectionFormat": "tsv",
                    },
                    {"name": "X-Request-Id", "in": "header", "type": "string"},
                ],
                "responses": {"200": {"description": "pets"}},
            },
            "post": {
                "operationId": "addPet",
                "parameters": [
                    {
                        "name": "pet",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/Pet"},
                    }
                ],
                "responses": {"201": {"description": "created"}},
            },
        },
        "/pets/{petId}": {
            "get": {
                "operationId": "showPetById",
                "parameters": [PET_ID_PARAM],
                "responses": {"200": {"description": "pet"}},
            },
            "delete": {
                "parameters": [PET_ID_PARAM],
                "responses": {"204": {"description": "deleted"}},
            },
        },
        "/pets/{petId}/photo": {
            "post": {
                "operationId": "uploadPhoto",
                "consumes": ["application/x-www-form-urlencoded"],
                "parameters": [
                    PET_ID_PARAM,
                    {
                        "name": "caption",
                        "in": "formData",
                        "type": "string",
                        "required": True,
                    },
                    {"name": "rating", "in": "formData", "type": "integer"},
                ],
                "responses": {"200": {"description": "uploaded"}},
            }
        },
        "/notes": {
            "post": {
                "operationId": "addNote",
                "parameters": [
                    {
                        "name": "note",
                        "in": "body",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
                "responses": {"200": {"description": "noted"}},
            }
        },
        "/missing": {
            "get": {
                "operationId": "getMissing",
                "responses": {"404": {"description": "not found"}},
            }
        },
    },
    "definitions": {
        "Pet": {
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
        }
    },
}

PETSTORE_V3 = {
    "openapi": "3.0.3",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "servers": [
        {
            "url": "{scheme}://api.example.com/v2",
            "variables": {"scheme": {"default": "https"}},
        }
    ],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "parameters": [
                    {
                        "name": "tags",
                        "in": "query",
                        "schema": {"type": "array", "items": {"type": "string"}},
                    },
                    {
                        "name": "ids",
                        "in": "query",
                        "explode": False,
                        "schema": {"type": "array", "items": {"type": "integer"}},
                    },
                    {
                        "name": "words",
                        "in": "query",
                        "style": "pipeDelimited",
                        "explode": False,
                        "schema": {"type": "array", "items": {"type": "string"}},
                    },
                    {"name": "session", "in": "cookie", "schema": {"type": "string"}},
                ],
                "responses": {"200": {"description": "pets"}},
            },
            "post": {
                "operationId": "createPet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/Pet"}
                        }
                    },
                },
                "responses": {"201": {"description": "created"}},
            },
        },
        "/pets/{petId}/photo": {
            "parameters": [
                {
                    "name": "petId",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "integer"},
                }
            ],
            "put": {
                "operationId": "uploadPhoto",
                "requestBody": {
                    "content": {
                        "application/x-www-form-urlencoded": {
                            "schema": {
                                "type": "object",
                                "required": ["caption"],
                                "properties": {"caption": {"type": "string"}},
                            }
                        }
                    }
                },
                "responses": {"200": {"description": "uploaded"}},
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}},
            }
        }
    },
}


class RecordingUserAgent(UserAgent):
    """Транспорт без сети, запоминает отправленные транзакции"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.sent = []

    def _send_blocking(self, tx):
        self.sent.append(tx)
        return self._complete(
            tx,
            Response(
                code=200,
                message="OK",
                headers={"content-type": "application/json"},
                body=b'{"ok": true}',
            ),
        )

    async def _send_async(self, tx):
        await asyncio.sleep(0)
        return self._send_blocking(tx)


def echo_app(environ, start_response):
    """WSGI приложение, возвращающее описание полученного запроса"""
    length = int(environ.get("CONTENT_LENGTH") or 0)
    body = json.dumps(
        {
            "method": environ["REQUEST_METHOD"],
            "path": environ["PATH_INFO"],
            "query": environ.get("QUERY_STRING", ""),
            "content_type": environ.get("CONTENT_TYPE", ""),
            "body": environ["wsgi.input"].read(length).decode("utf-8"),
        }
    ).encode("utf-8")

    status = "404 Not Found" if environ["PATH_INFO"].endswith("/missing") else "200 OK"
    start_response(
        status,
        [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
    )
    return [body]


@pytest.fixture(autouse=True)
def clean_registry():
    DescriptorRegistry().clear()
    yield
    DescriptorRegistry().clear()


@pytest.fixture
def petstore_v2():
    return copy.deepcopy(PETSTORE_V2)


@pytest.fixture
def petstore_v3():
    return copy.deepcopy(PETSTORE_V3)


@pytest.fixture
def ua():
    return RecordingUserAgent()


@pytest.fixture
def client(petstore_v2, ua):
    return Client(petstore_v2, ua=ua)


@pytest.fixture
def app():
    return echo_app
