"""
Тесты интерфейса клиента
"""

import json

import pytest

from oas_client import Client, OpenApiConfig, UnknownOperation


class TestClient:
    def test_operations(self, client):
        assert "listPets" in client.operations
        assert "listPets_p" in client.operations
        assert "listPets" in dir(client)

    def test_routes_and_validator(self, client):
        assert client.routes["showPetById"].path == "/pets/{petId}"
        assert client.validator.is_api

    def test_default_base_url(self, client):
        assert str(client.base_url) == "http://petstore.example.com/v1"

    def test_build_tx_unknown_operation(self, client):
        with pytest.raises(UnknownOperation):
            client.build_tx("doesNotExist")

    def test_from_config(self, tmp_path, petstore_v2):
        path = tmp_path / "petstore.json"
        path.write_text(json.dumps(petstore_v2))
        config = OpenApiConfig(url=str(path), base_url="http://localhost:9000", timeout=3)

        client = Client.from_config(config)

        assert str(client.base_url) == "http://localhost:9000"
        assert client.ua.timeout == 3

    def test_from_config_without_url(self):
        with pytest.raises(ValueError):
            Client.from_config(OpenApiConfig())

    def test_context_manager(self, petstore_v2, ua):
        with Client(petstore_v2, ua=ua) as client:
            tx = client.listPets()

        assert tx.response.code == 200

    @pytest.mark.asyncio
    async def test_async_context_manager(self, petstore_v2, ua):
        async with Client(petstore_v2, ua=ua) as client:
            tx = await client.listPets_p()

        assert tx.response.code == 200
