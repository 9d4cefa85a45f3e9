"""
Тесты командной строки
"""

import json

import pytest

from oas_client import cli


@pytest.fixture
def spec_file(tmp_path, petstore_v2):
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(petstore_v2))
    return str(path)


class TestParseParams:
    def test_pairs(self):
        assert cli.parse_params(["id=1", "tag=a", "tag=b", "q=x=y"]) == {
            "id": "1",
            "tag": ["a", "b"],
            "q": "x=y",
        }

    def test_invalid_pair(self):
        with pytest.raises(ValueError):
            cli.parse_params(["broken"])


class TestMain:
    """Тесты точки входа"""

    def test_list(self, spec_file, capsys, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert cli.main(["--url", spec_file, "--list"]) == 0

        out = capsys.readouterr().out
        assert "listPets\tGET /pets" in out
        assert "showPetById\tGET /pets/{petId}" in out

    def test_validation_failure(self, spec_file, capsys, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert cli.main(["--url", spec_file, "showPetById"]) == 1

        captured = capsys.readouterr()
        assert "400 Bad Request" in captured.out
        assert "Missing property" in captured.out
        assert "Invalid input" in captured.err

    def test_unknown_operation(self, spec_file, capsys, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert cli.main(["--url", spec_file, "doesNotExist"]) == 1
        assert "No such operationId" in capsys.readouterr().err

    def test_missing_url(self, capsys, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert cli.main([]) == 1

    def test_init_config(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert cli.main(["--init-config", "--url", "spec.json"]) == 0
        assert (tmp_path / "openapi.toml").read_text().startswith('url = "spec.json"')
