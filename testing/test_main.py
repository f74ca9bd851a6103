"""Tests for the card maintenance command line."""

import json
import logging
import sys

import httpx
import pytest

from sillypilot.main import main, setup_logging
from sillypilot.services.character_repository import CharacterRepositoryClient
from sillypilot.services.character_cards import decode_card

from conftest import card_png


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_inspect(tmp_path, capsys, full_card_payload):
    image = tmp_path / "mira.png"
    image.write_bytes(card_png(full_card_payload))

    assert main(["--config-dir", str(tmp_path), "inspect", str(image)]) == 0

    printed = json.loads(capsys.readouterr().out)
    assert printed["spec"] == "chara_card_v2"
    assert printed["data"]["name"] == "Captain Mira"


def test_inspect_plain_image(tmp_path, capsys, pillow_png):
    image = tmp_path / "photo.png"
    image.write_bytes(pillow_png)

    assert main(["--config-dir", str(tmp_path), "inspect", str(image)]) == 1
    assert "not a character card" in capsys.readouterr().err


def test_import_list_export(tmp_path, capsys, full_card_payload):
    image = tmp_path / "mira.png"
    image.write_bytes(card_png(full_card_payload))
    args = ["--config-dir", str(tmp_path)]

    assert main(args + ["import", str(image), "--name", "Mira"]) == 0
    out = capsys.readouterr().out
    character_id = out.strip().rsplit(" ", 1)[-1]

    assert main(args + ["list"]) == 0
    assert f"{character_id}\tMira" in capsys.readouterr().out

    assert main(args + ["export", character_id, "--output-dir", str(tmp_path / "out")]) == 0
    card_path = tmp_path / "out" / "Mira_card.png"
    assert capsys.readouterr().out.strip() == str(card_path)
    assert decode_card(card_path.read_bytes()).data.name == "Mira"


def test_import_plain_image(tmp_path, capsys, pillow_png):
    image = tmp_path / "photo.png"
    image.write_bytes(pillow_png)

    assert main(["--config-dir", str(tmp_path), "import", str(image)]) == 1


def test_export_unknown_character(tmp_path, capsys):
    assert main(["--config-dir", str(tmp_path), "export", "ghost"]) == 1
    assert "not found" in capsys.readouterr().err


def test_bad_config(tmp_path, capsys):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "system.yaml").write_text("cards:\n  default_status: busy\n", encoding="utf-8")

    assert main(["--config-dir", str(tmp_path), "list"]) == 2


def test_setup_logging_levels():
    setup_logging(debug=False)

    assert logging.getLogger("sillypilot").level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_writes_to_stderr():
    setup_logging(debug=False)

    streams = [getattr(h, "stream", None) for h in logging.getLogger().handlers]
    assert sys.stderr in streams
    assert sys.stdout not in streams


def _repository_document():
    return {
        "metadata": {"name": "Harbor Tales", "description": "Coastal", "version": "1.2", "author": "harbor"},
        "characters": [{
            "spec": "chara_card_v2",
            "id": "lumen-01",
            "created_at": "2024-03-01T10:00:00Z",
            "updated_at": "2024-04-15T08:30:00Z",
            "data": {
                "name": "Lumen", "description": "", "personality": "", "scenario": "",
                "first_mes": "Mind the rocks.", "avatar": "",
            },
        }],
    }


@pytest.fixture
def repository_requests(monkeypatch):
    """Serve repository requests from memory and record client timeouts."""
    seen = {"timeouts": [], "urls": []}

    def handler(request):
        seen["urls"].append(str(request.url))
        if request.url.path.endswith("/categories"):
            return httpx.Response(200, json=["maritime", "fantasy"])
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json={"characters": _repository_document()["characters"]})
        return httpx.Response(200, json=_repository_document())

    def client_factory(timeout):
        seen["timeouts"].append(timeout)
        transport = httpx.MockTransport(handler)
        return CharacterRepositoryClient(timeout=timeout, client=httpx.AsyncClient(transport=transport))

    monkeypatch.setattr("sillypilot.main.CharacterRepositoryClient", client_factory)
    return seen


def _write_repository_config(tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "system.yaml").write_text(
        "repository:\n  url: https://repo.example.com/characters/\n  timeout_seconds: 7\n",
        encoding="utf-8",
    )


def test_browse_uses_configured_repository(tmp_path, capsys, repository_requests):
    _write_repository_config(tmp_path)

    assert main(["--config-dir", str(tmp_path), "browse"]) == 0

    out = capsys.readouterr().out
    assert "# Harbor Tales 1.2 by harbor" in out
    assert "lumen-01\tLumen" in out
    assert repository_requests["timeouts"] == [7.0]
    assert repository_requests["urls"] == ["https://repo.example.com/characters"]


def test_browse_search_and_categories(tmp_path, capsys, repository_requests):
    _write_repository_config(tmp_path)
    args = ["--config-dir", str(tmp_path), "browse"]

    assert main(args + ["--query", "lighthouse"]) == 0
    assert capsys.readouterr().out.strip() == "lumen-01\tLumen"

    assert main(args + ["--categories"]) == 0
    assert capsys.readouterr().out.split() == ["maritime", "fantasy"]


def test_browse_url_override(tmp_path, capsys, repository_requests):
    assert main(["--config-dir", str(tmp_path), "browse", "--url", "https://other.example.com/list"]) == 0

    assert repository_requests["urls"] == ["https://other.example.com/list"]
    assert repository_requests["timeouts"] == [30.0]


def test_browse_without_url(tmp_path, capsys):
    assert main(["--config-dir", str(tmp_path), "browse"]) == 2
    assert "repository.url is not configured" in capsys.readouterr().err


def test_browse_repository_error(tmp_path, capsys):
    assert main(["--config-dir", str(tmp_path), "browse", "--url", "ftp://repo.example.com"]) == 1
    assert "Invalid repository URL" in capsys.readouterr().err
