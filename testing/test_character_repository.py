"""
Tests for the remote character repository client.

Requests are served by httpx.MockTransport; no network access.
"""

import asyncio

import httpx
import pytest

from sillypilot.services.character_repository import CharacterRepositoryClient, RepositoryError

REPO_URL = "https://repo.example.com/characters"


def _record(record_id="lumen-01", **data_overrides):
    data = {
        "name": "Lumen",
        "description": "A lighthouse keeper.",
        "personality": "patient",
        "scenario": "A stormy night.",
        "first_mes": "Mind the rocks.",
        "avatar": "https://repo.example.com/lumen.png",
        "tags": ["maritime"],
    }
    data.update(data_overrides)
    return {
        "spec": "chara_card_v2",
        "data": data,
        "id": record_id,
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": "2024-04-15T08:30:00Z",
    }


def _document(*records):
    return {
        "metadata": {
            "name": "Harbor Tales",
            "description": "Coastal characters",
            "version": "1.2",
            "author": "harbor",
            "website": "https://repo.example.com",
        },
        "characters": list(records) or [_record()],
    }


def _client(handler) -> CharacterRepositoryClient:
    return CharacterRepositoryClient(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _run(coro_factory, handler):
    async def runner():
        async with _client(handler) as client:
            return await coro_factory(client)
    return asyncio.run(runner())


class TestLoadRepository:

    def test_valid_repository(self):
        def handler(request):
            assert str(request.url) == REPO_URL
            return httpx.Response(200, json=_document(_record(), _record("tide-02", name="Tide")))

        metadata, characters = _run(lambda c: c.load_repository(REPO_URL), handler)

        assert metadata.name == "Harbor Tales"
        assert metadata.website == "https://repo.example.com"
        assert [c.id for c in characters] == ["lumen-01", "tide-02"]
        assert characters[0].data.first_message == "Mind the rocks."
        assert characters[0].data.mood == "neutral"
        assert characters[1].data.name == "Tide"

    def test_missing_required_field(self):
        record = _record()
        del record["data"]["first_mes"]

        def handler(request):
            return httpx.Response(200, json=_document(record))

        with pytest.raises(RepositoryError, match="^Repository error: Invalid repository data format"):
            _run(lambda c: c.load_repository(REPO_URL), handler)

    @pytest.mark.parametrize("mutate", [
        lambda doc: doc["characters"][0].update(spec="chara_card_v3"),
        lambda doc: doc["characters"][0]["data"].update(tags="solo"),
        lambda doc: doc["characters"][0]["data"].update(system_prompt=5),
        lambda doc: doc["metadata"].pop("author"),
        lambda doc: doc.update(characters={"not": "a list"}),
        lambda doc: doc["characters"][0].pop("created_at"),
    ])
    def test_invalid_documents(self, mutate):
        document = _document()
        mutate(document)

        def handler(request):
            return httpx.Response(200, json=document)

        with pytest.raises(RepositoryError, match="Invalid repository data format"):
            _run(lambda c: c.load_repository(REPO_URL), handler)

    def test_http_error(self):
        def handler(request):
            return httpx.Response(404, text="nope")

        with pytest.raises(RepositoryError, match="^Repository error: HTTP 404"):
            _run(lambda c: c.load_repository(REPO_URL), handler)

    def test_not_json(self):
        def handler(request):
            return httpx.Response(200, text="<html></html>")

        with pytest.raises(RepositoryError, match="not valid JSON"):
            _run(lambda c: c.load_repository(REPO_URL), handler)

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RepositoryError, match="Cannot reach"):
            _run(lambda c: c.load_repository(REPO_URL), handler)

    @pytest.mark.parametrize("url", ["not a url", "ftp://repo.example.com/x", ""])
    def test_invalid_url(self, url):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(RepositoryError, match="Invalid repository URL"):
            _run(lambda c: c.load_repository(url), handler)


class TestSearchAndCategories:

    def test_search(self):
        def handler(request):
            assert request.url.path == "/characters/search"
            assert request.url.params["q"] == "light house"
            return httpx.Response(200, json={"characters": [_record()]})

        characters = _run(lambda c: c.search_characters(REPO_URL + "/", "light house"), handler)

        assert [c.data.name for c in characters] == ["Lumen"]

    def test_search_bad_format(self):
        def handler(request):
            return httpx.Response(200, json={"results": []})

        with pytest.raises(RepositoryError, match="^Search error: Invalid search response format"):
            _run(lambda c: c.search_characters(REPO_URL, "x"), handler)

    def test_search_invalid_record(self):
        def handler(request):
            return httpx.Response(200, json={"characters": [{"id": "x"}]})

        with pytest.raises(RepositoryError, match="^Search error"):
            _run(lambda c: c.search_characters(REPO_URL, "x"), handler)

    def test_categories(self):
        def handler(request):
            assert request.url.path == "/characters/categories"
            return httpx.Response(200, json=["fantasy", "sci-fi"])

        assert _run(lambda c: c.get_categories(REPO_URL), handler) == ["fantasy", "sci-fi"]

    def test_categories_bad_format(self):
        def handler(request):
            return httpx.Response(200, json={"categories": []})

        with pytest.raises(RepositoryError, match="^Failed to fetch categories: Invalid categories response format"):
            _run(lambda c: c.get_categories(REPO_URL), handler)
