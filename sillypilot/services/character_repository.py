"""
Character Repository Client
==========================

Fetches character lists from remote repositories. A repository is a JSON
document with a metadata block and an array of V2 card records (the same
shape as embedded card JSON, without the PNG wrapper).
"""

import logging
from typing import Any, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from sillypilot.services.character_cards.card_mapping import repository_character_to_character
from sillypilot.services.character_cards.models import (
    Character,
    RepositoryCharacter,
    RepositoryMetadata,
    RepositoryResponse,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Repository could not be fetched or did not match the expected format."""
    pass


class CharacterRepositoryClient:
    """
    Async client for remote character repositories.

    Handles:
    - Repository download and validation
    - Character search
    - Category listing
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize repository client.

        Args:
            timeout: HTTP request timeout (seconds)
            client: Preconfigured httpx client (a new one is created when omitted)
        """
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "CharacterRepositoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @staticmethod
    def _validate_url(url: str) -> str:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise RepositoryError(f"Invalid repository URL: {url}") from e
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise RepositoryError(f"Invalid repository URL: {url}")
        return url.rstrip('/')

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Repository returned error: {e.response.status_code} for {url}")
            raise RepositoryError(f"HTTP {e.response.status_code} from {url}") from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach repository {url}: {e}")
            raise RepositoryError(f"Cannot reach {url}: {e}") from e
        except ValueError as e:
            raise RepositoryError(f"Response from {url} is not valid JSON") from e

    async def fetch_repository(self, url: str) -> RepositoryResponse:
        """
        Download and validate a repository document.

        Raises:
            RepositoryError: Unreachable, not JSON, or invalid data format
        """
        url = self._validate_url(url)
        data = await self._get_json(url)
        try:
            return RepositoryResponse.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Repository {url} failed validation: {e.error_count()} error(s)")
            raise RepositoryError("Invalid repository data format") from e

    async def load_repository(self, url: str) -> Tuple[RepositoryMetadata, List[Character]]:
        """
        Load a repository and map its records to application characters.

        Returns:
            Tuple of (metadata, characters)

        Raises:
            RepositoryError: Message prefixed "Repository error:"
        """
        try:
            repository = await self.fetch_repository(url)
        except RepositoryError as e:
            raise RepositoryError(f"Repository error: {e}") from e

        characters = [repository_character_to_character(c) for c in repository.characters]
        logger.info(f"Loaded {len(characters)} character(s) from repository '{repository.metadata.name}'")
        return repository.metadata, characters

    async def search_characters(self, url: str, query: str) -> List[Character]:
        """
        Search a repository (GET {url}/search?q=query).

        Raises:
            RepositoryError: Message prefixed "Search error:"
        """
        try:
            base = self._validate_url(url)
            data = await self._get_json(f"{base}/search", params={"q": query})
            if not isinstance(data, dict) or not isinstance(data.get("characters"), list):
                raise RepositoryError("Invalid search response format")
            records = [RepositoryCharacter.model_validate(c) for c in data["characters"]]
        except ValidationError as e:
            raise RepositoryError("Search error: Invalid search response format") from e
        except RepositoryError as e:
            raise RepositoryError(f"Search error: {e}") from e

        logger.debug(f"Search '{query}' returned {len(records)} character(s)")
        return [repository_character_to_character(c) for c in records]

    async def get_categories(self, url: str) -> List[str]:
        """
        List repository categories (GET {url}/categories).

        Raises:
            RepositoryError: Message prefixed "Failed to fetch categories:"
        """
        try:
            base = self._validate_url(url)
            data = await self._get_json(f"{base}/categories")
            if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
                raise RepositoryError("Invalid categories response format")
        except RepositoryError as e:
            raise RepositoryError(f"Failed to fetch categories: {e}") from e

        return data
