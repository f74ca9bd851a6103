"""
Character Store
==============

Local persistence for application characters: one YAML file per character
plus its avatar image.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from sillypilot.services.character_cards.models import Character
from sillypilot.services.file_storage import FileStorage, uri_to_path

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')


class CharacterStoreError(Exception):
    """Base exception for character persistence errors."""
    pass


class CharacterNotFoundError(CharacterStoreError):
    """No stored character with the requested id."""
    pass


class CharacterStore:
    """Save, load, list and delete characters on disk."""

    def __init__(self, characters_dir: Path, images_dir: Path, storage: Optional[FileStorage] = None):
        """
        Initialize store.

        Args:
            characters_dir: Directory holding <id>.yaml files
            images_dir: Directory holding <id>.png avatar images
            storage: File storage backend
        """
        self.characters_dir = Path(characters_dir)
        self.images_dir = Path(images_dir)
        self.storage = storage or FileStorage()

        self.characters_dir.mkdir(parents=True, exist_ok=True)
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def _character_path(self, character_id) -> Path:
        character_id = str(character_id)
        if not _ID_PATTERN.match(character_id):
            raise CharacterStoreError(f"Invalid character id: {character_id!r}")
        return self.characters_dir / f"{character_id}.yaml"

    def image_path(self, character_id) -> Path:
        self._character_path(character_id)
        return self.images_dir / f"{character_id}.png"

    def save(self, character: Character, image_data: Optional[bytes] = None) -> Character:
        """
        Persist a character, optionally with avatar image bytes.

        When image bytes are given they are stored next to the other avatars
        and the character's avatar is pointed at the stored file.

        Returns:
            The character as stored
        """
        file_path = self._character_path(character.id)

        if image_data is not None:
            image_path = self.image_path(character.id)
            self.storage.write(image_path, image_data)
            character = character.model_copy(
                update={"data": character.data.model_copy(update={"avatar": str(image_path)})}
            )
            logger.debug(f"Saved avatar image: {image_path}")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(
                    character.to_dict(),
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    indent=2
                )
        except OSError as e:
            raise CharacterStoreError(f"Failed to save character to {file_path}: {e}")

        logger.info(f"Saved character '{character.data.name}' to {file_path}")
        return character

    def load(self, character_id) -> Character:
        """
        Load a stored character.

        Raises:
            CharacterNotFoundError: No file for this id
            CharacterStoreError: File unreadable or invalid
        """
        file_path = self._character_path(character_id)
        if not file_path.exists():
            raise CharacterNotFoundError(f"Character not found: {character_id}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
            return Character.model_validate(data)
        except yaml.YAMLError as e:
            raise CharacterStoreError(f"Invalid YAML in {file_path}: {e}")
        except ValidationError as e:
            raise CharacterStoreError(f"Invalid character data in {file_path}: {e}")

    def list(self) -> List[Character]:
        """
        Load all stored characters, sorted by name.

        Logs and skips invalid files.
        """
        characters = []
        for file_path in sorted(self.characters_dir.glob("*.yaml")):
            try:
                characters.append(self.load(file_path.stem))
            except CharacterStoreError as e:
                logger.error(f"Failed to load character '{file_path.stem}': {e}")

        logger.debug(f"Loaded {len(characters)} character(s)")
        return sorted(characters, key=lambda c: c.data.name.lower())

    def delete(self, character_id) -> None:
        """
        Delete a character and the avatar image stored for it.

        Avatars living outside the images directory are left alone.

        Raises:
            CharacterNotFoundError: No file for this id
        """
        character = self.load(character_id)
        self._character_path(character_id).unlink()

        if character.data.avatar:
            try:
                avatar_path = uri_to_path(character.data.avatar)
            except ValueError:
                avatar_path = None
            if avatar_path is not None and avatar_path.parent.resolve() == self.images_dir.resolve():
                self.storage.delete(avatar_path)

        logger.info(f"Deleted character '{character_id}'")
