"""
Character Card Exporter
======================

Export application characters as PNG character cards.
"""

import logging
import re
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from PIL import Image, UnidentifiedImageError

from sillypilot.services.file_storage import FileStorage

from .card_codec import encode_card
from .card_mapping import DEFAULT_CHARACTER_VERSION, DEFAULT_CREATOR
from .models import Character
from .png_chunks import PNG_SIGNATURE

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from sillypilot.services.character_store import CharacterStore


class CharacterCardExporter:
    """Export characters to PNG character cards."""

    def __init__(
        self,
        exports_dir: Union[str, Path],
        default_avatar_path: Optional[Union[str, Path]] = None,
        store: Optional["CharacterStore"] = None,
        storage: Optional[FileStorage] = None,
        creator: str = DEFAULT_CREATOR,
        character_version: str = DEFAULT_CHARACTER_VERSION,
        blank_avatar_size: int = 512,
    ):
        """
        Initialize exporter.

        Args:
            exports_dir: Where export_to_file writes cards
            default_avatar_path: Image used when a character has no usable avatar
            store: Character store, needed by export_by_id
            storage: File storage for reading avatars and writing cards
            creator: Creator name stamped on exported cards
            character_version: Version stamped on exported cards
            blank_avatar_size: Edge length of the generated fallback avatar
        """
        self.exports_dir = Path(exports_dir)
        self.default_avatar_path = Path(default_avatar_path) if default_avatar_path else None
        self.store = store
        self.storage = storage or FileStorage()
        self.creator = creator
        self.character_version = character_version
        self.blank_avatar_size = blank_avatar_size

    def export(self, character: Character) -> bytes:
        """
        Export character as PNG card bytes.

        Raises:
            FormatError: The avatar claims to be a PNG but is malformed
        """
        logger.info(f"Exporting character card for '{character.data.name}'")

        base_image = self._get_base_image(character)
        card_png = encode_card(
            character,
            base_image,
            creator=self.creator,
            character_version=self.character_version,
        )

        logger.info(f"Successfully exported character card for '{character.data.name}'")
        return card_png

    def export_by_id(self, character_id: str) -> bytes:
        """Export a stored character."""
        if self.store is None:
            raise RuntimeError("CharacterCardExporter has no store to load from")
        return self.export(self.store.load(character_id))

    def export_to_file(self, character: Character, output_dir: Optional[Union[str, Path]] = None) -> Path:
        """
        Export character and write the card as <name>_card.png.

        Returns:
            Path of the written card
        """
        card_png = self.export(character)
        output_dir = Path(output_dir) if output_dir else self.exports_dir
        output_path = output_dir / f"{self._sanitize_filename(character.data.name)}_card.png"
        self.storage.write(output_path, card_png)
        logger.info(f"Wrote character card: {output_path}")
        return output_path

    def _get_base_image(self, character: Character) -> bytes:
        """Character avatar as PNG bytes, falling back to the default avatar."""
        avatar = character.data.avatar
        if avatar and not avatar.startswith(("http://", "https://")):
            image = self._read_as_png(avatar)
            if image is not None:
                logger.debug(f"Using avatar image: {avatar}")
                return image
        elif avatar:
            logger.warning(f"Remote avatar '{avatar}' is not downloaded for export, using default avatar")

        if self.default_avatar_path is not None:
            image = self._read_as_png(self.default_avatar_path)
            if image is not None:
                logger.debug(f"Using default avatar: {self.default_avatar_path}")
                return image

        logger.warning(f"No usable avatar for '{character.data.name}', creating blank PNG")
        return self._create_blank_png()

    def _read_as_png(self, uri: Union[str, Path]) -> Optional[bytes]:
        """Read an image file, converting non-PNG formats. None if unusable."""
        try:
            data = self.storage.read(uri)
        except (OSError, ValueError) as e:
            logger.warning(f"Cannot read avatar '{uri}': {e}")
            return None

        if data.startswith(PNG_SIGNATURE):
            return data

        try:
            with Image.open(BytesIO(data)) as image:
                output = BytesIO()
                image.save(output, format='PNG')
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Avatar '{uri}' is not a readable image: {e}")
            return None

        logger.debug(f"Converted avatar '{uri}' to PNG")
        return output.getvalue()

    def _create_blank_png(self) -> bytes:
        """Create a simple blank PNG as fallback."""
        size = self.blank_avatar_size
        img = Image.new('RGB', (size, size), color=(128, 128, 128))
        output = BytesIO()
        img.save(output, format='PNG')
        return output.getvalue()

    @staticmethod
    def _sanitize_filename(name: str) -> str:
        """Sanitize string for use as filename."""
        safe = re.sub(r'[^A-Za-z0-9]', '_', name).strip('_')
        if len(safe) > 50:
            safe = safe[:50]
        if not safe:
            safe = "character"
        return safe
