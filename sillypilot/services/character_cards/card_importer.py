"""
Character Card Importer
======================

Import characters from PNG files. Files without card metadata are treated
as plain avatar images rather than errors.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

from sillypilot.services.file_storage import FileStorage

from .card_codec import decode_card
from .card_mapping import DEFAULT_MOOD, DEFAULT_STATUS, card_to_character
from .errors import NotFoundError
from .models import CardImportResult, Character, CharacterCard

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from sillypilot.services.character_store import CharacterStore


class CharacterCardImporter:
    """Import character cards from PNG files."""

    def __init__(
        self,
        store: Optional["CharacterStore"] = None,
        storage: Optional[FileStorage] = None,
        default_status: str = DEFAULT_STATUS,
        default_mood: str = DEFAULT_MOOD,
    ):
        """
        Initialize importer.

        Args:
            store: Where imported characters are saved (save_character needs it)
            storage: File storage used to read image files
            default_status: Status given to imported characters
            default_mood: Mood given to imported characters
        """
        self.store = store
        self.storage = storage or FileStorage()
        self.default_status = default_status
        self.default_mood = default_mood

    def import_card(self, png_data: bytes, image_uri: str = "") -> CardImportResult:
        """
        Import character from PNG bytes.

        Args:
            png_data: PNG file data
            image_uri: Where the bytes came from; becomes the character avatar

        Returns:
            CardImportResult. is_card is False when the image has no card data.

        Raises:
            FormatError: Not a PNG
            DecodeError: Card data is corrupt
            ValidationError: Card uses an unsupported spec
        """
        logger.info("Importing character card from PNG")

        try:
            card = decode_card(png_data, image_uri)
        except NotFoundError as e:
            logger.info(f"No character card in image ({e}), treating as plain avatar")
            return CardImportResult(image_data=png_data, is_card=False)

        character = card_to_character(card, status=self.default_status, mood=self.default_mood)
        result = CardImportResult(
            character=character,
            card=card,
            image_data=png_data,
            is_card=True,
            warnings=self._collect_warnings(card),
        )

        logger.info(f"Successfully imported character card: {character.data.name}")
        return result

    def import_file(self, uri: Union[str, Path]) -> CardImportResult:
        """Read an image file and import it (see import_card)."""
        png_data = self.storage.read(uri)
        return self.import_card(png_data, image_uri=str(uri))

    def save_character(self, result: CardImportResult, custom_name: Optional[str] = None) -> Character:
        """
        Save an imported card and its image to the character store.

        Args:
            result: Result of import_card with is_card True
            custom_name: Optional name overriding the card's name

        Returns:
            Stored character, avatar pointing at the stored image
        """
        if self.store is None:
            raise RuntimeError("CharacterCardImporter has no store to save into")
        if not result.is_card or result.character is None:
            raise ValueError("Import result does not contain a character card")

        character = result.character
        if custom_name:
            character = character.model_copy(
                update={"data": character.data.model_copy(update={"name": custom_name})}
            )

        return self.store.save(character, image_data=result.image_data)

    @staticmethod
    def _collect_warnings(card: CharacterCard) -> List[str]:
        warnings = []
        data = card.data
        if not data.name:
            warnings.append("Character card has no name")
        if data.character_book:
            warnings.append("Character has a lorebook/character book - it is kept but not used in chats")
        if data.alternate_greetings:
            warnings.append(
                f"Character has {len(data.alternate_greetings)} alternate greeting(s) - only the first message is used"
            )
        return warnings
