"""
Character Card System
====================

Portable character definitions embedded in PNG avatars as base64-encoded
JSON (V2 "chara" cards).

Supports:
- PNG chunk parsing and rebuilding (tEXt metadata only, pixels untouched)
- V2 card decode/encode
- Mapping between card fields and the application character record
- File-level import (with plain-avatar fallback) and export
"""

from .card_codec import decode_card, encode_card
from .card_exporter import CharacterCardExporter
from .card_importer import CharacterCardImporter
from .card_mapping import (
    card_to_character,
    character_to_card,
    character_to_card_data,
    repository_character_to_character,
)
from .errors import CardError, DecodeError, FormatError, NotFoundError, ValidationError
from .models import CardImportResult, Character, CharacterCard, CharacterCardData, CharacterData
from .png_chunks import Chunk, TextChunkEntry, parse_chunks, serialize_chunks

__all__ = [
    'decode_card',
    'encode_card',
    'CharacterCardExporter',
    'CharacterCardImporter',
    'card_to_character',
    'character_to_card',
    'character_to_card_data',
    'repository_character_to_character',
    'CardError',
    'DecodeError',
    'FormatError',
    'NotFoundError',
    'ValidationError',
    'CardImportResult',
    'Character',
    'CharacterCard',
    'CharacterCardData',
    'CharacterData',
    'Chunk',
    'TextChunkEntry',
    'parse_chunks',
    'serialize_chunks',
]
