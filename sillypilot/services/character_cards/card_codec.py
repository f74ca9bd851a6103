"""
Character Card Codec
===================

Reads and writes V2 character cards stored as base64 JSON in a PNG tEXt
chunk keyed "chara".

Both directions work on in-memory bytes only. Decoding never re-encodes the
image; encoding splices one text chunk in front of IEND and leaves every
other chunk byte-for-byte intact.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Union

from pydantic import ValidationError as PydanticValidationError

from .card_mapping import (
    DEFAULT_CHARACTER_VERSION,
    DEFAULT_CREATOR,
    character_to_card,
)
from .errors import DecodeError, NotFoundError, ValidationError
from .models import CARD_SPEC_V2, Character, CharacterCard, CharacterData
from .png_chunks import (
    IEND,
    TEXT,
    Chunk,
    make_text_chunk,
    parse_chunks,
    read_text_entries,
    serialize_chunks,
)

CARD_KEYWORD = "chara"

_ASCII_WHITESPACE = str.maketrans("", "", " \t\n\r\f\v")

# Fields written on export; everything else is left to reader defaults
EXPORT_FIELDS = {
    "name",
    "description",
    "personality",
    "scenario",
    "first_mes",
    "system_prompt",
    "creator_notes",
    "tags",
    "creator",
    "character_version",
    "alternate_greetings",
    "post_history_instructions",
    "extensions",
}


def _decode_payload(text: str) -> Any:
    try:
        raw = base64.b64decode(text.translate(_ASCII_WHITESPACE), validate=True)
    except (binascii.Error, ValueError):
        raise DecodeError("bad base64")

    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError:
        raise DecodeError("invalid json")


def read_card_payload(image_bytes: bytes) -> Dict[str, Any]:
    """
    Extract the raw JSON object stored under the chara keyword.

    Raises:
        FormatError: Not a well-formed PNG
        NotFoundError: No tEXt chunks, or none keyed "chara"
        DecodeError: Payload is not valid base64 JSON
    """
    entries = read_text_entries(parse_chunks(image_bytes))
    if not entries:
        raise NotFoundError("no text chunks")

    entry = next((e for e in entries if e.keyword == CARD_KEYWORD), None)
    if entry is None:
        raise NotFoundError("no chara field")

    return _decode_payload(entry.text)


def decode_card(image_bytes: bytes, image_uri: str = "") -> CharacterCard:
    """
    Decode a character card from PNG bytes.

    Args:
        image_bytes: PNG file contents
        image_uri: Where the image came from; carried on the result

    Returns:
        Fully populated CharacterCard

    Raises:
        FormatError, NotFoundError, DecodeError, ValidationError
    """
    payload = read_card_payload(image_bytes)

    if not isinstance(payload, dict) or payload.get("spec") != CARD_SPEC_V2:
        raise ValidationError("unsupported spec")
    if not isinstance(payload.get("data"), dict):
        raise ValidationError("invalid card data", user_message="invalid character card")

    try:
        card = CharacterCard.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            f"invalid card data: {e.error_count()} field error(s)",
            user_message="invalid character card",
        ) from e

    return card.model_copy(update={"avatar_uri": image_uri or ""})


def build_card_json(
    character: Union[Character, CharacterData],
    creator: str = DEFAULT_CREATOR,
    character_version: str = DEFAULT_CHARACTER_VERSION,
) -> str:
    """Serialize the exported V2 payload for a character."""
    card = character_to_card(character, creator, character_version)
    payload = card.model_dump(mode="json", include={"spec": True, "spec_version": True, "data": EXPORT_FIELDS})
    return json.dumps(payload, ensure_ascii=False)


def insert_text_chunk(chunks: List[Chunk], new_chunk: Chunk, keyword: str = CARD_KEYWORD) -> List[Chunk]:
    """
    Return a new chunk list with new_chunk placed immediately before IEND.

    tEXt chunks already using the same keyword are dropped.
    """
    keyword_bytes = keyword.encode("latin-1")
    kept = [
        chunk for chunk in chunks
        if not (chunk.type == TEXT and chunk.data.split(b"\x00", 1)[0] == keyword_bytes)
    ]
    iend_index = max(i for i, chunk in enumerate(kept) if chunk.type == IEND)
    return kept[:iend_index] + [new_chunk] + kept[iend_index:]


def encode_card(
    character: Union[Character, CharacterData],
    base_image_bytes: bytes,
    creator: str = DEFAULT_CREATOR,
    character_version: str = DEFAULT_CHARACTER_VERSION,
) -> bytes:
    """
    Embed a character into a PNG as a V2 card.

    Args:
        character: Application character (or just its data)
        base_image_bytes: PNG to carry the card; pixels are untouched
        creator: Creator name stamped on the card
        character_version: Version stamped on the card

    Returns:
        PNG bytes with a "chara" tEXt chunk before IEND

    Raises:
        FormatError: base_image_bytes is not a well-formed PNG
    """
    chunks = parse_chunks(base_image_bytes)

    card_json = build_card_json(character, creator, character_version)
    encoded = base64.b64encode(card_json.encode("utf-8")).decode("ascii")
    text_chunk = make_text_chunk(CARD_KEYWORD, encoded)

    return serialize_chunks(insert_text_chunk(chunks, text_chunk))
