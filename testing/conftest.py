"""Shared fixtures for character card tests."""

import base64
import json
import struct
import zlib
from io import BytesIO

import pytest
from PIL import Image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def raw_chunk(chunk_type: bytes, data: bytes) -> bytes:
    """Encode one chunk with a correct CRC."""
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def ihdr_chunk(width: int = 1, height: int = 1) -> bytes:
    return raw_chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0))


def text_chunk(keyword: str, text: str) -> bytes:
    return raw_chunk(b"tEXt", keyword.encode("latin-1") + b"\x00" + text.encode("latin-1"))


def iend_chunk() -> bytes:
    return raw_chunk(b"IEND", b"")


def card_png(payload, base: bytes = None, keyword: str = "chara") -> bytes:
    """Minimal PNG carrying payload (dict or raw str) as a base64 text chunk."""
    if not isinstance(payload, str):
        payload = json.dumps(payload)
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    return PNG_SIGNATURE + ihdr_chunk() + text_chunk(keyword, encoded) + iend_chunk()


@pytest.fixture
def minimal_png() -> bytes:
    """Signature + IHDR + IEND, no text chunks."""
    return PNG_SIGNATURE + ihdr_chunk() + iend_chunk()


@pytest.fixture
def pillow_png() -> bytes:
    """A real, viewable 4x4 image."""
    image = Image.new("RGB", (4, 4), color=(200, 40, 90))
    image.putpixel((1, 2), (0, 255, 0))
    output = BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def nova_data() -> dict:
    return {
        "name": "Nova",
        "description": "",
        "personality": "",
        "scenario": "",
        "firstMessage": "Hi!",
        "systemPrompt": "",
        "creatorNotes": "",
        "tags": [],
    }


@pytest.fixture
def full_card_payload() -> dict:
    return {
        "spec": "chara_card_v2",
        "spec_version": "2.0",
        "data": {
            "name": "Captain Mira",
            "description": "A starship captain with a dry wit.",
            "personality": "calm, sarcastic, loyal",
            "scenario": "The bridge of the Kestrel, mid-jump.",
            "first_mes": "Strap in. This jump is going to be rough.",
            "mes_example": "<START>\n{{char}}: Coffee first, questions later.",
            "avatar": "none",
            "system_prompt": "Stay in character.",
            "post_history_instructions": "Keep replies short.",
            "creator_notes": "Best with slow-burn plots.",
            "character_version": "3.1",
            "tags": ["sci-fi", "captain"],
            "creator": "someone",
            "alternate_greetings": ["Welcome aboard.", "You're late."],
            "character_book": {"entries": [{"keys": ["Kestrel"], "content": "Her ship."}]},
            "extensions": {"talkativeness": "0.5"},
        },
    }
