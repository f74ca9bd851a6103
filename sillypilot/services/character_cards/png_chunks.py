"""
PNG Chunk Model
==============

Lossless round trip between PNG bytes and an ordered list of chunks.

Only the chunk framing is interpreted (length, type, data, CRC). Pixel data
is never decompressed; tEXt chunks are the only payload this module decodes.
"""

import struct
import zlib
from dataclasses import dataclass
from typing import List, Optional, Iterable

from .errors import FormatError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

IHDR = "IHDR"
IEND = "IEND"
TEXT = "tEXt"

# length + type + crc
CHUNK_OVERHEAD = 12

MAX_KEYWORD_LENGTH = 79


@dataclass(frozen=True)
class Chunk:
    """One PNG chunk. crc is None for chunks built in memory."""
    type: str
    data: bytes
    crc: Optional[int] = None

    @property
    def length(self) -> int:
        return len(self.data)

    def computed_crc(self) -> int:
        return compute_crc(self.type, self.data)

    def crc_valid(self) -> bool:
        """True when the stored CRC matches type+data (new chunks are always valid)."""
        return self.crc is None or self.crc == self.computed_crc()


@dataclass(frozen=True)
class TextChunkEntry:
    """Decoded tEXt chunk."""
    keyword: str
    text: str


def compute_crc(chunk_type: str, data: bytes) -> int:
    """CRC-32 over the chunk type and data, as stored in the PNG trailer."""
    return zlib.crc32(data, zlib.crc32(chunk_type.encode("ascii"))) & 0xFFFFFFFF


def _read_uint32(buffer: bytes, offset: int) -> int:
    return struct.unpack_from(">I", buffer, offset)[0]


def parse_chunks(buffer: bytes) -> List[Chunk]:
    """
    Parse PNG bytes into chunks, in file order.

    Args:
        buffer: Complete PNG file contents

    Returns:
        List of chunks, first IHDR and last IEND

    Raises:
        FormatError: Bad signature, truncated chunk, or missing IHDR/IEND
    """
    buffer = bytes(buffer)
    if buffer[:8] != PNG_SIGNATURE:
        raise FormatError("invalid header")

    chunks: List[Chunk] = []
    offset = len(PNG_SIGNATURE)
    end = len(buffer)

    while offset < end:
        if offset + 8 > end:
            raise FormatError("truncated chunk")

        length = _read_uint32(buffer, offset)
        try:
            chunk_type = buffer[offset + 4:offset + 8].decode("ascii")
        except UnicodeDecodeError:
            raise FormatError("invalid chunk type")

        data_start = offset + 8
        data_end = data_start + length
        if data_end + 4 > end:
            raise FormatError("truncated chunk")

        crc = _read_uint32(buffer, data_end)
        chunk = Chunk(type=chunk_type, data=buffer[data_start:data_end], crc=crc)

        if not chunks and chunk.type != IHDR:
            raise FormatError("missing IHDR")

        chunks.append(chunk)
        offset += CHUNK_OVERHEAD + length

    if not chunks:
        raise FormatError("no chunks")
    if chunks[-1].type != IEND:
        raise FormatError("missing IEND")

    return chunks


def serialize_chunks(chunks: Iterable[Chunk]) -> bytes:
    """
    Assemble chunks back into PNG bytes.

    Preserved CRCs are written as-is; chunks without one get a fresh CRC.
    """
    parts = [PNG_SIGNATURE]
    for chunk in chunks:
        type_bytes = chunk.type.encode("ascii")
        if len(type_bytes) != 4:
            raise FormatError(f"invalid chunk type: {chunk.type!r}")
        crc = chunk.crc if chunk.crc is not None else chunk.computed_crc()
        parts.append(struct.pack(">I", len(chunk.data)))
        parts.append(type_bytes)
        parts.append(chunk.data)
        parts.append(struct.pack(">I", crc))
    return b"".join(parts)


def decode_text_chunk(data: bytes) -> TextChunkEntry:
    """
    Split tEXt chunk data into keyword and text at the first NUL.

    Raises:
        FormatError: A second NUL appears in the text portion
    """
    keyword, separator, text = bytes(data).partition(b"\x00")
    if separator and b"\x00" in text:
        raise FormatError("embedded NUL")
    return TextChunkEntry(keyword=keyword.decode("latin-1"), text=text.decode("latin-1"))


def encode_text_chunk(keyword: str, text: str) -> bytes:
    """Build tEXt chunk data: latin-1 keyword, NUL separator, latin-1 text."""
    if not keyword or len(keyword) > MAX_KEYWORD_LENGTH or "\x00" in keyword:
        raise ValueError(f"Invalid tEXt keyword: {keyword!r}")
    if "\x00" in text:
        raise ValueError("tEXt text must not contain NUL characters")
    return keyword.encode("latin-1") + b"\x00" + text.encode("latin-1")


def make_text_chunk(keyword: str, text: str) -> Chunk:
    """New tEXt chunk with its CRC already computed."""
    data = encode_text_chunk(keyword, text)
    return Chunk(type=TEXT, data=data, crc=compute_crc(TEXT, data))


def read_text_entries(chunks: Iterable[Chunk]) -> List[TextChunkEntry]:
    """Decode every tEXt chunk, preserving file order."""
    return [decode_text_chunk(chunk.data) for chunk in chunks if chunk.type == TEXT]
