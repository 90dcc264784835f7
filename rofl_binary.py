"""
Low-level byte helpers for League of Legends .rofl replay files.

ROFL header layout (little-endian throughout):

    magic                  6 bytes   "RIOT" followed by two format bytes
    signature_length       uint8
    signature              signature_length bytes
    header_length          uint32
    file_length            uint32
    metadata_offset        uint32
    metadata_length        uint32
    payload_header_offset  uint32
    payload_header_length  uint32
    payload_offset         uint32
"""

import json
import re
import struct
import zlib
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from rofl_errors import InvalidMagic, TruncatedHeader, UnusableHeader

MAGIC = b'RIOT'
MAGIC_FIELD_LEN = 6
HEADER_FIELDS = struct.Struct('<7I')

# zlib stream headers: CMF 0x78 with the four standard FLG values
DEFLATE_HEADERS = (b'\x78\x01', b'\x78\x5e', b'\x78\x9c', b'\x78\xda')
_DEFLATE_HEADER_RE = re.compile(rb'\x78[\x01\x5e\x9c\xda]')

# Printable ASCII plus tab, like `strings`, widened to UTF-8 multibyte sequences
# so that accented player names do not split a run
_PRINTABLE_RUN = rb'[\x20-\x7e\t\x80-\xff]{%d,}'
_PRINTABLE_RUN_RE = re.compile(_PRINTABLE_RUN % 4)


@dataclass(frozen=True)
class FileHeader:
    magic: bytes
    signature_length: int
    signature: bytes
    header_length: int
    file_length: int
    metadata_offset: int
    metadata_length: int
    payload_header_offset: int
    payload_header_length: int
    payload_offset: int

    @property
    def end_of_header(self) -> int:
        return MAGIC_FIELD_LEN + 1 + self.signature_length + HEADER_FIELDS.size

    def to_dict(self) -> dict:
        return {
            'magic': self.magic.decode('ascii', errors='replace'),
            'signature_length': self.signature_length,
            'signature': self.signature.hex(),
            'header_length': self.header_length,
            'file_length': self.file_length,
            'metadata_offset': self.metadata_offset,
            'metadata_length': self.metadata_length,
            'payload_header_offset': self.payload_header_offset,
            'payload_header_length': self.payload_header_length,
            'payload_offset': self.payload_offset,
        }


def check_magic(data: bytes) -> bytes:
    """Return the magic field if the data starts with the RIOT tag."""
    if len(data) < len(MAGIC) or data[:len(MAGIC)] != MAGIC:
        raise InvalidMagic(f"Invalid ROFL file format. Magic header: {bytes(data[:MAGIC_FIELD_LEN])!r}")
    return bytes(data[:MAGIC_FIELD_LEN])


def decode_header(data: bytes) -> FileHeader:
    """
    Decode the fixed-layout prefix of a replay.

    Only checks that the bytes exist; offsets are not checked against the
    file size here (see validate_header_bounds).
    """
    magic = check_magic(data)
    pos = MAGIC_FIELD_LEN
    if pos + 1 > len(data):
        raise TruncatedHeader("Truncated header: missing signature length")
    signature_length = data[pos]
    pos += 1
    if pos + signature_length > len(data):
        raise TruncatedHeader(f"Truncated header: signature needs {signature_length} bytes")
    signature = bytes(data[pos:pos + signature_length])
    pos += signature_length
    if pos + HEADER_FIELDS.size > len(data):
        raise TruncatedHeader("Truncated header: could not read header fields")

    values = HEADER_FIELDS.unpack_from(data, pos)
    return FileHeader(magic, signature_length, signature, *values)


def _region_fits(offset: int, length: int, limit: int) -> bool:
    return offset + length <= limit


def validate_header_bounds(header: FileHeader, data_len: int) -> None:
    """Raise UnusableHeader unless every region lies inside the file."""
    limit = header.file_length
    if limit == 0 or limit > data_len:
        raise UnusableHeader(f"Header file_length {limit} does not match actual size {data_len}")
    if header.metadata_length == 0 or header.metadata_offset < header.end_of_header:
        raise UnusableHeader("Header has no metadata region")
    regions = (
        ('metadata', header.metadata_offset, header.metadata_length),
        ('payload header', header.payload_header_offset, header.payload_header_length),
        ('payload', header.payload_offset, 0),
    )
    for name, offset, length in regions:
        if not _region_fits(offset, length, limit):
            raise UnusableHeader(f"Header {name} region {offset}+{length} exceeds file length {limit}")


def inflate(data: bytes) -> bytes:
    """
    Decompress one zlib (or gzip) stream from the start of data.

    Bytes after the end of the stream are ignored. Raises zlib.error if the
    stream is corrupt or ends early.
    """
    decompressor = zlib.decompressobj(zlib.MAX_WBITS | 32)
    out = decompressor.decompress(data) + decompressor.flush()
    if not decompressor.eof:
        raise zlib.error("Incomplete compressed stream")
    return out


def find_deflate_headers(data: bytes) -> Iterator[int]:
    """Yield the offset of every zlib stream header, in one pass over data."""
    for match in _DEFLATE_HEADER_RE.finditer(data):
        yield match.start()


def printable_strings(data: bytes, min_length: int = 4) -> Iterator[str]:
    """Yield printable text runs of at least min_length bytes, decoded as UTF-8."""
    if min_length == 4:
        pattern = _PRINTABLE_RUN_RE
    else:
        pattern = re.compile(_PRINTABLE_RUN % min_length)
    for match in pattern.finditer(data):
        yield match.group().decode('utf-8', errors='replace')


def unescape_json_fragment(text: str) -> str:
    """Undo one level of JSON string escaping (\\" -> " then \\\\ -> \\)."""
    return text.replace('\\"', '"').replace('\\\\', '\\')


def decode_json_bytes(raw: bytes) -> Any:
    """Parse UTF-8 JSON text, tolerating a BOM and trailing NUL padding."""
    text = bytes(raw).decode('utf-8-sig').rstrip('\x00').strip()
    if not text:
        raise ValueError("Empty JSON text")
    return json.loads(text)


def find_version_string(data: bytes, pattern: bytes) -> Optional[str]:
    """Return the first group of pattern found in data."""
    match = re.search(pattern, data)
    if not match:
        return None
    found = match.group(1) if match.groups() else match.group(0)
    return found.decode('ascii', errors='replace')
