"""
Recover the statistics metadata from a .rofl replay.

Each extractor takes the raw file bytes and either returns a DecodedMetadata
or raises a ReplayDecodeError. They never share state and never combine
partial results: the caller tries them in order (see EXTRACTORS).
"""

import json
import logging
import re
import zlib
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from rofl_binary import (
    FileHeader,
    decode_header,
    decode_json_bytes,
    find_deflate_headers,
    inflate,
    printable_strings,
    unescape_json_fragment,
    validate_header_bounds,
)
from rofl_errors import (
    MetadataDecompressionFailure,
    MetadataParseFailure,
    NoEmbeddedArrayFound,
    NoPlayerData,
)

logger = logging.getLogger(__name__)

# Field holding the per-player statistics array (a JSON string inside the metadata object)
STATS_FIELD = 'statsJson'

# A decompressed block is only accepted if it mentions one of these
METADATA_MARKERS = (b'gameLength', b'participants', b'statsJson')

# Uncompressed metadata objects open with one of these keys
_PLAIN_JSON_START_RE = re.compile(rb'\{"(?:gameLength|lastGameChunkId|statsJson|participants)"')

# Keys that identify a lone player record (strict path metadata is sometimes just the owner)
_PLAYER_RECORD_KEYS = ('CHAMPIONS_KILLED', 'GOLD_EARNED', 'RIOT_ID_GAME_NAME', 'SKIN', 'TEAM')


@dataclass(frozen=True)
class DecodedMetadata:
    """Statistics recovered by one extractor."""
    strategy: str
    records: Tuple[dict, ...]
    raw: Any
    header: Optional[FileHeader] = None
    payload_info: Any = None


def records_from_metadata(metadata: Any) -> List[dict]:
    """
    Pull the raw player records out of a decoded metadata object.

    Accepts a bare array of records, an object with a statsJson field (either
    an escaped string or an array), an object with a participants array, or a
    single player record.
    """
    if isinstance(metadata, list):
        return [r for r in metadata if isinstance(r, dict)]
    if not isinstance(metadata, dict):
        return []

    stats = metadata.get(STATS_FIELD)
    if isinstance(stats, str):
        try:
            stats = json.loads(stats)
        except ValueError as exc:
            raise MetadataParseFailure(f"Failed to parse {STATS_FIELD}: {exc}") from exc
    if isinstance(stats, list):
        return [r for r in stats if isinstance(r, dict)]

    participants = metadata.get('participants')
    if isinstance(participants, list):
        return [r for r in participants if isinstance(r, dict)]

    if any(key in metadata for key in _PLAYER_RECORD_KEYS):
        return [metadata]
    return []


def _inflate_or_json(raw: bytes, what: str) -> Any:
    """Decompress then parse raw; fall back to parsing it as plain JSON."""
    try:
        text = inflate(raw)
    except zlib.error as exc:
        try:
            return decode_json_bytes(raw)
        except ValueError:
            raise MetadataDecompressionFailure(f"Could not decompress {what}: {exc}") from exc
    try:
        return decode_json_bytes(text)
    except ValueError as exc:
        raise MetadataParseFailure(f"Failed to parse {what}: {exc}") from exc


def _decode_payload_header(data: bytes, header: FileHeader) -> Any:
    """Best-effort decode of the payload header region; None when absent or unreadable."""
    if header.payload_header_length == 0:
        return None
    start = header.payload_header_offset
    raw = data[start:start + header.payload_header_length]
    try:
        return _inflate_or_json(raw, 'payload header')
    except (MetadataDecompressionFailure, MetadataParseFailure) as exc:
        logger.debug("Payload header not decodable: %s", exc)
        return None


def extract_strict_offset(data: bytes) -> DecodedMetadata:
    """Read metadata_length bytes at metadata_offset and inflate (or parse) them."""
    header = decode_header(data)
    validate_header_bounds(header, len(data))

    start = header.metadata_offset
    raw = data[start:start + header.metadata_length]
    metadata = _inflate_or_json(raw, 'metadata')

    records = records_from_metadata(metadata)
    if not records:
        raise NoPlayerData("Metadata block contains no player records")

    logger.debug("Strict offset decode: %d records at offset %d", len(records), start)
    return DecodedMetadata(
        strategy='strict_offset',
        records=tuple(records),
        raw=metadata,
        header=header,
        payload_info=_decode_payload_header(data, header),
    )


def scan_compressed_blocks(data: bytes, markers: Tuple[bytes, ...] = METADATA_MARKERS) -> DecodedMetadata:
    """
    Scan the whole file for zlib stream headers and inflate from each one.

    The first block that decompresses, mentions a marker and parses as JSON is
    accepted; the scan stops there.
    """
    view = memoryview(data)
    candidates = 0
    last_error = None

    for offset in find_deflate_headers(data):
        candidates += 1
        try:
            text = inflate(view[offset:])
        except zlib.error:
            continue
        if not any(marker in text for marker in markers):
            continue
        try:
            metadata = decode_json_bytes(text)
        except ValueError as exc:
            last_error = MetadataParseFailure(f"Compressed block at {offset} is not valid JSON: {exc}")
            continue

        records = records_from_metadata(metadata)
        if not records:
            raise NoPlayerData(f"Compressed block at {offset} contains no player records")
        logger.debug("Compressed block at offset %d (%d candidates tried)", offset, candidates)
        return DecodedMetadata(strategy='compressed_block_scan', records=tuple(records), raw=metadata)

    if last_error is not None:
        raise last_error
    raise MetadataDecompressionFailure(f"No metadata block among {candidates} compressed stream candidates")


def scan_plain_json(data: bytes) -> DecodedMetadata:
    """Find an uncompressed metadata object (e.g. {"gameLength": ...}) and decode it."""
    decoder = json.JSONDecoder()
    last_error = None

    for match in _PLAIN_JSON_START_RE.finditer(data):
        text = bytes(data[match.start():]).decode('utf-8', errors='replace')
        try:
            metadata, _ = decoder.raw_decode(text)
        except ValueError as exc:
            last_error = MetadataParseFailure(f"JSON object at {match.start()} did not parse: {exc}")
            continue

        records = records_from_metadata(metadata)
        if not records:
            raise NoPlayerData(f"JSON object at {match.start()} contains no player records")
        logger.debug("Plain JSON metadata at offset %d", match.start())
        return DecodedMetadata(strategy='plain_json_scan', records=tuple(records), raw=metadata)

    if last_error is not None:
        raise last_error
    raise NoEmbeddedArrayFound("No uncompressed metadata object found")


def _enclosing_object(run: str, field_pos: int, field: str, max_tries: int = 8) -> Optional[dict]:
    """The JSON object around field_pos in run (gameLength etc.), or None if the run cuts it off."""
    decoder = json.JSONDecoder()
    start = run.rfind('{', 0, field_pos + 1)
    for _ in range(max_tries):
        if start == -1:
            break
        try:
            obj, _end = decoder.raw_decode(run, start)
        except ValueError:
            start = run.rfind('{', 0, start)
            continue
        if isinstance(obj, dict) and field in obj:
            return obj
        start = run.rfind('{', 0, start)
    return None


def extract_escaped_stats_json(data: bytes, field: str = STATS_FIELD) -> DecodedMetadata:
    """
    Locate an escaped JSON array stored as a string value and parse it.

    Works like `strings FILE | grep statsJson`: printable runs that mention the
    field are searched for "field":"[ ... ]" with a non-greedy match, the
    array is unescaped once and parsed.
    """
    pattern = re.compile(r'"%s":"(\[.*?\])"' % re.escape(field))

    for run in printable_strings(data):
        if field not in run:
            continue
        match = pattern.search(run)
        if not match:
            continue

        unescaped = unescape_json_fragment(match.group(1))
        try:
            players = json.loads(unescaped)
        except ValueError as exc:
            raise MetadataParseFailure(f"Failed to parse player data: {exc}") from exc
        if not isinstance(players, list):
            raise MetadataParseFailure(f"{field} is not an array")

        records = [p for p in players if isinstance(p, dict)]
        if not records:
            raise NoPlayerData("No player data found")
        logger.debug("Found %d players in %s", len(records), field)

        metadata = _enclosing_object(run, match.start(), field)
        if metadata is None:
            raw = players
        else:
            raw = dict(metadata)
            raw[field] = players
        return DecodedMetadata(strategy='escaped_stats_json', records=tuple(records), raw=raw)

    raise NoEmbeddedArrayFound(f"No {field} array found")


Extractor = Callable[[bytes], DecodedMetadata]

# Priority order: richest roster first, structural fidelity second
EXTRACTORS: Tuple[Tuple[str, Extractor], ...] = (
    ('escaped_stats_json', extract_escaped_stats_json),
    ('strict_offset', extract_strict_offset),
    ('compressed_block_scan', scan_compressed_blocks),
    ('plain_json_scan', scan_plain_json),
)
