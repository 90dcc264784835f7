"""
Replay analysis functions: team split and derived match metadata.
These functions operate on already-decoded player records.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from item_lookup import ItemLookup
from player_records import PlayerRecord, parse_int
from rofl_binary import find_version_string

BLUE_TEAM = 100
RED_TEAM = 200

UNKNOWN = 'Unknown'

# e.g. NA1-1234567890.rofl
REPLAY_FILENAME_RE = re.compile(r'^([A-Z0-9]+)-([0-9]+)(?:\.[^.]+)?$', re.IGNORECASE)

METADATA_VERSION_FIELDS = ('gameVersion', 'GAME_VERSION', 'version', 'matchVersion', 'clientVersion')
_METADATA_VERSION_RE = re.compile(r'\d+\.\d+(\.\d+)*')

# Searched in order over the raw file bytes
VERSION_PATTERNS = (
    rb'(\d+\.\d+\.\d+\.\d+)',
    rb'(\d+\.\d+\.\d+)',
    rb'GameVersion-([\d.]+)',
    rb'"gameVersion":\s*"([\d.]+)"',
)

# Queue ids used when the metadata has none
RANKED_SOLO_QUEUE = 420
NORMAL_DRAFT_QUEUE = 400


@dataclass(frozen=True)
class TeamSplit:
    blue_team: Tuple[PlayerRecord, ...] = field(default_factory=tuple)
    red_team: Tuple[PlayerRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            'blue_team': [p.to_dict() for p in self.blue_team],
            'red_team': [p.to_dict() for p in self.red_team],
        }


def organize_teams(players: Sequence[PlayerRecord]) -> TeamSplit:
    """Split players by team id (100 blue, 200 red). Other team ids are left out."""
    blue = tuple(p for p in players if p.team == BLUE_TEAM)
    red = tuple(p for p in players if p.team == RED_TEAM)
    return TeamSplit(blue_team=blue, red_team=red)


def format_duration(seconds: Optional[int]) -> str:
    """Convert seconds to mm:ss format"""
    if not seconds:
        return "00:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins:02d}:{secs:02d}"


def parse_replay_filename(filename: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Return (region, match_id) from names like LA1-1635295663.rofl."""
    if not filename:
        return None, None
    match = REPLAY_FILENAME_RE.match(filename)
    if not match:
        return None, None
    return match.group(1).upper(), match.group(2)


def extract_patch_number(full_version: Optional[str]) -> str:
    """'15.14.695.3589' -> '15.14'"""
    if not full_version or full_version == UNKNOWN:
        return UNKNOWN
    parts = full_version.split('.')
    if len(parts) >= 2:
        return f"{parts[0]}.{parts[1]}"
    return UNKNOWN


def _meta_get(sources: Sequence[Any], *keys: str) -> Any:
    """First non-empty value for any of keys across the given dicts."""
    for source in sources:
        if not isinstance(source, dict):
            continue
        for key in keys:
            value = source.get(key)
            if value is not None and value != '':
                return value
    return None


def infer_game_version(sources: Sequence[Any], data: bytes = b'') -> Tuple[str, str]:
    """Return (full_version, patch) from metadata fields, then from the raw bytes."""
    for source in sources:
        if not isinstance(source, dict):
            continue
        for key in METADATA_VERSION_FIELDS:
            version = source.get(key)
            if isinstance(version, str) and _METADATA_VERSION_RE.search(version):
                return version, extract_patch_number(version)

    for pattern in VERSION_PATTERNS:
        version = find_version_string(data, pattern)
        if version:
            return version, extract_patch_number(version)
    return UNKNOWN, UNKNOWN


def infer_queue_id(owner: PlayerRecord, sources: Sequence[Any]) -> int:
    queue_id = parse_int(_meta_get(sources, 'QUEUE_ID', 'queueId'))
    if queue_id is not None:
        return queue_id
    # A lane assignment only exists in role-based queues
    if owner.position:
        return RANKED_SOLO_QUEUE
    return NORMAL_DRAFT_QUEUE


def determine_game_mode(sources: Sequence[Any]) -> str:
    mode = _meta_get(sources, 'GAME_MODE', 'gameMode')
    if mode:
        return str(mode)
    if str(_meta_get(sources, 'GAME_ENDED_IN_SURRENDER')) == '1':
        return 'Classic (Surrender)'
    if str(_meta_get(sources, 'GAME_ENDED_IN_EARLY_SURRENDER')) == '1':
        return 'Classic (Early Surrender)'
    return 'Classic'


def infer_game_duration(owner: PlayerRecord, sources: Sequence[Any]) -> Optional[int]:
    """Seconds played: the owner's TIME_PLAYED, else gameLength (milliseconds)."""
    if owner.time_played:
        return owner.time_played
    game_length = _meta_get(sources, 'gameLength', 'gameDuration')
    if isinstance(game_length, (int, float)) and not isinstance(game_length, bool) and game_length > 0:
        return int(round(game_length / 1000.0))
    return None


def build_game_info(
    owner: PlayerRecord,
    owner_raw: Optional[dict],
    metadata: Any,
    data: bytes = b'',
    filename: Optional[str] = None,
    item_lookup: Optional[ItemLookup] = None,
) -> Dict[str, Any]:
    """Owner's statistics plus derived match metadata. Missing values become 'Unknown' or None."""
    lookup = item_lookup or ItemLookup()
    sources = (owner_raw, metadata)

    region, match_id = parse_replay_filename(filename)
    game_id = match_id or _meta_get(sources, 'gameId', 'matchId', 'ID')
    full_version, patch = infer_game_version(sources, data)
    duration = infer_game_duration(owner, sources)

    info = owner.to_dict()
    info.update({
        'champion': owner.champion or UNKNOWN,
        'champion_image_url': lookup.champion_image_url(owner.champion),
        'summoner_name': owner.summoner_name or '',
        'summoner_tag': owner.summoner_tag or '',
        'items': [lookup.describe(item.slot, item.item_id) for item in owner.items],
        'game_id': str(game_id) if game_id is not None else None,
        'region': region,
        'game_duration': duration,
        'game_duration_formatted': format_duration(duration),
        'game_version': full_version,
        'patch': patch,
        'game_mode': determine_game_mode(sources),
        'queue_id': infer_queue_id(owner, sources),
        'map_id': _meta_get(sources, 'mapId'),
    })
    return info
