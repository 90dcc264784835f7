"""
Canonical player records.

Raw statistics come either from the replay's statsJson array (upper-case
keys like CHAMPIONS_KILLED, every value a string) or from a match-API style
participants array (camelCase keys, native ints and bools). normalize_player
maps both onto PlayerRecord and never raises.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

ITEM_SLOTS = 7
EMPTY_ITEM = '0'
WIN_TOKEN = 'Win'

# Canonical field -> raw keys, in lookup order
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    'summoner_name': ('RIOT_ID_GAME_NAME', 'riotIdGameName', 'summonerName', 'NAME'),
    'summoner_tag': ('RIOT_ID_TAG_LINE', 'riotIdTagline', 'riotIdTagLine'),
    'champion': ('SKIN', 'championName'),
    'level': ('LEVEL', 'champLevel'),
    'kills': ('CHAMPIONS_KILLED', 'kills'),
    'deaths': ('NUM_DEATHS', 'deaths'),
    'assists': ('ASSISTS', 'assists'),
    'gold_earned': ('GOLD_EARNED', 'goldEarned'),
    'cs': ('MINIONS_KILLED', 'totalMinionsKilled', 'cs'),
    'vision_score': ('VISION_SCORE', 'visionScore'),
    'damage_dealt': ('TOTAL_DAMAGE_DEALT_TO_CHAMPIONS', 'totalDamageDealtToChampions'),
    'team': ('TEAM', 'teamId'),
    'position': ('INDIVIDUAL_POSITION', 'TEAM_POSITION', 'individualPosition', 'teamPosition', 'role'),
    'win': ('WIN', 'win'),
    'time_played': ('TIME_PLAYED', 'timePlayed'),
    'items_purchased': ('ITEMS_PURCHASED', 'itemsPurchased'),
}

_LEADING_INT_RE = re.compile(r'\s*([-+]?\d+)')


@dataclass(frozen=True)
class ItemSlot:
    slot: int
    item_id: int

    def to_dict(self) -> dict:
        return {'slot': self.slot, 'item_id': self.item_id}


@dataclass(frozen=True)
class PlayerRecord:
    summoner_name: Optional[str] = None
    summoner_tag: Optional[str] = None
    champion: Optional[str] = None
    level: Optional[int] = None
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gold_earned: int = 0
    cs: int = 0
    vision_score: int = 0
    damage_dealt: int = 0
    team: Optional[int] = None
    position: Optional[str] = None
    items: Tuple[ItemSlot, ...] = field(default_factory=tuple)
    win: bool = False
    time_played: int = 0
    items_purchased: int = 0

    @property
    def display_name(self) -> str:
        name = self.summoner_name or 'Unknown'
        return f"{name}#{self.summoner_tag}" if self.summoner_tag else name

    def to_dict(self) -> dict:
        return {
            'summoner_name': self.summoner_name,
            'summoner_tag': self.summoner_tag,
            'champion': self.champion,
            'level': self.level,
            'kills': self.kills,
            'deaths': self.deaths,
            'assists': self.assists,
            'gold_earned': self.gold_earned,
            'cs': self.cs,
            'vision_score': self.vision_score,
            'damage_dealt': self.damage_dealt,
            'team': self.team,
            'position': self.position,
            'items': [item.to_dict() for item in self.items],
            'win': self.win,
            'time_played': self.time_played,
            'items_purchased': self.items_purchased,
        }


def _fold(key: Any) -> str:
    return str(key).replace('_', '').lower()


def _folded(raw: dict) -> Dict[str, Any]:
    """Index a raw record by case- and underscore-insensitive key (first key wins)."""
    folded: Dict[str, Any] = {}
    for key, value in raw.items():
        folded.setdefault(_fold(key), value)
    return folded


def _lookup(folded: Dict[str, Any], aliases: Iterable[str]) -> Any:
    for alias in aliases:
        value = folded.get(_fold(alias))
        if value is not None and value != '':
            return value
    return None


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: 12, '12', ' 12 ', '12abc' and 12.7 all give 12; else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        return int(value)
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # digit strings past the interpreter's int conversion limit
        return None


def _int_or_zero(value: Any) -> int:
    parsed = parse_int(value)
    return parsed if parsed is not None else 0


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_items(raw: dict, slots: int = ITEM_SLOTS) -> Tuple[ItemSlot, ...]:
    """Item slots ITEM0..ITEM6 in order, skipping empty and "0" slots."""
    folded = _folded(raw)
    items: List[ItemSlot] = []
    for slot in range(slots):
        value = folded.get(f'item{slot}')
        if value is None or isinstance(value, bool):
            continue
        text = str(value).strip()
        if not text or text == EMPTY_ITEM:
            continue
        try:
            item_id = int(text)
        except ValueError:
            continue
        if item_id == 0:
            continue
        items.append(ItemSlot(slot=slot, item_id=item_id))
    return tuple(items)


def _win(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return value == WIN_TOKEN


def normalize_player(raw: Any) -> PlayerRecord:
    """Convert one raw statistics record into a PlayerRecord. Never raises."""
    if not isinstance(raw, dict):
        return PlayerRecord()
    folded = _folded(raw)

    def get(name):
        return _lookup(folded, FIELD_ALIASES[name])

    return PlayerRecord(
        summoner_name=_text(get('summoner_name')),
        summoner_tag=_text(get('summoner_tag')),
        champion=_text(get('champion')),
        level=parse_int(get('level')),
        kills=_int_or_zero(get('kills')),
        deaths=_int_or_zero(get('deaths')),
        assists=_int_or_zero(get('assists')),
        gold_earned=_int_or_zero(get('gold_earned')),
        cs=_int_or_zero(get('cs')),
        vision_score=_int_or_zero(get('vision_score')),
        damage_dealt=_int_or_zero(get('damage_dealt')),
        team=parse_int(get('team')),
        position=_text(get('position')),
        items=extract_items(folded),
        win=_win(get('win')),
        time_played=_int_or_zero(get('time_played')),
        items_purchased=_int_or_zero(get('items_purchased')),
    )


def has_statistics(raw: Any) -> bool:
    """True if raw is a dict holding at least one known statistics field."""
    if not isinstance(raw, dict):
        return False
    folded = _folded(raw)
    return any(_lookup(folded, aliases) is not None for aliases in FIELD_ALIASES.values())


def normalize_players(records: Iterable[Any]) -> List[PlayerRecord]:
    return [normalize_player(r) for r in records]
