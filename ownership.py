"""
Pick the replay owner ("main player") out of the decoded roster.

Nothing in the replay marks which record belongs to the person who saved
it. Each player gets an ownership score built from identity completeness,
activity and build completeness; the highest score wins and ties go to the
player that appears first. The weights are empirical defaults, kept in
OwnershipWeights so they can be tuned without touching the selection.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from player_records import PlayerRecord
from rofl_errors import NoPlayerData

logger = logging.getLogger(__name__)

TraceHook = Callable[[str, Any], None]


@dataclass(frozen=True)
class OwnershipWeights:
    # identity completeness
    name_present: float = 1
    tag_present: float = 1
    # activity: bonus when the stat is strictly above its threshold
    gold_threshold: int = 10000
    gold_bonus: float = 3
    kill_participation_threshold: int = 5
    kill_participation_bonus: float = 2
    cs_threshold: int = 100
    cs_bonus: float = 2
    damage_threshold: int = 15000
    damage_bonus: float = 2
    vision_threshold: int = 20
    vision_bonus: float = 1
    deaths_threshold: int = 10
    deaths_penalty: float = 1
    # build completeness
    per_item: float = 1.5
    full_build_items: int = 6
    full_build_bonus: float = 5


DEFAULT_WEIGHTS = OwnershipWeights()


@dataclass(frozen=True)
class OwnershipScore:
    player: PlayerRecord
    score: float
    original_index: int

    def to_dict(self) -> dict:
        return {
            'player': self.player.display_name,
            'champion': self.player.champion,
            'score': self.score,
            'original_index': self.original_index,
        }


def score_player(player: PlayerRecord, weights: OwnershipWeights = DEFAULT_WEIGHTS) -> float:
    """Ownership score for one player. Higher means more likely the replay owner."""
    score = 0.0
    if player.summoner_name:
        score += weights.name_present
    if player.summoner_tag:
        score += weights.tag_present

    if player.gold_earned > weights.gold_threshold:
        score += weights.gold_bonus
    if player.kills + player.assists > weights.kill_participation_threshold:
        score += weights.kill_participation_bonus
    if player.cs > weights.cs_threshold:
        score += weights.cs_bonus
    if player.damage_dealt > weights.damage_threshold:
        score += weights.damage_bonus
    if player.vision_score > weights.vision_threshold:
        score += weights.vision_bonus
    if player.deaths > weights.deaths_threshold:
        score -= weights.deaths_penalty

    item_count = len(player.items)
    score += item_count * weights.per_item
    if item_count >= weights.full_build_items:
        score += weights.full_build_bonus
    return score


def score_players(players: Sequence[PlayerRecord],
                  weights: OwnershipWeights = DEFAULT_WEIGHTS) -> List[OwnershipScore]:
    """Scores in original roster order."""
    return [
        OwnershipScore(player=player, score=score_player(player, weights), original_index=index)
        for index, player in enumerate(players)
    ]


def rank_scores(scores: Sequence[OwnershipScore]) -> List[OwnershipScore]:
    """Highest score first. sorted() is stable, so equal scores keep roster order."""
    return sorted(scores, key=lambda s: -s.score)


def format_score_table(ranked: Sequence[OwnershipScore]) -> List[str]:
    lines = []
    for rank, scored in enumerate(ranked, start=1):
        p = scored.player
        lines.append(
            f"{rank}. {p.display_name} ({p.champion or 'Unknown'}) - Score: {scored.score:g} "
            f"[Gold: {p.gold_earned}, Items: {len(p.items)}, Original pos: {scored.original_index + 1}]"
        )
    return lines


def select_main_player(players: Sequence[PlayerRecord],
                       weights: OwnershipWeights = DEFAULT_WEIGHTS,
                       trace: Optional[TraceHook] = None) -> OwnershipScore:
    """Return the OwnershipScore of the most likely replay owner."""
    if not players:
        raise NoPlayerData("No player data found")

    ranked = rank_scores(score_players(players, weights))
    if logger.isEnabledFor(logging.DEBUG):
        for line in format_score_table(ranked):
            logger.debug("ownership %s", line)
    if trace is not None:
        trace('score_table', ranked)
    return ranked[0]
