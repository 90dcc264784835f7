"""Tests for player record normalization."""

import pytest
from player_records import (
    ItemSlot,
    PlayerRecord,
    extract_items,
    has_statistics,
    normalize_player,
    normalize_players,
    parse_int,
)


class TestParseInt:
    """Tests for parse_int."""

    @pytest.mark.parametrize('value,expected', [
        (12, 12),
        ('12', 12),
        (' 12 ', 12),
        ('12abc', 12),
        ('-3', -3),
        (12.7, 12),
        ('abc', None),
        ('', None),
        (None, None),
        (True, None),
        (float('nan'), None),
        ('9' * 5000, None),
    ])
    def test_values(self, value, expected):
        assert parse_int(value) == expected


class TestExtractItems:
    """Tests for extract_items."""

    def test_empty_slots_skipped(self):
        """Only non-zero slots are kept, with their slot index."""
        values = ["0", "0", "1055", "0", "3078", "0", "0"]
        raw = {f'ITEM{i}': v for i, v in enumerate(values)}
        assert extract_items(raw) == (ItemSlot(2, 1055), ItemSlot(4, 3078))

    def test_slot_order(self):
        """Items come back in slot order regardless of key order."""
        raw = {'ITEM6': '3340', 'ITEM0': '1055'}
        assert [i.slot for i in extract_items(raw)] == [0, 6]

    def test_unusable_values(self):
        """Missing, empty, boolean and non-numeric slots are dropped."""
        raw = {'ITEM0': '', 'ITEM1': None, 'ITEM2': True, 'ITEM3': 'abc', 'ITEM4': 0, 'ITEM5': '3078'}
        assert extract_items(raw) == (ItemSlot(5, 3078),)

    def test_camel_case_keys(self):
        """item0..item6 from match-API records."""
        assert extract_items({'item0': 3078, 'item1': 0}) == (ItemSlot(0, 3078),)

    def test_only_seven_slots(self):
        """ITEM7 and beyond are not item slots."""
        assert extract_items({'ITEM7': '1055'}) == ()


class TestNormalizePlayer:
    """Tests for normalize_player."""

    def test_rofl_record(self, recorder):
        """Upper-case string fields become typed values."""
        player = normalize_player(recorder)

        assert player.summoner_name == 'Recorder'
        assert player.summoner_tag == 'NA1'
        assert player.champion == 'Ahri'
        assert player.level == 16
        assert (player.kills, player.deaths, player.assists) == (10, 2, 7)
        assert player.gold_earned == 15000
        assert player.cs == 210
        assert player.vision_score == 25
        assert player.damage_dealt == 28000
        assert player.team == 100
        assert player.position == 'MIDDLE'
        assert player.win is True
        assert player.time_played == 1834
        assert len(player.items) == 6

    def test_defaults(self):
        """Missing counters default to 0, level and identity to None."""
        player = normalize_player({'SKIN': 'Lux'})

        assert player.champion == 'Lux'
        assert player.summoner_name is None
        assert player.level is None
        assert player.kills == player.gold_earned == player.cs == 0
        assert player.team is None
        assert player.items == ()
        assert player.win is False

    def test_unparseable_counter(self, make_player):
        """Non-numeric counters become 0, a bad level becomes None."""
        player = normalize_player(make_player(CHAMPIONS_KILLED='lots', LEVEL='n/a'))
        assert player.kills == 0
        assert player.level is None

    def test_leading_integer(self, make_player):
        """Counters with trailing junk keep their leading digits."""
        assert normalize_player(make_player(GOLD_EARNED='12345g')).gold_earned == 12345

    def test_match_api_record(self, participants_metadata):
        """camelCase keys with native types."""
        player = normalize_player(participants_metadata['participants'][0])

        assert player.summoner_name == 'Flex'
        assert player.summoner_tag == 'KR1'
        assert player.champion == 'Garen'
        assert player.level == 15
        assert player.team == 100
        assert player.position == 'TOP'
        assert player.win is True
        assert player.items == (ItemSlot(0, 3078), ItemSlot(1, 3047))

    def test_win_token(self, make_player):
        """Only the exact "Win" string counts as a win."""
        assert normalize_player(make_player(WIN='Win')).win is True
        assert normalize_player(make_player(WIN='Fail')).win is False
        assert normalize_player(make_player(WIN='win')).win is False

    def test_position_fallback(self, make_player):
        """An empty individual position falls back to the team position."""
        player = normalize_player(make_player(INDIVIDUAL_POSITION='', TEAM_POSITION='BOTTOM'))
        assert player.position == 'BOTTOM'

    def test_oversized_number(self, make_player):
        """A digit string too long to convert counts as unparseable."""
        player = normalize_player(make_player(GOLD_EARNED='9' * 5000, LEVEL='1' * 5000))
        assert player.gold_earned == 0
        assert player.level is None

    def test_not_a_dict(self):
        """Anything but a dict yields an empty record instead of raising."""
        assert normalize_player(None) == PlayerRecord()
        assert normalize_player(['SKIN', 'Ahri']) == PlayerRecord()

    def test_display_name(self, recorder):
        assert normalize_player(recorder).display_name == 'Recorder#NA1'
        assert PlayerRecord().display_name == 'Unknown'

    def test_to_dict(self, recorder):
        """Items are exported as plain dicts."""
        exported = normalize_player(recorder).to_dict()
        assert exported['items'][0] == {'slot': 0, 'item_id': 3020}
        assert exported['team'] == 100


class TestNormalizePlayers:
    """Tests for normalize_players."""

    def test_keeps_order(self, two_players):
        players = normalize_players(two_players)
        assert [p.summoner_name for p in players] == ['Recorder', 'Opponent']


class TestHasStatistics:
    """Tests for has_statistics."""

    def test_statistics_record(self, recorder):
        assert has_statistics(recorder) is True

    def test_match_api_record(self, participants_metadata):
        assert has_statistics(participants_metadata['participants'][1]) is True

    def test_identifier_only(self):
        """A record with only unknown keys carries no statistics."""
        assert has_statistics({'puuid': 'x'}) is False

    def test_empty_values(self):
        assert has_statistics({'SKIN': '', 'TEAM': None}) is False

    def test_not_a_dict(self):
        assert has_statistics([]) is False
        assert has_statistics({}) is False
