"""Synthetic .rofl builders shared by the tests."""

import json
import struct
import zlib

import pytest

HEADER_FIELD_ORDER = (
    'header_length',
    'file_length',
    'metadata_offset',
    'metadata_length',
    'payload_header_offset',
    'payload_header_length',
    'payload_offset',
)


def build_rofl(metadata=b'', *, payload_header=b'', payload=b'', signature=b'SIG!',
               magic=b'RIOT\x00\x02', overrides=None):
    """Lay out magic, signature, header fields, payload header, metadata, payload."""
    header_end = len(magic) + 1 + len(signature) + 28
    payload_header_offset = header_end
    metadata_offset = payload_header_offset + len(payload_header)
    payload_offset = metadata_offset + len(metadata)
    fields = {
        'header_length': header_end,
        'file_length': payload_offset + len(payload),
        'metadata_offset': metadata_offset,
        'metadata_length': len(metadata),
        'payload_header_offset': payload_header_offset,
        'payload_header_length': len(payload_header),
        'payload_offset': payload_offset,
    }
    fields.update(overrides or {})
    packed = struct.pack('<7I', *(fields[name] for name in HEADER_FIELD_ORDER))
    return magic + bytes([len(signature)]) + signature + packed + payload_header + metadata + payload


def stats_json_blob(players, **extra):
    """Metadata object text with players stored as an escaped statsJson string."""
    meta = {'gameLength': 1834000, 'lastGameChunkId': 30}
    meta.update(extra)
    meta['statsJson'] = json.dumps(players, separators=(',', ':'))
    return json.dumps(meta, separators=(',', ':')).encode('utf-8')


def rofl_player(**overrides):
    """A statsJson-style record: upper-case keys, every value a string."""
    record = {
        'RIOT_ID_GAME_NAME': 'Player',
        'RIOT_ID_TAG_LINE': 'NA1',
        'SKIN': 'Annie',
        'LEVEL': '12',
        'CHAMPIONS_KILLED': '0',
        'NUM_DEATHS': '0',
        'ASSISTS': '0',
        'GOLD_EARNED': '0',
        'MINIONS_KILLED': '0',
        'VISION_SCORE': '0',
        'TOTAL_DAMAGE_DEALT_TO_CHAMPIONS': '0',
        'TEAM': '100',
        'INDIVIDUAL_POSITION': 'MIDDLE',
        'WIN': 'Fail',
        'TIME_PLAYED': '1834',
    }
    for slot in range(7):
        record[f'ITEM{slot}'] = '0'
    record.update(overrides)
    return record


def recorder_player():
    """High-activity blue side player with six items."""
    items = ['3020', '6655', '4646', '3089', '3135', '1058']
    record = rofl_player(
        RIOT_ID_GAME_NAME='Recorder',
        RIOT_ID_TAG_LINE='NA1',
        SKIN='Ahri',
        LEVEL='16',
        CHAMPIONS_KILLED='10',
        NUM_DEATHS='2',
        ASSISTS='7',
        GOLD_EARNED='15000',
        MINIONS_KILLED='210',
        VISION_SCORE='25',
        TOTAL_DAMAGE_DEALT_TO_CHAMPIONS='28000',
        TEAM='100',
        WIN='Win',
    )
    for slot, item in enumerate(items):
        record[f'ITEM{slot}'] = item
    return record


def opponent_player():
    """Lower-activity red side player with two items."""
    return rofl_player(
        RIOT_ID_GAME_NAME='Opponent',
        RIOT_ID_TAG_LINE='EUW',
        SKIN='Zed',
        LEVEL='13',
        CHAMPIONS_KILLED='2',
        NUM_DEATHS='6',
        ASSISTS='1',
        GOLD_EARNED='8000',
        MINIONS_KILLED='90',
        VISION_SCORE='10',
        TOTAL_DAMAGE_DEALT_TO_CHAMPIONS='9000',
        TEAM='200',
        INDIVIDUAL_POSITION='JUNGLE',
        ITEM0='1055',
        ITEM1='1036',
    )


@pytest.fixture
def two_players():
    return [recorder_player(), opponent_player()]


@pytest.fixture
def participants_metadata():
    """Match-API style metadata: camelCase keys, native types."""
    return {
        'gameId': 4242,
        'gameLength': 1500000,
        'gameVersion': '15.14.695.3589',
        'queueId': 440,
        'participants': [
            {
                'riotIdGameName': 'Flex',
                'riotIdTagline': 'KR1',
                'championName': 'Garen',
                'champLevel': 15,
                'kills': 4,
                'deaths': 3,
                'assists': 9,
                'goldEarned': 12000,
                'totalMinionsKilled': 180,
                'visionScore': 18,
                'totalDamageDealtToChampions': 16000,
                'teamId': 100,
                'teamPosition': 'TOP',
                'win': True,
                'item0': 3078,
                'item1': 3047,
                'item2': 0,
            },
            {
                'riotIdGameName': 'Duo',
                'championName': 'Lux',
                'kills': 1,
                'deaths': 7,
                'assists': 3,
                'goldEarned': 7000,
                'teamId': 200,
                'win': False,
            },
        ],
    }


@pytest.fixture
def write_replay(tmp_path):
    """Write bytes to a replay file in tmp_path and return its path as a string."""
    def _write(data, name='NA1-1234567890.rofl'):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _write


@pytest.fixture
def compress():
    return zlib.compress


@pytest.fixture
def make_rofl():
    return build_rofl


@pytest.fixture
def make_stats_blob():
    return stats_json_blob


@pytest.fixture
def make_player():
    return rofl_player


@pytest.fixture
def recorder():
    return recorder_player()


@pytest.fixture
def opponent():
    return opponent_player()
