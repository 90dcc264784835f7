#!/usr/bin/env python3
"""
League of Legends Replay Decoder
Decodes .rofl files and recovers per-player statistics, teams and match metadata.

Usage: python parse_rofl.py <replay.rofl> [<replay.rofl> ...]
"""

import json
import logging
import multiprocessing
import os
import sys
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from item_lookup import ItemLookup
from metadata_extractors import EXTRACTORS, DecodedMetadata, Extractor
from ownership import (
    DEFAULT_WEIGHTS,
    OwnershipScore,
    OwnershipWeights,
    TraceHook,
    format_score_table,
    rank_scores,
    score_players,
    select_main_player,
)
from player_records import PlayerRecord, has_statistics, normalize_players
from replay_analyzers import TeamSplit, build_game_info, organize_teams
from rofl_binary import check_magic, decode_header
from rofl_errors import (
    AllStrategiesExhausted,
    FileUnreadable,
    InvalidMagic,
    NoPlayerData,
    ReplayDecodeError,
    most_specific,
)

logger = logging.getLogger(__name__)

STATUS_DECODED = 'decoded'
STATUS_PARTIAL = 'partial'
STATUS_UNDECODABLE = 'undecodable'

MAGIC_ONLY = 'magic_only'


@dataclass(frozen=True)
class FileInfo:
    size: int
    name: str
    path: str

    def to_dict(self) -> dict:
        return {'size': self.size, 'name': self.name, 'path': self.path}


@dataclass(frozen=True)
class DecodeResult:
    success: bool
    status: str
    file_info: FileInfo
    strategy: Optional[str] = None
    header: Optional[dict] = None
    raw_metadata: Any = None
    payload_info: Any = None
    game_info: Optional[dict] = None
    main_player: Optional[OwnershipScore] = None
    players: Tuple[PlayerRecord, ...] = field(default_factory=tuple)
    team_split: TeamSplit = field(default_factory=TeamSplit)
    error: Optional[str] = None
    error_detail: Optional[str] = None
    attempts: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Export as JSON-serializable dict"""
        return {
            'success': self.success,
            'status': self.status,
            'strategy': self.strategy,
            'header': self.header,
            'raw_metadata': self.raw_metadata,
            'payload_info': self.payload_info,
            'game_info': self.game_info,
            'main_player': self.main_player.to_dict() if self.main_player else None,
            'players': [p.to_dict() for p in self.players],
            'team_split': self.team_split.to_dict(),
            'error': self.error,
            'error_detail': self.error_detail,
            'attempts': [{'strategy': s, 'error': e} for s, e in self.attempts],
            'file_info': self.file_info.to_dict(),
        }


class ReplayDecoder:
    """Runs the decoding strategies over one replay file, richest first."""

    def __init__(
        self,
        filepath: str,
        *,
        original_name: Optional[str] = None,
        weights: OwnershipWeights = DEFAULT_WEIGHTS,
        item_lookup: Optional[ItemLookup] = None,
        trace: Optional[TraceHook] = None,
        extractors: Sequence[Tuple[str, Extractor]] = EXTRACTORS,
    ):
        self.filepath = filepath
        # Uploads are often stored under a generated name; region/match id come from the original
        self.original_name = original_name
        self.weights = weights
        self.item_lookup = item_lookup
        self.trace = trace
        self.extractors = tuple(extractors)
        self.raw_data: Optional[bytes] = None
        self.result: Optional[DecodeResult] = None

    @property
    def display_name(self) -> str:
        return self.original_name or os.path.basename(self.filepath)

    def _emit(self, event: str, payload: Any):
        if self.trace is not None:
            self.trace(event, payload)

    def _file_info(self) -> FileInfo:
        if self.raw_data is not None:
            size = len(self.raw_data)
        else:
            try:
                size = os.path.getsize(self.filepath)
            except OSError:
                size = 0
        return FileInfo(size=size, name=self.display_name, path=self.filepath)

    def load(self) -> bytes:
        """Read the whole replay into memory (the only I/O of a decode)."""
        try:
            with open(self.filepath, 'rb') as f:
                self.raw_data = f.read()
        except OSError as exc:
            raise FileUnreadable(f"File not found or not readable: {self.filepath} ({exc})") from exc
        logger.debug("Loaded %s (%d bytes)", self.filepath, len(self.raw_data))
        return self.raw_data

    def _header_summary(self, data: bytes, decoded: DecodedMetadata) -> Optional[dict]:
        if decoded.header is not None:
            return decoded.header.to_dict()
        try:
            return decode_header(data).to_dict()
        except ReplayDecodeError as exc:
            logger.debug("No structured header: %s", exc)
        try:
            magic = check_magic(data)
        except InvalidMagic:
            return None
        return {'magic': magic.decode('ascii', errors='replace')}

    def _build_success(self, data: bytes, decoded: DecodedMetadata,
                       attempts: List[Tuple[str, str]]) -> DecodeResult:
        if not any(has_statistics(r) for r in decoded.records):
            raise NoPlayerData("No player record carries statistics")

        players = normalize_players(decoded.records)
        main = select_main_player(players, self.weights, trace=self.trace)
        owner_raw = decoded.records[main.original_index]
        logger.info("Selected player: %s playing %s", main.player.display_name, main.player.champion)

        game_info = build_game_info(
            main.player,
            owner_raw,
            decoded.raw,
            data=data,
            filename=self.display_name,
            item_lookup=self.item_lookup,
        )
        return DecodeResult(
            success=True,
            status=STATUS_DECODED,
            file_info=self._file_info(),
            strategy=decoded.strategy,
            header=self._header_summary(data, decoded),
            raw_metadata=decoded.raw,
            payload_info=decoded.payload_info,
            game_info=game_info,
            main_player=main,
            players=tuple(players),
            team_split=organize_teams(players),
            attempts=tuple(attempts),
        )

    def _failure(self, error: str, detail: Optional[str], status: str = STATUS_UNDECODABLE,
                 header: Optional[dict] = None, attempts: Sequence[Tuple[str, str]] = ()) -> DecodeResult:
        return DecodeResult(
            success=False,
            status=status,
            file_info=self._file_info(),
            strategy=MAGIC_ONLY if status == STATUS_PARTIAL else None,
            header=header,
            error=error,
            error_detail=detail,
            attempts=tuple(attempts),
        )

    def decode(self) -> DecodeResult:
        """Try each strategy in order and return the first that yields player statistics."""
        try:
            data = self.load()
        except FileUnreadable as exc:
            logger.error("%s", exc)
            self.result = self._failure(FileUnreadable.kind, str(exc))
            return self.result

        attempts: List[Tuple[str, str]] = []
        errors: List[ReplayDecodeError] = []

        for name, extractor in self.extractors:
            try:
                decoded = extractor(data)
                result = self._build_success(data, decoded, attempts)
            except ReplayDecodeError as exc:
                logger.info("Strategy %s failed on %s: %s", name, self.display_name, exc)
                error = exc
            except Exception as exc:
                logger.warning("Strategy %s raised unexpectedly on %s", name, self.display_name, exc_info=True)
                error = ReplayDecodeError(f"Unexpected {type(exc).__name__}: {exc}")
            else:
                self._emit('strategy_succeeded', {'strategy': name})
                self.result = result
                return result

            errors.append(error)
            attempts.append((name, error.kind))
            self._emit('strategy_failed', {'strategy': name, 'error': error.kind, 'detail': str(error)})

        # Last resort: confirm the file type without statistics
        try:
            magic = check_magic(data)
        except InvalidMagic as exc:
            attempts.append((MAGIC_ONLY, exc.kind))
            self._emit('strategy_failed', {'strategy': MAGIC_ONLY, 'error': exc.kind, 'detail': str(exc)})
            self.result = self._failure(InvalidMagic.kind, str(exc), attempts=attempts)
            return self.result

        specific = most_specific(errors)
        header = {'magic': magic.decode('ascii', errors='replace'), 'file_type': 'ROFL', 'parsed': False}
        self.result = self._failure(
            AllStrategiesExhausted.kind,
            str(specific) if specific is not None else None,
            status=STATUS_PARTIAL,
            header=header,
            attempts=attempts,
        )
        return self.result

    def report(self):
        """Print analysis report"""
        result = self.result or self.decode()

        print("=" * 80)
        print("LEAGUE OF LEGENDS REPLAY ANALYSIS")
        print("=" * 80)

        print(f"\nFile: {result.file_info.name}")
        print(f"Size: {result.file_info.size:,} bytes")
        print(f"Status: {result.status}" + (f" (via {result.strategy})" if result.strategy else ""))
        for strategy, error in result.attempts:
            print(f"  {strategy}: {error}")

        if not result.success:
            print(f"\nError: {result.error}")
            if result.error_detail:
                print(f"Detail: {result.error_detail}")
            return

        info = result.game_info
        print(f"\nGame: {info['game_id'] or 'Unknown'}  Region: {info['region'] or 'Unknown'}  "
              f"Version: {info['game_version']}  Queue: {info['queue_id']}  Mode: {info['game_mode']}")
        print(f"Duration: {info['game_duration_formatted']}")

        print(f"\nMain player: {result.main_player.player.display_name} ({info['champion']})")
        print(f"  KDA {info['kills']}/{info['deaths']}/{info['assists']}  Gold {info['gold_earned']:,}  "
              f"CS {info['cs']}  Vision {info['vision_score']}  {'Win' if info['win'] else 'Loss'}")
        for item in info['items']:
            print(f"  [{item['slot']}] {item['name']}")

        for label, team in (('Blue', result.team_split.blue_team), ('Red', result.team_split.red_team)):
            print(f"\n{label} team ({len(team)}):")
            for p in team:
                print(f"  {p.display_name:30} {p.champion or 'Unknown':15} {p.kills}/{p.deaths}/{p.assists}")

        if logger.isEnabledFor(logging.DEBUG):
            print("\nOwnership scores:")
            for line in format_score_table(rank_scores(score_players(result.players, self.weights))):
                print(f"  {line}")

    def to_json(self) -> dict:
        """Export as JSON-serializable dict"""
        result = self.result or self.decode()
        return result.to_dict()


def decode_replay(filepath: str, **kwargs) -> DecodeResult:
    """Decode a single replay file."""
    return ReplayDecoder(filepath, **kwargs).decode()


def _decode_replay_file(job: Tuple[str, Optional[str]]) -> DecodeResult:
    """Decode one file. Module-level function for multiprocessing."""
    filepath, original_name = job
    return ReplayDecoder(filepath, original_name=original_name).decode()


def decode_replays(filepaths: Sequence[str], max_workers: Optional[int] = None,
                   original_names: Optional[Sequence[Optional[str]]] = None) -> List[DecodeResult]:
    """Decode several replays in parallel; results are in input order."""
    names = list(original_names) if original_names is not None else [None] * len(filepaths)
    jobs = list(zip(filepaths, names))
    if max_workers is None:
        max_workers = min(8, multiprocessing.cpu_count())
    if max_workers <= 1 or len(jobs) <= 1:
        return [_decode_replay_file(job) for job in jobs]

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(_decode_replay_file, jobs))


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse

    arg_parser = argparse.ArgumentParser(
        description='Decode League of Legends replay files (.rofl)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python parse_rofl.py NA1-1234567890.rofl
  python parse_rofl.py replay.rofl --json --output replay.json
  python parse_rofl.py upload_123.rofl --name EUW1-987654321.rofl

Note: only the header and statistics metadata are decoded; the gameplay
payload (chunks and keyframes) is left untouched.
        """
    )
    arg_parser.add_argument('replays', nargs='+', help='Path(s) to .rofl files')
    arg_parser.add_argument('--json', action='store_true',
                            help='Export the decode result to JSON')
    arg_parser.add_argument('--output', '-o',
                            help='Output JSON file path (single replay only; default: <replay>_decoded.json)')
    arg_parser.add_argument('--name',
                            help='Original file name used for region/match id (single replay only)')
    arg_parser.add_argument('--quiet', '-q', action='store_true',
                            help='Suppress console output (only export JSON)')
    arg_parser.add_argument('--verbose', '-v', action='store_true',
                            help='Enable debug logging, including the ownership score table')
    arg_parser.add_argument('--workers', type=int, default=None,
                            help='Worker processes for several replays (default: up to 8)')

    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    single = len(args.replays) == 1
    if not single and (args.output or args.name):
        arg_parser.error('--output and --name need exactly one replay')

    missing = [p for p in args.replays if not os.path.exists(p)]
    for path in missing:
        print(f"Error: File not found: {path}")
    if missing:
        return 1

    if single:
        decoder = ReplayDecoder(args.replays[0], original_name=args.name)
        results = [decoder.decode()]
    else:
        results = decode_replays(args.replays, max_workers=args.workers)

    for path, result in zip(args.replays, results):
        if not args.quiet:
            report = ReplayDecoder(path, original_name=args.name if single else None)
            report.result = result
            report.report()

        if args.json:
            json_path = args.output or path.rsplit('.', 1)[0] + '_decoded.json'
            with open(json_path, 'w', encoding='utf-8') as f:
                json.dump(result.to_dict(), f, indent=2, ensure_ascii=False, default=str)
            if not args.quiet:
                print(f"\nExported decode result to: {json_path}")

    return 0 if all(r.success for r in results) else 2


if __name__ == '__main__':
    sys.exit(main())
