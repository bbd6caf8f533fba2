"""Save-record schema, migrations and session (de)serialization.

The storage medium is the caller's concern; this module only turns a
`GameSession` into a JSON-compatible record and back. Each migration takes a
record of version N and returns a new record of version N+1 without touching
its input, and is safe to apply to a record already in the newer shape.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Dict, Optional, Union

from .economy import Hand, HandPiece
from .puzzle import Puzzle
from .rules import TIERS, GameConfig
from .session import GameSession
from .shapes import get_piece

logger = logging.getLogger(__name__)

SAVE_VERSION = 3

Record = Dict[str, Any]


class SaveRecordError(ValueError):
    pass


def _migrate_1_to_2(record: Record) -> Record:
    out = copy.deepcopy(record)
    out.setdefault("stats", {"tier1Solved": 0, "tier1Expired": 0, "tier2Solved": 0, "tier2Expired": 0})
    out.setdefault("puzzleSequenceCounters", {"1": 0, "2": 0})
    out.setdefault("puzzleHistory", [])
    out["version"] = 2
    return out


def _migrate_2_to_3(record: Record) -> Record:
    out = copy.deepcopy(record)
    hand = []
    for entry in out.get("handPieces", []):
        hand.append({"type": entry} if isinstance(entry, str) else entry)
    out["handPieces"] = hand
    out["version"] = 3
    return out


MIGRATIONS: Dict[int, Callable[[Record], Record]] = {
    1: _migrate_1_to_2,
    2: _migrate_2_to_3,
}


def migrate(record: Record) -> Record:
    version = record.get("version")
    if not isinstance(version, int):
        raise SaveRecordError(f"Missing or invalid version: {version!r}")
    while version in MIGRATIONS and version < SAVE_VERSION:
        record = MIGRATIONS[version](record)
        version = record["version"]
    if version != SAVE_VERSION:
        raise SaveRecordError(f"Unsupported save version {version} (expected {SAVE_VERSION})")
    return record


def to_record(session: GameSession) -> Record:
    cfg = session.config
    seen = list(session.generator.seen)[-cfg.seen_keys_cap :]
    return {
        "version": SAVE_VERSION,
        "handPieces": [p.to_dict() for p in session.hand],
        "tier1Puzzles": [p.to_dict() for p in session.tiers[1]],
        "tier2Puzzles": [p.to_dict() for p in session.tiers[2]],
        "seenCanonicalKeys": seen,
        "puzzleHistory": list(session.history)[-cfg.history_cap :],
        "puzzleSequenceCounters": {str(t): session.generator.counters.get(t, 0) for t in TIERS},
        "points": session.points,
        "totalTurns": session.total_turns,
        "stats": session.stats,
    }


def _check_type(piece_type: str, where: str) -> None:
    try:
        get_piece(piece_type)
    except KeyError:
        raise SaveRecordError(f"Unknown piece type {piece_type!r} in {where}") from None


def _load_hand_piece(entry: Any) -> HandPiece:
    if not isinstance(entry, dict):
        raise SaveRecordError(f"Hand entry is not an object: {entry!r}")
    piece = HandPiece.from_dict(entry)
    _check_type(piece.piece_type, "handPieces")
    return piece


def _load_puzzle(data: Any) -> Puzzle:
    if not isinstance(data, dict):
        raise SaveRecordError(f"Puzzle entry is not an object: {data!r}")
    puzzle = Puzzle.from_dict(data)
    for placed in puzzle.placed_pieces:
        _check_type(placed.piece_type, f"{puzzle.id} placedPieces")
    if puzzle.required_piece is not None:
        _check_type(puzzle.required_piece.piece_type, f"{puzzle.id} requiredPiece")
    if puzzle.reward_piece_type is not None:
        _check_type(puzzle.reward_piece_type, f"{puzzle.id} rewardPieceType")
    return puzzle


def _build_session(record: Record, config: GameConfig) -> GameSession:
    session = GameSession(config, fill=False)
    session.hand = Hand(config, [_load_hand_piece(p) for p in record["handPieces"]])
    session.points = int(record["points"])
    session.total_turns = int(record["totalTurns"])
    session.generator.seen.update((str(k), None) for k in record.get("seenCanonicalKeys", []))
    counters = record.get("puzzleSequenceCounters", {})
    for tier in TIERS:
        session.generator.counters[tier] = int(counters.get(str(tier), 0))
    session.history.extend(record.get("puzzleHistory", []))

    stats = record.get("stats", {})
    for tier in TIERS:
        puzzle_set = session.tiers[tier]
        puzzle_set.puzzles = [_load_puzzle(p) for p in record[f"tier{tier}Puzzles"]]
        puzzle_set.solved = int(stats.get(f"tier{tier}Solved", 0))
        puzzle_set.expired = int(stats.get(f"tier{tier}Expired", 0))
        # Top up if the record held fewer puzzles than this configuration runs
        puzzle_set.fill()
    return session


def from_record(record: Optional[Record], config: Optional[GameConfig] = None) -> Optional[GameSession]:
    """Restore a session, or None when the record is absent, unknown or malformed."""
    config = config or GameConfig()
    if not record:
        return None
    try:
        return _build_session(migrate(record), config)
    except (SaveRecordError, KeyError, TypeError, ValueError) as exc:
        logger.warning("Discarding save record: %s", exc)
        return None


def load_session(record: Optional[Record], config: Optional[GameConfig] = None) -> GameSession:
    """Restore a saved session, falling back to a fresh one."""
    config = config or GameConfig()
    return from_record(record, config) or GameSession(config)


def dumps(session: GameSession) -> str:
    return json.dumps(to_record(session), separators=(",", ":"))


def loads(text: Union[str, bytes, None]) -> Optional[Record]:
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError as exc:
        logger.warning("Unreadable save data: %s", exc)
        return None
    return data if isinstance(data, dict) else None
