import copy

import pytest

from conftest import domino_at, set_hand

from polyomino_puzzles.game import GameConfig
from polyomino_puzzles.game.persistence import (
    SAVE_VERSION,
    SaveRecordError,
    _migrate_1_to_2,
    _migrate_2_to_3,
    dumps,
    from_record,
    load_session,
    loads,
    migrate,
    to_record,
)


def _v1_record():
    return {
        "version": 1,
        "handPieces": ["dot", "domino"],
        "tier1Puzzles": [
            {
                "id": "T1-001-abcdef",
                "grid": [[1, 1]],
                "tier": 1,
                "points": 0,
                "rewardPieceType": "domino",
                "turnsLeft": 5,
                "maxTurns": 12,
                "placedPieces": [],
            }
        ],
        "tier2Puzzles": [],
        "seenCanonicalKeys": ["[[1,1]]"],
        "points": 7,
        "totalTurns": 3,
    }


def test_round_trip(session, make_puzzle):
    session.tiers[2].puzzles[0] = make_puzzle(
        [[1, 1, 1, 1]], placed=[domino_at(0, 0)], required=domino_at(0, 2),
    )
    set_hand(session, "dot", "tetro_t")
    session.place_from_hand(0, 1, 0)

    restored = from_record(loads(dumps(session)))
    assert restored is not None
    assert to_record(restored) == to_record(session)
    assert restored.tiers[2][0].required_piece == domino_at(0, 2)
    assert restored.hand.types() == ["tetro_t"]
    assert restored.total_turns == 1


def test_round_trip_keeps_piece_expiry(advanced_session):
    restored = from_record(to_record(advanced_session), advanced_session.config)
    assert [p.expiry for p in restored.hand] == [15, 15]


def test_v1_record_is_migrated_and_topped_up():
    session = from_record(_v1_record())
    assert session is not None
    assert session.hand.types() == ["dot", "domino"]
    assert session.points == 7 and session.total_turns == 3
    assert session.tiers[1][0].id == "T1-001-abcdef"
    assert len(session.tiers[1]) == 4 and len(session.tiers[2]) == 4
    assert session.stats == {"tier1Solved": 0, "tier1Expired": 0, "tier2Solved": 0, "tier2Expired": 0}
    assert "[[1,1]]" in session.generator.seen


def test_migrations_are_pure_and_idempotent():
    record = _v1_record()
    original = copy.deepcopy(record)
    migrated = migrate(record)
    assert record == original
    assert migrated["version"] == SAVE_VERSION
    assert migrated["handPieces"] == [{"type": "dot"}, {"type": "domino"}]
    assert migrated["puzzleSequenceCounters"] == {"1": 0, "2": 0}
    assert migrated["puzzleHistory"] == []

    assert _migrate_2_to_3(migrated) == migrated
    v2 = _migrate_1_to_2(record)
    assert _migrate_1_to_2(v2) == v2
    assert migrate(migrated) == migrated


@pytest.mark.parametrize("version", [None, "3", 0, 99])
def test_unsupported_versions(version):
    record = _v1_record()
    record["version"] = version
    with pytest.raises(SaveRecordError):
        migrate(record)
    assert from_record(record) is None


def test_unknown_record_falls_back_to_fresh_session():
    record = _v1_record()
    record["version"] = 99
    session = load_session(record, GameConfig(random_seed=8))
    assert session.points == 0
    assert session.hand.types() == ["dot", "domino"]


@pytest.mark.parametrize(
    "damage",
    [
        lambda r: r.pop("points"),
        lambda r: r.pop("tier1Puzzles"),
        lambda r: r.__setitem__("handPieces", [{"type": "hexomino"}]),
        lambda r: r["tier1Puzzles"][0].pop("grid"),
        lambda r: r.__setitem__("totalTurns", "many"),
        lambda r: r.__setitem__("handPieces", [5]),
        lambda r: r.__setitem__("handPieces", [["dot"]]),
        lambda r: r["tier1Puzzles"].append("T1-002"),
    ],
)
def test_malformed_record_is_discarded(damage):
    record = _v1_record()
    damage(record)
    assert from_record(record) is None


@pytest.mark.parametrize("text", [None, "", "not json", "[1, 2]"])
def test_loads_rejects_garbage(text):
    assert loads(text) is None


def test_seen_keys_are_capped():
    config = GameConfig(random_seed=1, seen_keys_cap=3)
    session = load_session(None, config)
    seen = to_record(session)["seenCanonicalKeys"]
    assert len(seen) == 3
    assert seen == list(session.generator.seen)[-3:]


@pytest.mark.parametrize(
    "field, value",
    [
        ("placedPieces", [{"type": "hexomino", "rotation": 0, "mirror": False, "row": 0, "col": 0}]),
        ("requiredPiece", {"type": "hexomino", "rotation": 0, "mirror": False, "row": 0, "col": 0}),
        ("rewardPieceType", "hexomino"),
    ],
)
def test_unknown_piece_type_on_puzzle_discards_save(field, value):
    record = _v1_record()
    record["tier1Puzzles"][0][field] = value
    assert from_record(record) is None

    session = load_session(record, GameConfig(random_seed=2))
    assert session.points == 0
    assert all(p.id != "T1-001-abcdef" for p in session.tiers[1])
    assert session.place_from_hand(0, 1, 0).success
