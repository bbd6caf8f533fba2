import pytest

from conftest import domino_at

from polyomino_puzzles.game.generator import PuzzleGenerator
from polyomino_puzzles.game.puzzle_set import PuzzleSet
from polyomino_puzzles.game.rules import GameConfig, par_points


def _puzzle_set(tier: int = 2, config: GameConfig = None) -> PuzzleSet:
    config = config or GameConfig(random_seed=99)
    puzzle_set = PuzzleSet(tier, config, PuzzleGenerator(config))
    puzzle_set.fill()
    return puzzle_set


def test_fill_reaches_active_count():
    puzzle_set = _puzzle_set()
    assert len(puzzle_set) == 4
    assert len({p.id for p in puzzle_set}) == 4
    assert [h["status"] for h in puzzle_set.history] == ["active"] * 4


def test_tick_decrements_every_puzzle():
    puzzle_set = _puzzle_set()
    before = [p.turns_left for p in puzzle_set]
    assert puzzle_set.tick() == []
    assert [p.turns_left for p in puzzle_set] == [t - 1 for t in before]


def test_tick_expires_and_replaces(make_puzzle):
    puzzle_set = _puzzle_set()
    doomed = make_puzzle([[1, 1, 1, 1]], placed=[domino_at(0, 0)], turns_left=1, puzzle_id="DOOMED")
    puzzle_set.puzzles[2] = doomed
    expired = puzzle_set.tick()
    assert expired == [doomed]
    assert len(puzzle_set) == 4
    assert puzzle_set.find("DOOMED") is None
    assert puzzle_set.expired == 1
    assert puzzle_set[2].turns_left == puzzle_set[2].max_turns
    assert puzzle_set.history[-2]["status"] == "expired"


def test_complete_scores_and_replaces(make_puzzle):
    puzzle_set = _puzzle_set(tier=1)
    puzzle = make_puzzle(
        [[1, 1, 1, 1]], placed=[domino_at(0, 0), domino_at(0, 2)],
        tier=1, points=0, reward="tetro_i", puzzle_id="DONE",
    )
    puzzle_set.puzzles[0] = puzzle
    completion = puzzle_set.complete(0)
    assert completion is not None
    assert completion.points == 0
    assert completion.returned_pieces == ["domino", "domino"]
    assert completion.reward == "tetro_i"
    assert puzzle_set.solved == 1
    assert puzzle_set[0].id != "DONE"
    assert len(puzzle_set) == 4


def test_incomplete_puzzle_is_not_scored(make_puzzle):
    puzzle_set = _puzzle_set()
    puzzle_set.puzzles[0] = make_puzzle([[1, 1, 1, 1]], placed=[domino_at(0, 0)])
    assert puzzle_set.complete(0) is None
    assert puzzle_set.solved == 0


def test_completion_needs_required_placement(make_puzzle):
    required = domino_at(0, 2)
    covered_differently = make_puzzle(
        [[1, 1, 1, 1]], placed=[domino_at(0, 0), domino_at(0, 2, rotation=2)], required=required,
    )
    assert not PuzzleSet.is_complete(covered_differently)
    exact = make_puzzle([[1, 1, 1, 1]], placed=[domino_at(0, 0), required], required=required)
    assert PuzzleSet.is_complete(exact)


@pytest.mark.parametrize(
    "turns_left, expected",
    [(10, 9), (7, 9), (6, 6), (3, 6), (2, 3), (0, 3)],
)
def test_par_bands(turns_left, expected):
    assert par_points(9, turns_left, 10) == expected


def test_advanced_scores_par_at_completion(make_puzzle):
    puzzle_set = _puzzle_set(config=GameConfig.advanced_ruleset(random_seed=4))
    puzzle_set.puzzles[1] = make_puzzle(
        [[1, 1, 1, 1]], placed=[domino_at(0, 0), domino_at(0, 2)], points=9, turns_left=4, max_turns=10,
    )
    assert puzzle_set.complete(1).points == 6


def test_rewind_caps_at_max_turns():
    puzzle_set = _puzzle_set()
    puzzle_set.tick()
    puzzle_set.rewind()
    puzzle_set.rewind()
    assert all(p.turns_left == p.max_turns for p in puzzle_set)
