from conftest import domino_at

from polyomino_puzzles.game.puzzle import FILLED, RESERVED
from polyomino_puzzles.visualization.renderer import PALETTE, Renderer, board_rgb, rows_rgb
from polyomino_puzzles.visualization.text import format_puzzle, format_shape


def test_format_shape():
    assert format_shape([[1, 0], [1, 1]]) == "█·\n██"


def test_format_puzzle_header_and_cells(make_puzzle):
    puzzle = make_puzzle([[1, 1, 0, 1]], placed=[domino_at(0, 0)], reward="domino", tier=1)
    text = format_puzzle(puzzle)
    header, body = text.split("\n")
    assert header.startswith("TEST 3pts 10/10 turns")
    assert "reward=domino" in header
    assert body == "██ ·"


def test_board_rgb_colours(make_puzzle):
    puzzle = make_puzzle([[1, 1, 1, 1]], placed=[domino_at(0, 0)], required=domino_at(0, 2))
    img = board_rgb(puzzle.cell_states(), cell=2)
    assert img.shape == (2, 8, 3)
    assert tuple(img[0, 0]) == PALETTE[FILLED]
    assert tuple(img[0, 6]) == PALETTE[RESERVED]


def test_rows_rgb_pads_to_largest(make_puzzle):
    rows = [[make_puzzle([[1]]), make_puzzle([[1, 1], [1, 1]])], [make_puzzle([[1, 1, 1]])]]
    img = rows_rgb(rows, cell=4, gap=1)
    # 3 wide, 2 tall boards plus one cell of gap, two rows, two columns
    assert img.shape == (2 * 3 * 4, 2 * 4 * 4, 3)


def test_puzzle_surface_size(make_puzzle):
    surf = Renderer(cell_size=10).puzzle_surface(make_puzzle([[1, 1, 1], [0, 1, 0]]))
    assert surf.get_size() == (30, 20)
