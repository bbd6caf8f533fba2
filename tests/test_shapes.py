import numpy as np
import pytest

from polyomino_puzzles.game.shapes import (
    MAX_LEVEL,
    PIECES,
    as_shape,
    cell_count,
    cells,
    mirror,
    pieces_at_level,
    resolve,
    rotate_cw,
    transform,
)


def _eq(a, b):
    return np.array_equal(np.asarray(a), np.asarray(b))


def test_rotate_horizontal_to_vertical():
    assert _eq(rotate_cw(as_shape([[1, 1, 1, 1]])), [[1], [1], [1], [1]])


def test_rotate_l_piece():
    assert _eq(rotate_cw(as_shape([[1, 0], [1, 0], [1, 1]])), [[1, 1, 1], [1, 0, 0]])


@pytest.mark.parametrize("name", sorted(PIECES))
def test_four_rotations_and_double_mirror_are_identity(name):
    shape = PIECES[name].shape
    out = shape
    for _ in range(4):
        out = rotate_cw(out)
    assert _eq(out, shape)
    assert _eq(mirror(mirror(shape)), shape)


def test_mirror_flips_rows():
    assert _eq(mirror(as_shape([[1, 0], [1, 1]])), [[0, 1], [1, 1]])


def test_resolve_rotates_then_mirrors_t_piece():
    assert _eq(resolve("tetro_t", 1), [[0, 1], [1, 1], [0, 1]])
    assert _eq(resolve("tetro_t", 1, True), [[1, 0], [1, 1], [1, 0]])


def test_resolve_l_piece_all_orientations():
    assert _eq(resolve("tetro_l", 0), [[1, 0], [1, 0], [1, 1]])
    assert _eq(resolve("tetro_l", 1), [[1, 1, 1], [1, 0, 0]])
    assert _eq(resolve("tetro_l", 2), [[1, 1], [0, 1], [0, 1]])
    assert _eq(resolve("tetro_l", 3), [[0, 0, 1], [1, 1, 1]])
    assert _eq(resolve("tetro_l", 0, True), [[0, 1], [0, 1], [1, 1]])
    assert _eq(resolve("tetro_l", 1, True), [[1, 1, 1], [0, 0, 1]])
    assert _eq(resolve("tetro_l", 2, True), [[1, 1], [1, 0], [1, 0]])
    assert _eq(resolve("tetro_l", 3, True), [[1, 0, 0], [1, 1, 1]])


def test_s_piece_mirror_is_z():
    assert _eq(resolve("tetro_s", 0, True), [[1, 1, 0], [0, 1, 1]])


def test_rotation_wraps_modulo_four():
    shape = as_shape([[1, 1, 0], [0, 1, 1]])
    assert _eq(transform(shape, 4), transform(shape, 0))
    assert _eq(transform(shape, 5, True), transform(shape, 1, True))


def test_composition_order_matters_for_chiral_pieces():
    base = PIECES["tetro_l"].shape
    rotate_then_mirror = mirror(rotate_cw(base))
    mirror_then_rotate = rotate_cw(mirror(base))
    assert not _eq(rotate_then_mirror, mirror_then_rotate)
    assert _eq(resolve("tetro_l", 1, True), rotate_then_mirror)


def test_cells_and_count():
    shape = as_shape([[1, 0, 1], [0, 1, 0]])
    assert cells(shape) == [(0, 0), (0, 2), (1, 1)]
    assert cell_count(shape) == 3


def test_levels():
    assert MAX_LEVEL == 5
    assert pieces_at_level(1) == ["dot"]
    assert set(pieces_at_level(3)) == {"tromino_i", "tromino_l"}
    assert pieces_at_level(5)
    assert all(1 <= p.level <= 5 for p in PIECES.values())


def test_unknown_piece_raises():
    with pytest.raises(KeyError):
        resolve("heptomino")
