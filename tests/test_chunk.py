import os
import sys

import numpy as np
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from voxgen.chunk import Cell, Chunk
from voxgen.blocks import NIL, STONE, LEAVES, SHAPE_ISOSURFACE, SHAPE_LEAVES, MATERIAL_ID

SIZE = Chunk.SIZE


def test_new_chunk_is_air():
    chunk = Chunk((2, -1, 3))
    assert chunk.mtl.shape == (SIZE, SIZE, SIZE)
    assert not chunk.mtl.any()
    assert np.all(chunk.shape == SHAPE_ISOSURFACE)
    assert chunk.get_cell((0, 0, 0)).is_empty()
    assert chunk.world_origin() == (2 * SIZE, -SIZE, 3 * SIZE)
    assert chunk.world_pos((1, 2, 3)) == (2 * SIZE + 1, -SIZE + 2, 3 * SIZE + 3)


def test_set_and_get_cell():
    chunk = Chunk()
    chunk.set_cell((1, 2, 3), Cell(STONE, SHAPE_ISOSURFACE, 0.75))
    c = chunk.get_cell((1, 2, 3))
    assert c == Cell(STONE, SHAPE_ISOSURFACE, 0.75)
    assert not c.is_empty()
    assert chunk.count(STONE) == 1
    assert not chunk.is_empty((1, 2, 3))
    assert chunk.is_empty((3, 2, 1))
    # Snapshots do not write back.
    c.material_id = NIL
    assert chunk.get_cell((1, 2, 3)).material_id == STONE


def test_get_cell_mut_writes_through():
    chunk = Chunk()
    ref = chunk.get_cell_mut((SIZE - 1, 0, 4))
    ref.material_id = LEAVES
    ref.shape_id = SHAPE_LEAVES
    ref.isovalue = -1.0
    assert chunk.mtl[SIZE - 1, 0, 4] == LEAVES
    assert chunk.get_cell((SIZE - 1, 0, 4)) == Cell(LEAVES, SHAPE_LEAVES, -1.0)
    assert ref == chunk.get_cell((SIZE - 1, 0, 4))


@pytest.mark.parametrize("lp", [(-1, 0, 0), (0, SIZE, 0), (0, 0, SIZE), (SIZE, SIZE, SIZE), (0, -3, 2)])
def test_out_of_range_access_fails(lp):
    chunk = Chunk()
    assert not Chunk.is_localpos(lp)
    with pytest.raises(IndexError):
        chunk.get_cell(lp)
    with pytest.raises(IndexError):
        chunk.get_cell_mut(lp)
    with pytest.raises(IndexError):
        chunk.set_cell(lp, Cell(STONE))
    with pytest.raises(IndexError):
        chunk.is_empty(lp)
    assert chunk.count(STONE) == 0


def test_tobytes_tracks_every_field():
    a = Chunk()
    b = Chunk()
    assert a.tobytes() == b.tobytes()
    b.get_cell_mut((3, 3, 3)).isovalue = 0.5
    assert a.tobytes() != b.tobytes()


def test_material_table():
    assert MATERIAL_ID['Nil'] == NIL == 0
    assert len(set(MATERIAL_ID.values())) == len(MATERIAL_ID)
