import os
import sys

import numpy as np
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from voxgen import config, mapgen
from voxgen.chunk import Chunk
from voxgen.util import coord_hash
from voxgen.blocks import (NIL, STONE, DIRT, GRASS, SAND, WATER, LOG, LEAVES, ROSE, FERN, BUSH,
    SHORTGRASS, SHAPE_ISOSURFACE, SHAPE_GRASS, SHAPE_LEAVES, FLORA_IDS)

SIZE = Chunk.SIZE

CHUNK_POSITIONS = [(0, 0, 0), (0, -1, 0), (3, -1, -2), (-5, 0, 7), (1, 1, 1), (2, -2, 0)]


def _gen():
    return mapgen.WorldGen(seed=100, decor_seed=123)


def _column_chunk(material, ys, lx=3, lz=3, chunkpos=(0, 0, 0)):
    chunk = Chunk(chunkpos)
    for y in ys:
        chunk.mtl[lx, y, lz] = material
    return chunk


def test_generate_chunk_deterministic():
    gen = _gen()
    for pos in CHUNK_POSITIONS:
        a = Chunk(pos)
        b = Chunk(pos)
        gen.generate_chunk(a)
        _gen().generate_chunk(b)
        assert a.tobytes() == b.tobytes(), pos


def test_module_generate_chunk_uses_configured_seed(monkeypatch):
    monkeypatch.setattr(config, "WORLD_SEED", 100)
    a = Chunk((1, -1, 0))
    b = Chunk((1, -1, 0))
    assert mapgen.generate_chunk(a) is None
    _gen().generate_chunk(b)
    assert a.tobytes() == b.tobytes()


def test_density_sampled_in_world_space():
    gen = _gen()
    chunk = Chunk((1, -1, 2))
    val = gen.density(chunk)
    ox, oy, oz = chunk.world_origin()
    for lx, ly, lz in [(0, 0, 0), (5, 9, 2), (15, 15, 15), (7, 0, 11)]:
        x, y, z = ox + lx, oy + ly, oz + lz
        expected = (gen.fbm.sample((x / 130.0, z / 130.0)) - y / 18.0
                    + gen.fbm.sample((x / 90.0, y / 90.0, z / 90.0)) * 4.5)
        assert val[lx, ly, lz] == pytest.approx(expected, abs=1e-9)


def test_terrain_classification():
    gen = _gen()
    for pos in CHUNK_POSITIONS:
        chunk = Chunk(pos)
        val = gen.density(chunk)
        gen.generate_terrain(chunk)
        py = np.indices((SIZE, SIZE, SIZE))[1] + chunk.world_origin()[1]
        stone = val > 0
        water = ~stone & (py < 0)
        air = ~stone & (py >= 0)
        assert np.all(chunk.mtl[stone] == STONE)
        assert np.all(chunk.iso[stone] == val[stone].astype(np.float32))
        assert np.all(chunk.mtl[water] == WATER)
        assert np.all(chunk.iso[water] == np.float32(0.1))
        assert np.all(chunk.mtl[air] == NIL)
        assert np.all(chunk.iso[air] == val[air].astype(np.float32))
        assert np.all(chunk.shape == SHAPE_ISOSURFACE)


def test_terrain_trends_solid_below_open_above():
    gen = _gen()
    deep = Chunk((0, -4, 0))
    high = Chunk((0, 4, 0))
    gen.generate_terrain(deep)
    gen.generate_terrain(high)
    assert (deep.mtl == STONE).mean() > 0.5
    assert (high.mtl == NIL).mean() > 0.5


def test_chunk_seams_are_continuous():
    # Neighboring chunks sample one shared world-space field.
    gen = _gen()
    a = gen.density(Chunk((0, 0, 0)))
    b = gen.density(Chunk((1, 0, 0)))
    step_inside = np.abs(a[1:, :, :] - a[:-1, :, :]).max()
    step_seam = np.abs(b[0, :, :] - a[-1, :, :]).max()
    assert step_seam <= step_inside * 3 + 1e-6


def test_surface_column_example():
    gen = _gen()
    chunk = _column_chunk(STONE, range(5, 8))
    gen.replace_surface(chunk)
    assert chunk.mtl[3, 7, 3] == GRASS
    assert chunk.mtl[3, 6, 3] == DIRT
    assert chunk.mtl[3, 5, 3] == STONE


def test_surface_pass_leaves_no_exposed_stone():
    gen = _gen()
    for pos in CHUNK_POSITIONS:
        chunk = Chunk(pos)
        gen.generate_terrain(chunk)
        gen.replace_surface(chunk)
        xs, ys, zs = np.nonzero(chunk.mtl == STONE)
        assert np.all(ys < SIZE - 1)
        assert np.all(chunk.mtl[xs, ys + 1, zs] != NIL)
        # second stone below the surface never stays stone either
        above2 = ys < SIZE - 2
        assert np.all(chunk.mtl[xs[above2], ys[above2] + 2, zs[above2]] != NIL)


def test_sand_near_sea_level(monkeypatch):
    gen = _gen()
    # World y -16..-1, all below the sand line.
    monkeypatch.setattr(config, "SAND_THRESHOLD", -10.0)
    chunk = _column_chunk(STONE, range(0, 12), chunkpos=(0, -1, 0))
    gen.replace_surface(chunk)
    assert chunk.mtl[3, 11, 3] == SAND
    assert chunk.mtl[3, 10, 3] == SAND
    assert chunk.mtl[3, 9, 3] == STONE

    monkeypatch.setattr(config, "SAND_THRESHOLD", 10.0)
    chunk = _column_chunk(STONE, range(0, 12), chunkpos=(0, -1, 0))
    gen.replace_surface(chunk)
    assert chunk.mtl[3, 11, 3] == GRASS
    assert chunk.mtl[3, 10, 3] == DIRT


def test_water_counts_toward_depth():
    gen = _gen()
    chunk = _column_chunk(STONE, range(0, 6), chunkpos=(0, 1, 0))
    chunk.mtl[3, 6, 3] = WATER
    gen.replace_surface(chunk)
    assert chunk.mtl[3, 6, 3] == WATER
    assert chunk.mtl[3, 5, 3] == DIRT
    assert chunk.mtl[3, 4, 3] == STONE


@pytest.mark.parametrize("g, expected", [(0.95, ROSE), (0.85, FERN), (0.5, BUSH), (0.1, SHORTGRASS)])
def test_flora_thresholds(g, expected):
    gen = _gen()
    chunk = _column_chunk(STONE, range(0, 3))
    chunk.mtl[3, 3, 3] = GRASS
    assert gen.scatter_flora(chunk, 3, 3, g) == 4
    cell = chunk.get_cell((3, 4, 3))
    assert cell.material_id == expected
    assert cell.shape_id == SHAPE_GRASS
    assert cell.isovalue == config.DECOR_ISOVALUE


def test_flora_needs_open_grass():
    gen = _gen()
    chunk = _column_chunk(GRASS, range(0, SIZE))
    assert gen.scatter_flora(chunk, 3, 3, 0.5) is None
    assert gen.scatter_flora(Chunk(), 3, 3, 0.5) is None


def test_vine_hangs_until_blocked():
    gen = _gen()
    chunk = _column_chunk(STONE, [10])
    assert gen.grow_vine(chunk, 3, 3, 5) == 5
    assert np.all(chunk.mtl[3, 5:10, 3] == LEAVES)
    assert np.all(chunk.shape[3, 5:10, 3] == SHAPE_LEAVES)
    assert chunk.mtl[3, 4, 3] == NIL

    chunk = _column_chunk(STONE, [10])
    chunk.mtl[3, 7, 3] = DIRT
    assert gen.grow_vine(chunk, 3, 3, 8) == 2
    assert chunk.mtl[3, 7, 3] == DIRT

    chunk = _column_chunk(STONE, [2])
    assert gen.grow_vine(chunk, 3, 3, 10) == 2
    assert np.all(chunk.mtl[3, 0:2, 3] == LEAVES)

    assert gen.grow_vine(Chunk(), 3, 3, 10) == 0


def test_tree_shape():
    chunk = Chunk()
    siz = 0.5
    mapgen.gen_tree(chunk, (8, 3, 8), siz)
    height = 3 + int(siz * 6)
    rad = 2 + int(siz * 5)
    assert chunk.count(LOG) == height
    for i in range(height):
        cell = chunk.get_cell((8, 3 + i, 8))
        assert cell.material_id == LOG
        assert cell.shape_id == SHAPE_ISOSURFACE
        assert cell.isovalue == pytest.approx(2.0 * (1.2 - i / height), abs=1e-6)
    top = 3 + height
    assert chunk.mtl[8, top, 8] == LEAVES
    assert chunk.mtl[8 + rad - 1, top, 8] == LEAVES
    assert chunk.mtl[8 + rad, top, 8] == NIL
    # Canopy is a ball of radius rad around the trunk top.
    assert chunk.mtl[8, top + rad - 1, 8] == LEAVES
    assert chunk.mtl[8, top + rad, 8] == NIL
    assert chunk.mtl[8 + 2, top - 3, 8] == LEAVES
    assert chunk.mtl[8 + 3, top - 3, 8] == NIL
    assert chunk.mtl[8, top - 1, 8] == LOG


@pytest.mark.parametrize("lp", [(0, 0, 0), (15, 10, 15), (0, 15, 15), (8, 14, 8), (15, 0, 0)])
@pytest.mark.parametrize("siz", [0.0, 0.5, 0.999])
def test_tree_clipped_to_chunk(lp, siz):
    chunk = Chunk()
    mapgen.gen_tree(chunk, lp, siz)
    height = 3 + int(siz * 6)
    assert chunk.count(LOG) == min(height, SIZE - lp[1])
    placed = chunk.mtl != NIL
    assert placed.any()


def test_decorated_chunks_are_consistent():
    gen = _gen()
    for pos in CHUNK_POSITIONS + [(4, 0, 4), (-3, 0, -3), (9, -1, 2)]:
        chunk = Chunk(pos)
        gen.generate_chunk(chunk)
        air = chunk.mtl == NIL
        # air never carries a decorative shape tag
        assert np.all(chunk.shape[air] == SHAPE_ISOSURFACE)
        deco = chunk.shape != SHAPE_ISOSURFACE
        assert np.all(chunk.iso[deco] == np.float32(config.DECOR_ISOVALUE))
        grass_shaped = chunk.shape == SHAPE_GRASS
        assert np.all(np.isin(chunk.mtl[grass_shaped], sorted(FLORA_IDS)))


def test_populate_places_trees_and_vines():
    gen = _gen()
    totals = {'flora': 0, 'vines': 0, 'trees': 0}
    for x in range(-6, 6):
        for z in range(-6, 6):
            for y in (-1, 0):
                chunk = Chunk((x, y, z))
                gen.generate_terrain(chunk)
                stats = gen.populate_chunk(chunk)
                for k in totals:
                    totals[k] += stats[k]
    assert totals['flora'] > 0
    assert totals['vines'] > 0
    assert totals['trees'] > 0


def test_vine_gate_and_length(monkeypatch):
    gen = _gen()
    calls = []

    def record(chunk, lx, lz, length):
        calls.append((chunk.chunkpos, lx, lz, length))
        return 0

    monkeypatch.setattr(gen, "grow_vine", record)
    expected = []
    for cx in range(-2, 2):
        for cz in range(-2, 2):
            chunk = Chunk((cx, 0, cz))
            gen.populate_chunk(chunk)
            for lx in range(SIZE):
                for lz in range(SIZE):
                    x, _, z = chunk.world_pos((lx, 0, lz))
                    if coord_hash(x ^ (z * 7384)) < config.VINE_CHANCE:
                        length = int(config.VINE_MAX_LENGTH * coord_hash(x ^ (z * 121)))
                        expected.append((chunk.chunkpos, lx, lz, length))
    assert expected
    assert calls == expected


def test_tree_gate_roots_on_lowest_grass(monkeypatch):
    gen = _gen()
    real_gen_tree = mapgen.gen_tree
    calls = []

    def record(chunk, lp, siz):
        lx, ly, lz = lp
        grass_ys = np.nonzero(chunk.mtl[lx, :, lz] == GRASS)[0]
        assert ly == grass_ys[0]
        x, _, z = chunk.world_pos(lp)
        assert coord_hash(x ^ (z * 9572)) < config.TREE_CHANCE
        assert siz == coord_hash(x ^ ly ^ z)

        tree = Chunk(chunk.chunkpos)
        real_gen_tree(tree, lp, siz)
        height = 3 + int(6 * siz)
        log_ys = np.nonzero(tree.mtl[lx, :, lz] == LOG)[0]
        assert list(log_ys) == list(range(ly, min(ly + height, SIZE)))
        calls.append((chunk.chunkpos, lx, lz))

    monkeypatch.setattr(mapgen, "gen_tree", record)
    expected = []
    for cx in range(-4, 4):
        for cz in range(-4, 4):
            for cy in (-1, 0):
                chunk = Chunk((cx, cy, cz))
                gen.generate_terrain(chunk)
                stats = gen.populate_chunk(chunk)
                selected = 0
                for lx in range(SIZE):
                    for lz in range(SIZE):
                        x, _, z = chunk.world_pos((lx, 0, lz))
                        if coord_hash(x ^ (z * 9572)) >= config.TREE_CHANCE:
                            continue
                        if (chunk.mtl[lx, :, lz] == GRASS).any():
                            expected.append((chunk.chunkpos, lx, lz))
                            selected += 1
                assert stats['trees'] == selected
    assert expected
    assert calls == expected
