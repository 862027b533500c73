#std/external libs
import time
import functools
import numpy

#local libs
from voxgen import config, logutil
from voxgen import noise
from voxgen.blocks import (NIL, STONE, DIRT, GRASS, SAND, WATER, LOG, LEAVES, ROSE, FERN, BUSH,
    SHORTGRASS, SHAPE_ISOSURFACE, SHAPE_LEAVES, MATERIAL_SHAPE)
from voxgen.chunk import Chunk
from voxgen.util import coord_hash, iter_aabb

SIZE = Chunk.SIZE

# Local cell coordinates of a chunk, indexed [x, y, z].
CHUNK_GRID = numpy.indices((SIZE, SIZE, SIZE))


class WorldGen(object):
    """Density-field terrain plus decoration for one world seed.

    Only holds immutable noise tables, so one instance can be shared by any
    number of generation threads.
    """

    def __init__(self, seed=None, decor_seed=None):
        if seed is None:
            seed = getattr(config, 'WORLD_SEED', 100)
        if decor_seed is None:
            decor_seed = getattr(config, 'DECOR_SEED', 123)
        self.seed = seed
        self.decor_seed = decor_seed
        self.fbm = noise.FractalNoise(seed, octaves=getattr(config, 'TERRAIN_OCTAVES', 5))
        self.decor = noise.SimplexNoise(seed=decor_seed)

    # ----- Density field -----

    def _column_axes(self, chunk):
        ox, oy, oz = chunk.world_origin()
        xs = numpy.arange(SIZE, dtype=float) + ox
        ys = numpy.arange(SIZE, dtype=float) + oy
        zs = numpy.arange(SIZE, dtype=float) + oz
        return xs, ys, zs

    def density(self, chunk):
        """Return the raw (SIZE, SIZE, SIZE) density field of a chunk, indexed [x, y, z]."""
        ox, oy, oz = chunk.world_origin()
        px = CHUNK_GRID[0] + ox
        py = CHUNK_GRID[1] + oy
        pz = CHUNK_GRID[2] + oz

        # 2D terrain signal per column, broadcast along y.
        cols = numpy.stack([px[:, 0, :].ravel(), pz[:, 0, :].ravel()], axis=-1)
        f_terr = self.fbm.noise(cols / config.TERRAIN_SCALE).reshape((SIZE, 1, SIZE))
        pts = numpy.stack([px.ravel(), py.ravel(), pz.ravel()], axis=-1)
        f_3d = self.fbm.noise(pts / config.CAVE_SCALE).reshape((SIZE, SIZE, SIZE))

        return f_terr - py / config.HEIGHT_FALLOFF + f_3d * config.CAVE_WEIGHT

    def generate_terrain(self, chunk):
        """Fill a chunk with STONE, WATER or air from the density field."""
        val = self.density(chunk)
        py = CHUNK_GRID[1] + chunk.world_origin()[1]

        stone = val > 0.0
        water = ~stone & (py < 0)
        chunk.mtl[...] = numpy.where(stone, STONE, numpy.where(water, WATER, NIL))
        chunk.shape[...] = SHAPE_ISOSURFACE
        # Flat isovalue on water so the surface renders level.
        chunk.iso[...] = numpy.where(water, config.WATER_ISOVALUE, val)

    # ----- Decoration -----

    def _decor2d(self, xs, zs, step):
        cols = numpy.stack(numpy.meshgrid(xs, zs, indexing='ij'), axis=-1).reshape((SIZE*SIZE, 2))
        return self.decor.noise(cols / step).reshape((SIZE, SIZE))

    def replace_surface(self, chunk):
        """Turn exposed stone into grass/dirt/sand layers, column by column from the top."""
        xs, ys, zs = self._column_axes(chunk)
        sand_noise = self._decor2d(xs, zs, config.SAND_SCALE) > config.SAND_THRESHOLD
        # Consecutive non-empty cells since the last empty cell above, this one included.
        depth = numpy.zeros((SIZE, SIZE), dtype=numpy.int32)
        for ly in range(SIZE - 1, -1, -1):
            layer = chunk.mtl[:, ly, :]
            depth = numpy.where(layer == NIL, 0, depth + 1)
            stone = layer == STONE
            if not stone.any():
                continue
            sand = stone & (ys[ly] < 2) & (depth <= 2) & sand_noise
            grass = stone & ~sand & (depth <= 1)
            dirt = stone & ~sand & ~grass & (depth < 3)
            layer[sand] = SAND
            layer[grass] = GRASS
            layer[dirt] = DIRT

    def scatter_flora(self, chunk, lx, lz, g):
        """Put one flora cell on the lowest grass cell with air above it."""
        for ly in range(SIZE - 1):
            if chunk.mtl[lx, ly, lz] == GRASS and chunk.mtl[lx, ly + 1, lz] == NIL:
                c = chunk.get_cell_mut((lx, ly + 1, lz))
                if g > 0.94:
                    mtl = ROSE
                elif g > 0.8:
                    mtl = FERN
                elif g > 0.24:
                    mtl = BUSH
                else:
                    mtl = SHORTGRASS
                c.set(mtl, MATERIAL_SHAPE[mtl], config.DECOR_ISOVALUE)
                return ly + 1
        return None

    def grow_vine(self, chunk, lx, lz, length):
        """Hang leaves down from the first stone ceiling in a column. Returns cells placed."""
        for ly in range(SIZE - 1):
            if chunk.mtl[lx, ly, lz] != NIL or chunk.mtl[lx, ly + 1, lz] != STONE:
                continue
            placed = 0
            for i in range(length):
                y = ly - i
                if y < 0:
                    break
                c = chunk.get_cell_mut((lx, y, lz))
                if c.material_id != NIL:
                    break
                c.set(LEAVES, SHAPE_LEAVES, config.DECOR_ISOVALUE)
                placed += 1
            return placed
        return 0

    def populate_chunk(self, chunk):
        """Decorate a freshly generated chunk: surface layers, then flora, vines and trees."""
        self.replace_surface(chunk)
        xs, ys, zs = self._column_axes(chunk)
        flora = self._decor2d(xs, zs, config.FLORA_SCALE)
        vine_chance = getattr(config, 'VINE_CHANCE', 18.0 / 256.0)
        tree_chance = getattr(config, 'TREE_CHANCE', 3.0 / 256.0)
        stats = {'flora': 0, 'vines': 0, 'trees': 0}
        for lx in range(SIZE):
            for lz in range(SIZE):
                x = int(xs[lx])
                z = int(zs[lz])

                g = flora[lx, lz]
                if g > 0.0 and self.scatter_flora(chunk, lx, lz, g) is not None:
                    stats['flora'] += 1

                if coord_hash(x ^ (z * 7384)) < vine_chance:
                    length = int(config.VINE_MAX_LENGTH * coord_hash(x ^ (z * 121)))
                    if self.grow_vine(chunk, lx, lz, length):
                        stats['vines'] += 1

                if coord_hash(x ^ (z * 9572)) < tree_chance:
                    for ly in range(SIZE):
                        if chunk.mtl[lx, ly, lz] != GRASS:
                            continue
                        gen_tree(chunk, (lx, ly, lz), coord_hash(x ^ ly ^ z))
                        stats['trees'] += 1
                        break
        return stats

    def generate_chunk(self, chunk):
        t = time.time()
        self.generate_terrain(chunk)
        stats = self.populate_chunk(chunk)
        logutil.log('WORLDGEN', 'chunk %s in %.1fms flora=%i vines=%i trees=%i' % (
            chunk.chunkpos, (time.time() - t) * 1000.0, stats['flora'], stats['vines'], stats['trees']),
            level='DEBUG')


def gen_tree(chunk, lp, siz):
    """Grow a tree rooted at local position lp; anything outside the chunk is clipped."""
    x, y, z = lp
    trunk_height = 3 + int(siz * 6.0)
    leaves_rad = 2 + int(siz * 5.0)
    top = y + trunk_height

    # Leaves: a ball around the trunk top
    for dx, dy, dz in iter_aabb(leaves_rad, leaves_rad):
        if dx * dx + dy * dy + dz * dz >= leaves_rad * leaves_rad:
            continue
        cp = (x + dx, top + dy, z + dz)
        if not Chunk.is_localpos(cp):
            continue
        chunk.get_cell_mut(cp).set(LEAVES, SHAPE_LEAVES, config.DECOR_ISOVALUE)

    # Trunk, tapering as it rises
    for i in range(trunk_height):
        if y + i >= SIZE:
            break
        chunk.get_cell_mut((x, y + i, z)).set(LOG, SHAPE_ISOSURFACE, 2.0 * (1.2 - i / trunk_height))


@functools.lru_cache(maxsize=8)
def get_world_gen(seed=None):
    if seed is None:
        seed = getattr(config, 'WORLD_SEED', 100)
    return WorldGen(seed=seed)


def generate_chunk(chunk, worldgen=None):
    """ Populate an empty chunk in place with terrain and decoration.

    """
    if worldgen is None:
        worldgen = get_world_gen(getattr(config, 'WORLD_SEED', 100))
    worldgen.generate_chunk(chunk)
