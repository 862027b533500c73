'''
wfc.py -- Wave Function Collapse over a dense 3D lattice of socketed tiles

Patterns carry one socket id per face (+X, -X, +Y, -Y, +Z, -Z). Two
neighboring tiles are consistent while some pattern left on one side
shows, toward the other, the same socket the other side shows back.
Rotated and flipped variants are expanded into the pattern table when a
pattern is pushed, so propagation only compares socket ids.

Typical use::

    wfc = WFC(rng=random.Random(7))
    wfc.push_pattern('flat', [0] * 6)
    wfc.push_pattern('bend', [1, 0, 0, 0, 1, 0], allow_rotation=True)
    wfc.init_tiles((15, 1, 15))
    result = wfc.run()
    for pos, pattern in wfc.placements():
        ...
'''
import time
import random
import concurrent.futures
from collections import deque

from voxgen import logutil
from voxgen.util import FACES

# Face order used by sockets and FACES.
POS_X, NEG_X, POS_Y, NEG_Y, POS_Z, NEG_Z = range(6)
OPPOSITE = (NEG_X, POS_X, NEG_Y, POS_Y, NEG_Z, POS_Z)

SOLVED = 'solved'
CONTRADICTION = 'contradiction'
CANCELLED = 'cancelled'


class WFCStateError(RuntimeError):
    """Solver driven out of order (push after init, run before init, init twice, ...)."""


def rotate_sockets(sockets):
    # Quarter turn about +Y: +X -> +Z -> -X -> -Z -> +X.
    s = sockets
    return (s[NEG_Z], s[POS_Z], s[POS_Y], s[NEG_Y], s[POS_X], s[NEG_X])


def flip_sockets(sockets):
    # Mirror across the YZ plane.
    s = sockets
    return (s[NEG_X], s[POS_X], s[POS_Y], s[NEG_Y], s[POS_Z], s[NEG_Z])


class Pattern(object):
    __slots__ = ('name', 'sockets', 'rotation', 'is_flipped')

    def __init__(self, name, sockets, rotation=0, is_flipped=False):
        sockets = tuple(int(s) for s in sockets)
        if len(sockets) != 6:
            raise ValueError('pattern %r needs 6 sockets, got %i' % (name, len(sockets)))
        object.__setattr__(self, 'name', name)
        object.__setattr__(self, 'sockets', sockets)
        object.__setattr__(self, 'rotation', rotation)
        object.__setattr__(self, 'is_flipped', is_flipped)

    def __setattr__(self, key, value):
        raise AttributeError('Pattern is immutable')

    def variants(self, allow_rotation, allow_flip):
        """Return this pattern followed by its derived rotation/flip variants."""
        out = []
        sockets = self.sockets
        for rotation in range(4 if allow_rotation else 1):
            out.append(Pattern(self.name, sockets, rotation, False))
            if allow_flip:
                out.append(Pattern(self.name, flip_sockets(sockets), rotation, True))
            sockets = rotate_sockets(sockets)
        return out

    def __eq__(self, other):
        if not isinstance(other, Pattern):
            return NotImplemented
        return (self.name, self.sockets, self.rotation, self.is_flipped) == \
            (other.name, other.sockets, other.rotation, other.is_flipped)

    def __hash__(self):
        return hash((self.name, self.sockets, self.rotation, self.is_flipped))

    def __repr__(self):
        return 'Pattern(%r, %r, rot=%i%s)' % (self.name, self.sockets, self.rotation,
            ', flipped' if self.is_flipped else '')


class Tile(object):
    __slots__ = ('pos', 'possib')

    def __init__(self, pos, possib):
        self.pos = pos
        self.possib = possib

    def entropy(self):
        return len(self.possib)

    def is_collapsed(self):
        return len(self.possib) == 1

    def is_contradiction(self):
        return len(self.possib) == 0

    def pattern_index(self):
        return self.possib[0] if self.possib else None

    def __repr__(self):
        return 'Tile(%r, %r)' % (self.pos, self.possib)


class WFCResult(object):
    def __init__(self, status, contradictions=(), steps=0, elapsed=0.0):
        self.status = status
        self.contradictions = list(contradictions)
        self.steps = steps
        self.elapsed = elapsed

    @property
    def solved(self):
        return self.status == SOLVED

    def __repr__(self):
        return 'WFCResult(%s, steps=%i, contradictions=%r)' % (self.status, self.steps, self.contradictions)


class WFC(object):
    def __init__(self, rng=None):
        # Anything with choice(seq); the random module itself by default.
        self.rng = rng if rng is not None else random
        self.all_patterns = []
        self.tiles = None
        self.extent = None
        self.contradictions = []
        self.result = None
        self._face_sockets = None
        self._primed = False

    # ----- Setup -----

    def push_pattern(self, name, sockets, allow_rotation=False, allow_flip=False):
        """ Register a pattern and its derived variants.

        Returns the pattern table indices that were appended.
        """
        if self.tiles is not None:
            raise WFCStateError('push_pattern after init_tiles')
        variants = Pattern(name, sockets).variants(allow_rotation, allow_flip)
        start = len(self.all_patterns)
        self.all_patterns.extend(variants)
        return list(range(start, len(self.all_patterns)))

    def init_tiles(self, extent):
        if self.tiles is not None:
            raise WFCStateError('init_tiles called twice')
        if not self.all_patterns:
            raise WFCStateError('init_tiles with an empty pattern table')
        ex, ey, ez = (int(e) for e in extent)
        if ex < 1 or ey < 1 or ez < 1:
            raise ValueError('extent must be positive on every axis, got %r' % (tuple(extent),))
        self.extent = (ex, ey, ez)
        n = len(self.all_patterns)
        # Scan order: x fastest, then z, then y.
        self.tiles = [Tile((x, y, z), list(range(n)))
                      for y in range(ey) for z in range(ez) for x in range(ex)]
        self._face_sockets = [tuple(p.sockets[face] for p in self.all_patterns) for face in range(6)]

    # ----- Lattice access -----

    def in_bounds(self, pos):
        x, y, z = pos
        ex, ey, ez = self.extent
        return 0 <= x < ex and 0 <= y < ey and 0 <= z < ez

    def tile_at(self, pos):
        if not self.in_bounds(pos):
            raise IndexError('tile %r outside lattice %r' % (tuple(pos), self.extent))
        x, y, z = pos
        ex, ey, ez = self.extent
        return self.tiles[x + ex * (z + ez * y)]

    def neighbors(self, pos):
        """Yield (face, neighbor tile) for each in-bounds neighbor of pos."""
        x, y, z = pos
        for face, (dx, dy, dz) in enumerate(FACES):
            npos = (x + dx, y + dy, z + dz)
            if self.in_bounds(npos):
                yield face, self.tile_at(npos)

    def pattern_of(self, tile):
        idx = tile.pattern_index()
        return None if idx is None else self.all_patterns[idx]

    def placements(self):
        """ Yield (pos, pattern) for every collapsed tile.

        Contradicted tiles and tiles left unresolved by a stopped or
        cancelled run are skipped.
        """
        for tile in self.tiles:
            if tile.is_collapsed():
                yield tile.pos, self.all_patterns[tile.possib[0]]

    # ----- Solve -----

    def _require_tiles(self):
        if self.tiles is None:
            raise WFCStateError('init_tiles must be called before solving')

    def _min_entropy_tile(self):
        best = None
        best_entropy = None
        for tile in self.tiles:
            e = len(tile.possib)
            if e > 1 and (best is None or e < best_entropy):
                best = tile
                best_entropy = e
                if e == 2:
                    break
        return best

    def _collapse(self, tile):
        tile.possib = [self.rng.choice(tile.possib)]

    def _propagate(self, origins):
        queue = deque(origins)
        queued = {tile.pos for tile in queue}
        while queue:
            tile = queue.popleft()
            queued.discard(tile.pos)
            if not tile.possib:
                continue
            for face, other in self.neighbors(tile.pos):
                facing = self._face_sockets[face]
                allowed = {facing[p] for p in tile.possib}
                back = self._face_sockets[OPPOSITE[face]]
                keep = [q for q in other.possib if back[q] in allowed]
                if len(keep) == len(other.possib):
                    continue
                other.possib = keep
                if not keep:
                    # Nothing can follow from an empty tile.
                    self.contradictions.append(other.pos)
                    continue
                if other.pos not in queued:
                    queued.add(other.pos)
                    queue.append(other)

    def step(self):
        """ Collapse the lowest entropy tile and propagate.

        Returns the collapsed position, or None once no tile has more than
        one candidate left.
        """
        self._require_tiles()
        if not self._primed:
            # Settle constraints the pattern table imposes before any choice.
            self._primed = True
            self._propagate(self.tiles)
            if self.contradictions:
                return None
        tile = self._min_entropy_tile()
        if tile is None:
            return None
        self._collapse(tile)
        self._propagate([tile])
        return tile.pos

    def run(self, cancel=None):
        """ Solve the lattice to completion.

        cancel is an optional threading.Event checked between collapse
        steps. Contradictions stop the solve and are reported in the
        result, the tiles are left as they were for the caller to inspect.
        """
        self._require_tiles()
        if self.result is not None:
            raise WFCStateError('run called twice')
        t = time.time()
        steps = 0
        status = SOLVED
        while True:
            if cancel is not None and cancel.is_set():
                status = CANCELLED
                break
            pos = self.step()
            if pos is not None:
                steps += 1
            if self.contradictions:
                status = CONTRADICTION
                break
            if pos is None:
                break
        self.result = WFCResult(status, self.contradictions, steps, time.time() - t)
        if status == CONTRADICTION:
            logutil.log('WFC', 'contradiction after %i steps at %s' % (steps, self.contradictions[:8]), level='WARN')
        else:
            logutil.log('WFC', '%s %s lattice, %i patterns, %i steps in %.1fms' % (
                status, self.extent, len(self.all_patterns), steps, self.result.elapsed * 1000.0))
        return self.result


def load_patterns(wfc, patterns):
    """Push (name, sockets[, allow_rotation[, allow_flip]]) entries into a solver."""
    for entry in patterns:
        wfc.push_pattern(*entry)
    return wfc


def solve(patterns, extent, rng=None, retries=0, cancel=None):
    """ Build and run a fresh solver, retrying up to `retries` times on contradiction.

    Returns (wfc, result) of the last attempt.
    """
    attempt = 0
    while True:
        wfc = load_patterns(WFC(rng=rng), patterns)
        wfc.init_tiles(extent)
        result = wfc.run(cancel=cancel)
        if result.status != CONTRADICTION or attempt >= retries:
            return wfc, result
        attempt += 1
        logutil.log('WFC', 'retry %i/%i' % (attempt, retries))


def solve_async(wfc, executor=None, cancel=None):
    """Run wfc.run on a background thread; returns a concurrent.futures.Future."""
    if executor is not None:
        return executor.submit(wfc.run, cancel)
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="WFC")
    fut = executor.submit(wfc.run, cancel)
    executor.shutdown(wait=False)
    return fut
