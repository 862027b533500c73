'''
Stock pattern tables for the WFC solver.

Entries are (name, sockets, allow_rotation, allow_flip) with sockets
ordered +X, -X, +Y, -Y, +Z, -Z. Names double as the texture key a
consumer uses to place each tile.
'''
from voxgen.wfc import WFC, load_patterns

# Circuit board tiles laid out on a flat (y=1) lattice: 0 = void, 1 = board,
# 2 = track, 3 = wire, 4 = component edge.
CIRCUIT_PATTERNS = [
    ("0", [0, 0, 0, 0, 0, 0], False, False),
    ("1", [1, 1, 1, 1, 1, 1], False, False),
    ("2", [0, 2, 0, 0, 0, 0], True, False),
    ("3", [3, 3, 0, 0, 0, 0], True, False),
    ("4", [1, 2, 0, 0, 4, 4], True, False),
    ("5", [4, 0, 0, 0, 4, 0], True, False),
    ("6", [2, 2, 0, 0, 0, 0], True, False),
    ("7", [2, 2, 0, 0, 3, 3], True, False),
    ("8", [0, 0, 0, 0, 3, 2], True, False),
    ("9", [2, 2, 0, 0, 2, 0], True, False),
    ("10", [2, 2, 0, 0, 2, 2], True, False),
    ("11", [0, 2, 0, 0, 2, 0], True, False),
    ("12", [2, 2, 0, 0, 0, 0], True, False),
]

CIRCUIT_EXTENT = (15, 1, 15)


def circuit_wfc(extent=CIRCUIT_EXTENT, rng=None):
    """Return a solver loaded with the circuit tiles and its lattice allocated."""
    wfc = load_patterns(WFC(rng=rng), CIRCUIT_PATTERNS)
    wfc.init_tiles(extent)
    return wfc
