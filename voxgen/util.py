import itertools

FACES = [
    ( 1, 0, 0), #+x
    (-1, 0, 0), #-x
    ( 0, 1, 0), #up
    ( 0,-1, 0), #down
    ( 0, 0, 1), #+z
    ( 0, 0,-1), #-z
]

_MASK32 = 0xFFFFFFFF


def coord_hash(n):
    """ Return a deterministic float in [0, 1) for an integer.

    The integer is folded to 32 bits first so negative coordinates and
    products like ``z * 7384`` hash the same on every machine.
    """
    h = int(n) & _MASK32
    h = ((h >> 16) ^ h) * 0x45d9f3b & _MASK32
    h = ((h >> 16) ^ h) * 0x45d9f3b & _MASK32
    h = (h >> 16) ^ h
    return (h & 0xFFFFFF) / float(1 << 24)


def iter_aabb(rx, ry, rz=None):
    """ Yield integer offsets (dx, dy, dz) of the box [-rx,rx] x [-ry,ry] x [-rz,rz].

    rz defaults to rx (square footprint).
    """
    if rz is None:
        rz = rx
    return itertools.product(range(-rx, rx + 1), range(-ry, ry + 1), range(-rz, rz + 1))
