'''
chunk.py -- voxel cell and chunk storage

A chunk is a cube of CHUNK_SIZE cells per edge. Cell data lives in three
numpy arrays indexed [x, y, z] so generation passes can work on whole
slabs at once; Cell/CellRef give the per-cell view used by the scatter
passes and by outside collaborators.
'''
import numpy

from voxgen import config
from voxgen.blocks import NIL, SHAPE_ISOSURFACE, MATERIAL_NAMES, SHAPE_NAMES


class Cell(object):
    __slots__ = ('material_id', 'shape_id', 'isovalue')

    def __init__(self, material_id=NIL, shape_id=SHAPE_ISOSURFACE, isovalue=0.0):
        self.material_id = int(material_id)
        self.shape_id = int(shape_id)
        self.isovalue = float(isovalue)

    def is_empty(self):
        return self.material_id == NIL

    def __eq__(self, other):
        if not isinstance(other, (Cell, CellRef)):
            return NotImplemented
        return (self.material_id == other.material_id and self.shape_id == other.shape_id
                and self.isovalue == other.isovalue)

    def __repr__(self):
        return 'Cell(%s, %s, %.3f)' % (MATERIAL_NAMES.get(self.material_id, self.material_id),
            SHAPE_NAMES.get(self.shape_id, self.shape_id), self.isovalue)


class CellRef(object):
    '''
    Write-through view of one cell of a chunk, returned by Chunk.get_cell_mut.
    '''
    __slots__ = ('_chunk', '_idx')

    def __init__(self, chunk, idx):
        self._chunk = chunk
        self._idx = idx

    @property
    def material_id(self):
        return int(self._chunk.mtl[self._idx])

    @material_id.setter
    def material_id(self, value):
        self._chunk.mtl[self._idx] = value

    @property
    def shape_id(self):
        return int(self._chunk.shape[self._idx])

    @shape_id.setter
    def shape_id(self, value):
        self._chunk.shape[self._idx] = value

    @property
    def isovalue(self):
        return float(self._chunk.iso[self._idx])

    @isovalue.setter
    def isovalue(self, value):
        self._chunk.iso[self._idx] = value

    def is_empty(self):
        return self.material_id == NIL

    def set(self, material_id, shape_id, isovalue):
        self.material_id = material_id
        self.shape_id = shape_id
        self.isovalue = isovalue

    def copy(self):
        return Cell(self.material_id, self.shape_id, self.isovalue)

    __eq__ = Cell.__eq__
    __hash__ = None

    def __repr__(self):
        return 'CellRef%s(%r)' % (self._idx, self.copy())


class Chunk(object):
    SIZE = config.CHUNK_SIZE

    def __init__(self, chunkpos=(0, 0, 0)):
        self.chunkpos = tuple(int(c) for c in chunkpos)
        shape = (self.SIZE, self.SIZE, self.SIZE)
        self.mtl = numpy.zeros(shape, dtype='u2')
        self.shape = numpy.full(shape, SHAPE_ISOSURFACE, dtype='u1')
        self.iso = numpy.zeros(shape, dtype=numpy.float32)

    @classmethod
    def is_localpos(cls, lp):
        x, y, z = lp
        return 0 <= x < cls.SIZE and 0 <= y < cls.SIZE and 0 <= z < cls.SIZE

    def _index(self, lp):
        if not self.is_localpos(lp):
            raise IndexError('local position %r outside chunk [0, %d)' % (tuple(lp), self.SIZE))
        return (int(lp[0]), int(lp[1]), int(lp[2]))

    def world_origin(self):
        return tuple(c * self.SIZE for c in self.chunkpos)

    def world_pos(self, lp):
        ox, oy, oz = self.world_origin()
        return (ox + lp[0], oy + lp[1], oz + lp[2])

    def get_cell(self, lp):
        idx = self._index(lp)
        return Cell(self.mtl[idx], self.shape[idx], self.iso[idx])

    def get_cell_mut(self, lp):
        return CellRef(self, self._index(lp))

    def set_cell(self, lp, cell):
        idx = self._index(lp)
        self.mtl[idx] = cell.material_id
        self.shape[idx] = cell.shape_id
        self.iso[idx] = cell.isovalue

    def is_empty(self, lp):
        return self.mtl[self._index(lp)] == NIL

    def count(self, material_id):
        return int(numpy.count_nonzero(self.mtl == material_id))

    def tobytes(self):
        return self.mtl.tobytes() + self.shape.tobytes() + self.iso.tobytes()

    def __repr__(self):
        return 'Chunk(%r)' % (self.chunkpos,)
