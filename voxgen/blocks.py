import numpy

# Shape tags: how a cell is rendered/collided.
SHAPE_ISOSURFACE = 0
SHAPE_GRASS = 1
SHAPE_LEAVES = 2

SHAPE_NAMES = {
    SHAPE_ISOSURFACE: 'Isosurface',
    SHAPE_GRASS: 'Grass',
    SHAPE_LEAVES: 'Leaves',
}


class Material(object):
    name = None
    # Shape the material is placed with by the generator.
    shape = SHAPE_ISOSURFACE

class Decoration(Material):
    shape = SHAPE_GRASS

class Stone(Material):
    name = 'Stone'

class Dirt(Material):
    name = 'Dirt'

class Grass(Material):
    name = 'Grass'

class Sand(Material):
    name = 'Sand'

class Water(Material):
    name = 'Water'

class Log(Material):
    name = 'Log'

class Leaves(Material):
    name = 'Leaves'
    shape = SHAPE_LEAVES

class Rose(Decoration):
    name = 'Rose'

class Fern(Decoration):
    name = 'Fern'

class Bush(Decoration):
    name = 'Bush'

class ShortGrass(Decoration):
    name = 'Short Grass'


MATERIALS = [
    Stone,
    Dirt,
    Grass,
    Sand,
    Water,
    Log,
    Leaves,
    Rose,
    Fern,
    Bush,
    ShortGrass,
]
i = 1
MATERIAL_ID = {'Nil': 0}
for x in MATERIALS:
    MATERIAL_ID[x.name] = i
    i+=1
MATERIAL_NAMES = {v: k for k, v in MATERIAL_ID.items()}
MATERIAL_SHAPE = numpy.array([SHAPE_ISOSURFACE]+[x.shape for x in MATERIALS], dtype = numpy.uint8)

NIL = 0
STONE = MATERIAL_ID['Stone']
DIRT = MATERIAL_ID['Dirt']
GRASS = MATERIAL_ID['Grass']
SAND = MATERIAL_ID['Sand']
WATER = MATERIAL_ID['Water']
LOG = MATERIAL_ID['Log']
LEAVES = MATERIAL_ID['Leaves']
ROSE = MATERIAL_ID['Rose']
FERN = MATERIAL_ID['Fern']
BUSH = MATERIAL_ID['Bush']
SHORTGRASS = MATERIAL_ID['Short Grass']

FLORA_IDS = {ROSE, FERN, BUSH, SHORTGRASS}
