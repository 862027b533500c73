import os

# Edge length of a cubic chunk (x, y and z).
CHUNK_SIZE = 16

# Terrain generation
WORLD_SEED = 100
TERRAIN_OCTAVES = 5
TERRAIN_SCALE = 130.0  # horizontal step of the 2D terrain signal
CAVE_SCALE = 90.0  # step of the 3D cave/detail signal
HEIGHT_FALLOFF = 18.0  # world y per unit of density bias
CAVE_WEIGHT = 4.5
# Water cells get a flat isovalue so the surface renders level.
WATER_ISOVALUE = 0.1

# Decoration
DECOR_SEED = 123
SAND_SCALE = 32.0
SAND_THRESHOLD = 0.1
FLORA_SCALE = 18.0
VINE_CHANCE = 18.0 / 256.0
VINE_MAX_LENGTH = 12
TREE_CHANCE = 3.0 / 256.0
# Isovalue carried by grass/leaves shaped cells (outside any smooth surface).
DECOR_ISOVALUE = -1.0

# Chunk generation worker threads.
GEN_WORKERS = max(1, min(4, (os.cpu_count() or 1)))

# Enable ANSI colors in logs.
LOG_COLOR = True

# Log per-chunk generation timings.
LOG_WORLDGEN = False

# Log WFC solve progress.
LOG_WFC = True
