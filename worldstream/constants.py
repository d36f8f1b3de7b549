TICKS_PER_SECOND = 60

BLOCK_SIZE = 30
CHUNK_WIDTH_BLOCKS = 10
CHUNK_WIDTH = CHUNK_WIDTH_BLOCKS * BLOCK_SIZE
TERRAIN_DEPTH = 25
TOPSOIL_DEPTH = 2
GROUND_HEIGHT_RATIO = 2 / 3
NOISE_SCALE = BLOCK_SIZE * 7

LOAD_RADIUS_CHUNKS = 5
MAX_LOADED_CHUNKS = 20

TREE_SPACING = BLOCK_SIZE * 16
TREE_SPAWN_PROBABILITY = 90
MIN_TRUNK_HEIGHT = 4
MAX_TRUNK_HEIGHT = 9
CANOPY_WIDTH_BLOCKS = 7
CANOPY_HEIGHT_BLOCKS = 6
MIN_LEAVES = 22
MAX_LEAVES = 32
MIN_FRUITS = 1
MAX_FRUITS = 3

FRUIT_SIZE = 30
FRUIT_ENERGY_GAIN = 10.0
FRUIT_RESPAWN_SECONDS = 30.0

BLOCK_COLORS = {
    "topsoil": (0.83, 0.48, 0.29),
    "subsoil": (0.64, 0.37, 0.22),
    "trunk": (0.39, 0.20, 0.08),
    "leaf": (0.20, 0.78, 0.12),
    "fruit": (0.90, 0.10, 0.10),
}
