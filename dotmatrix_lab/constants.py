from enum import Enum
from typing import Tuple
import numpy as np


class DitherMethod(Enum):
    THRESHOLD = 'Threshold'
    RANDOM = 'Random (Noise)'
    FLOYD_STEINBERG = 'Floyd-Steinberg'
    ATKINSON = 'Atkinson'
    STUCKI = 'Stucki'
    SIERRA_LITE = 'Sierra Lite'
    BAYER_4x4 = 'Bayer 4x4'
    BAYER_8x8 = 'Bayer 8x8'
    HALFTONE = 'Halftone'


class DotShape(Enum):
    SQUARE = 'Square'
    CIRCLE = 'Circle'
    DIAMOND = 'Diamond'
    TRIANGLE = 'Triangle'
    CROSS = 'Cross'
    PLUS = 'Plus'
    HEART = 'Heart'
    STAR = 'Star'
    ASCII = 'ASCII'


# Luminance below this is ink for threshold and error-diffusion methods
INK_THRESHOLD: int = 128

# Halftone cells below this intensity draw no dot
HALFTONE_MIN_VALUE: int = 10

# Dots smaller than this (in output pixels) are skipped
MIN_DOT_SIZE: float = 0.5

# Ink bleed soft threshold band (alpha 150..170 is feathered)
BLEED_THRESHOLD_CENTER: int = 160
BLEED_FEATHER: int = 10

# Alpha at or above this survives the hard-edge pass
HARD_EDGE_CUTOFF: int = 128

# Supersampling factor used when rasterizing dot shapes
SHAPE_SUPERSAMPLE: int = 4

# Working buffer background
WHITE: Tuple[int, int, int, int] = (255, 255, 255, 255)

# ASCII glyph ramp: (upper bound exclusive, glyph)
ASCII_RAMP: Tuple[Tuple[int, str], ...] = (
    (50, '.'),
    (100, ':'),
    (150, '+'),
    (200, '#'),
)
ASCII_DENSEST: str = '@'

# Matrices
# Bayer 4x4 matrix
BAYER_4x4 = np.array([
    [ 0,  8,  2, 10],
    [12,  4, 14,  6],
    [ 3, 11,  1,  9],
    [15,  7, 13,  5],
], dtype=float) / 16.0

# Bayer 8x8 matrix
BAYER_8x8 = np.array([
    [ 0, 32,  8, 40,  2, 34, 10, 42],
    [48, 16, 56, 24, 50, 18, 58, 26],
    [12, 44,  4, 36, 14, 46,  6, 38],
    [60, 28, 52, 20, 62, 30, 54, 22],
    [ 3, 35, 11, 43,  1, 33,  9, 41],
    [51, 19, 59, 27, 49, 17, 57, 25],
    [15, 47,  7, 39, 13, 45,  5, 37],
    [63, 31, 55, 23, 61, 29, 53, 21]
], dtype=float) / 64.0

# Error diffusion kernels: rows of (dx, dy, weight)
FLOYD_STEINBERG = np.array([
    [ 1, 0, 7 / 16],
    [-1, 1, 3 / 16],
    [ 0, 1, 5 / 16],
    [ 1, 1, 1 / 16],
], dtype=float)

# Atkinson only propagates 6/8 of the error
#       X   1   1
#   1   1   1
#       1
ATKINSON = np.array([
    [ 1, 0, 1 / 8],
    [ 2, 0, 1 / 8],
    [-1, 1, 1 / 8],
    [ 0, 1, 1 / 8],
    [ 1, 1, 1 / 8],
    [ 0, 2, 1 / 8],
], dtype=float)

STUCKI = np.array([
    [ 1, 0, 8 / 42],
    [ 2, 0, 4 / 42],
    [-2, 1, 2 / 42],
    [-1, 1, 4 / 42],
    [ 0, 1, 8 / 42],
    [ 1, 1, 4 / 42],
    [ 2, 1, 2 / 42],
    [-2, 2, 1 / 42],
    [-1, 2, 2 / 42],
    [ 0, 2, 4 / 42],
    [ 1, 2, 2 / 42],
    [ 2, 2, 1 / 42],
], dtype=float)

SIERRA_LITE = np.array([
    [ 1, 0, 2 / 4],
    [-1, 1, 1 / 4],
    [ 0, 1, 1 / 4],
], dtype=float)

# Remote generation
IMAGE_MODEL: str = 'gemini-2.5-flash-image'
TEXT_MODEL: str = 'gemini-2.5-flash'
IMAGE_PROMPT_TEMPLATE: str = (
    "High contrast, black and white line art or stipple illustration of {prompt}. "
    "Vector graphic style, clean lines, white background. Minimalist. "
    "Suitable for thermal printing."
)
LABEL_PROMPT_TEMPLATE: str = (
    "Write a short, witty, industrial-style product label description "
    "(max 15 words) for: {context}. Return ONLY the text."
)
