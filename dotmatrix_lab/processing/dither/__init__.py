from typing import Optional
import numpy as np
import numpy.typing as npt
from ...constants import (
    DitherMethod, BAYER_4x4, BAYER_8x8,
    FLOYD_STEINBERG, ATKINSON, STUCKI, SIERRA_LITE,
)

from .error_diffusion import error_diffusion_dither
from .ordered import ordered_dither
from .threshold import threshold_dither, random_dither, halftone_values

def apply_dithering_algorithm(
    method: DitherMethod,
    luminance: npt.NDArray[np.integer],
    seed: Optional[int] = None
) -> npt.NDArray[np.uint8]:
    """
    Dispatch to the appropriate dithering function.

    Returns a cell map: 1/0 ink flags for binary methods, or inverted
    luminance (0-255) for halftone.
    """
    match method:
        case DitherMethod.THRESHOLD:
            return threshold_dither(luminance)
        case DitherMethod.RANDOM:
            return random_dither(luminance, seed)
        case DitherMethod.FLOYD_STEINBERG:
            return error_diffusion_dither(luminance, FLOYD_STEINBERG)
        case DitherMethod.ATKINSON:
            return error_diffusion_dither(luminance, ATKINSON)
        case DitherMethod.STUCKI:
            return error_diffusion_dither(luminance, STUCKI)
        case DitherMethod.SIERRA_LITE:
            return error_diffusion_dither(luminance, SIERRA_LITE)
        case DitherMethod.BAYER_4x4:
            return ordered_dither(luminance, BAYER_4x4)
        case DitherMethod.BAYER_8x8:
            return ordered_dither(luminance, BAYER_8x8)
        case DitherMethod.HALFTONE:
            return halftone_values(luminance)
        case _:
            raise ValueError(f"Unknown dithering method: {method}")
