from typing import Optional
import numpy as np
import numpy.typing as npt

from ...constants import INK_THRESHOLD


def threshold_dither(
    luminance: npt.NDArray[np.integer],
    threshold: int = INK_THRESHOLD
) -> npt.NDArray[np.uint8]:
    """Ink where luminance is strictly below the threshold."""
    return (luminance < threshold).astype(np.uint8)


def random_dither(
    luminance: npt.NDArray[np.integer],
    seed: Optional[int] = None
) -> npt.NDArray[np.uint8]:
    """
    Compare each cell against its own uniform draw from [0, 255).

    Output is only reproducible when a seed is given.
    """
    rng = np.random.default_rng(seed=seed)
    noise = rng.uniform(0.0, 255.0, size=luminance.shape)
    return (luminance < noise).astype(np.uint8)


def halftone_values(luminance: npt.NDArray[np.integer]) -> npt.NDArray[np.uint8]:
    """Inverted luminance, later used as dot size rather than presence."""
    return (255 - luminance.astype(np.int16)).clip(0, 255).astype(np.uint8)
