import math

import numpy as np
import numpy.typing as npt
from PIL import Image, ImageFilter, ImageOps

from ..constants import BLEED_THRESHOLD_CENTER, BLEED_FEATHER, HARD_EDGE_CUTOFF


def _black_mask(alpha: npt.NDArray[np.uint8]) -> Image.Image:
    data = np.zeros(alpha.shape + (4,), dtype=np.uint8)
    data[..., 3] = alpha
    return Image.fromarray(data)


def soft_threshold(
    alpha: npt.NDArray[np.integer],
    center: int = BLEED_THRESHOLD_CENTER,
    feather: int = BLEED_FEATHER
) -> npt.NDArray[np.uint8]:
    """
    Map alpha through a narrow ramp around `center`.

    At or below center - feather becomes 0, at or above center + feather
    becomes 255, and the band in between is stretched linearly to 0-255.
    """
    lower = center - feather
    upper = center + feather
    ramp = (alpha.astype(float) - lower) / (upper - lower) * 255.0
    out = np.where(alpha <= lower, 0.0, np.where(alpha >= upper, 255.0, ramp))
    return np.rint(out).astype(np.uint8)


def hard_threshold(
    alpha: npt.NDArray[np.integer],
    cutoff: int = HARD_EDGE_CUTOFF
) -> npt.NDArray[np.uint8]:
    """Binarize alpha: below cutoff is 0, otherwise 255."""
    return np.where(alpha < cutoff, 0, 255).astype(np.uint8)


def apply_ink_bleed(mask: Image.Image, radius: float) -> Image.Image:
    """
    Blur the shape mask and cut it with a soft alpha threshold.

    Dots closer than about twice the radius fuse into one blob with
    anti-aliased edges. Color is forced to black wherever alpha survives.
    Pixels beyond the frame count as transparent, so ink fades at the border.
    """
    pad = math.ceil(3 * radius) + 1
    alpha = ImageOps.expand(mask.getchannel('A'), border=pad, fill=0)
    blurred = alpha.filter(ImageFilter.GaussianBlur(radius))
    blurred = blurred.crop((pad, pad, pad + mask.width, pad + mask.height))
    return _black_mask(soft_threshold(np.array(blurred)))


def enforce_hard_edges(mask: Image.Image) -> Image.Image:
    """Strip anti-aliasing so every pixel is either opaque black or transparent."""
    return _black_mask(hard_threshold(np.array(mask.getchannel('A'))))


def post_process(mask: Image.Image, ink_bleed: float) -> Image.Image:
    if ink_bleed > 0:
        return apply_ink_bleed(mask, ink_bleed)
    return enforce_hard_edges(mask)
