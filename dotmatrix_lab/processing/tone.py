import numpy as np
import numpy.typing as npt
from PIL import Image


def tone_map(
    rgb: npt.NDArray[np.integer],
    brightness: float,
    contrast: float
) -> npt.NDArray[np.uint8]:
    """
    Convert RGB to gray and apply brightness, then contrast around 128.

    Args:
        rgb: Array of shape (h, w, 3) or more channels (only the first three are read).
        brightness: Offset in units of full scale (-1 to 1).
        contrast: Gain around the midpoint.

    Returns:
        Gray levels (h, w), rounded half-to-even and clamped to 0-255.
    """
    rgb = rgb.astype(float)
    gray = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
    gray += brightness * 255
    gray = (gray - 128) * contrast + 128
    gray = np.clip(gray, 0, 255)
    return np.rint(gray).astype(np.uint8)


def apply_tone(buffer: Image.Image, brightness: float, contrast: float) -> Image.Image:
    """Return a toned copy of the RGBA buffer; alpha is left untouched."""
    data = np.array(buffer.convert('RGBA'))
    gray = tone_map(data, brightness, contrast)
    data[..., 0] = gray
    data[..., 1] = gray
    data[..., 2] = gray
    return Image.fromarray(data)
