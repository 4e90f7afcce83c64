import numpy as np
import numpy.typing as npt
from numba import jit

from ...constants import INK_THRESHOLD


@jit(nopython=True)
def distribute_error(
    img: npt.NDArray[np.float64],
    x: int,
    y: int,
    error: float,
    kernel: npt.NDArray[np.float64]
) -> None:
    """
    Add weighted quantization error to the kernel neighbors of (x, y).

    The buffer behaves like an 8-bit clamped raster: each neighbor is rounded
    (half to even) and clamped to 0-255 after every add. Neighbors outside the
    buffer are skipped; their share of the error is lost.
    """
    height, width = img.shape
    for k in range(kernel.shape[0]):
        nx = x + int(kernel[k, 0])
        ny = y + int(kernel[k, 1])
        if 0 <= nx < width and 0 <= ny < height:
            value = np.rint(img[ny, nx] + error * kernel[k, 2])
            img[ny, nx] = min(255.0, max(0.0, value))


@jit(nopython=True)
def _error_diffusion_jit(
    img: npt.NDArray[np.float64],
    kernel: npt.NDArray[np.float64],
    threshold: float,
    ink: npt.NDArray[np.uint8]
) -> None:
    """
    Core error diffusion loop optimized with Numba.

    Pixels are visited in raster order and the buffer is modified in place,
    so every pixel sees the error already pushed onto it by earlier ones.

    Args:
        img: Float luminance buffer to modify in-place.
        kernel: Rows of (dx, dy, weight).
        threshold: Values below this quantize to black (ink).
        ink: Output cell map, 1 where ink was placed.
    """
    height, width = img.shape

    for y in range(height):
        for x in range(width):
            old_pixel = img[y, x]
            new_pixel = 0.0 if old_pixel < threshold else 255.0

            img[y, x] = new_pixel
            if new_pixel == 0.0:
                ink[y, x] = 1

            distribute_error(img, x, y, old_pixel - new_pixel, kernel)


def error_diffusion_dither(
    luminance: npt.NDArray[np.integer],
    kernel: npt.NDArray[np.float64],
    threshold: int = INK_THRESHOLD
) -> npt.NDArray[np.uint8]:
    """
    Dither a luminance grid by diffusing quantization error.

    Args:
        luminance: Grayscale numpy array (2D), 0-255.
        kernel: Diffusion kernel, rows of (dx, dy, weight).
        threshold: Binary cutoff (0-255).

    Returns:
        Cell map (uint8) where 1 is ink and 0 is paper.
    """
    # Float copy holding whole 0-255 values; only the error itself is fractional
    img = luminance.astype(np.float64)
    ink = np.zeros(img.shape, dtype=np.uint8)

    _error_diffusion_jit(img, np.ascontiguousarray(kernel, dtype=np.float64), float(threshold), ink)

    return ink
