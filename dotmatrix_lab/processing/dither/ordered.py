import numpy as np
import numpy.typing as npt


def ordered_dither(
    luminance: npt.NDArray[np.integer],
    matrix: npt.NDArray[np.float64]
) -> npt.NDArray[np.uint8]:
    """
    Apply ordered dithering using a normalized threshold matrix.

    A cell is ink when its luminance is below matrix[y % n][x % n] * 255.
    """
    height, width = luminance.shape
    mh, mw = matrix.shape

    # Tile the matrix to cover the image
    tiled_matrix = np.tile(matrix, (height // mh + 1, width // mw + 1))
    tiled_matrix = tiled_matrix[:height, :width]

    thresholds = tiled_matrix * 255.0
    return (luminance < thresholds).astype(np.uint8)
