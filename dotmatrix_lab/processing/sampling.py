from typing import Tuple
from PIL import Image

from ..constants import WHITE


def working_size(output_width: int, output_height: int, cell_size: int) -> Tuple[int, int]:
    """Dimensions of the low-resolution working buffer (one pixel per cell)."""
    return (
        max(1, output_width // cell_size),
        max(1, output_height // cell_size),
    )


def cover_fit(
    src_size: Tuple[int, int],
    dst_size: Tuple[int, int]
) -> Tuple[float, float, float, float]:
    """
    Compute a "cover" placement of the source inside the destination.

    The source is scaled so it fills the destination on the constraining
    axis and centered on the other, overflowing (and later cropped) there.

    Args:
        src_size: Source (width, height)
        dst_size: Destination (width, height)

    Returns:
        (draw_w, draw_h, off_x, off_y) in destination pixels. Offsets are
        zero or negative.
    """
    src_w, src_h = src_size
    dst_w, dst_h = dst_size

    src_aspect = src_w / src_h
    dst_aspect = dst_w / dst_h

    if src_aspect > dst_aspect:
        draw_h = float(dst_h)
        draw_w = src_w * (dst_h / src_h)
        off_x = (dst_w - draw_w) / 2
        off_y = 0.0
    else:
        draw_w = float(dst_w)
        draw_h = src_h * (dst_w / src_w)
        off_x = 0.0
        off_y = (dst_h - draw_h) / 2

    return draw_w, draw_h, off_x, off_y


def fit_and_sample(source: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """
    Downsample the source into a fresh RGBA working buffer using cover fit.

    The buffer starts white so transparent source areas read as paper.
    Only the part of the source that lands inside the buffer is resampled,
    which is the same as drawing the scaled image at its offset and
    cropping the overflow.
    """
    buffer = Image.new('RGBA', size, WHITE)

    draw_w, draw_h, off_x, off_y = cover_fit(source.size, size)

    # Map the destination rectangle back into source coordinates
    scale_x = source.width / draw_w
    scale_y = source.height / draw_h
    box = (
        -off_x * scale_x,
        -off_y * scale_y,
        (size[0] - off_x) * scale_x,
        (size[1] - off_y) * scale_y,
    )

    src = source if source.mode == 'RGBA' else source.convert('RGBA')
    sampled = src.resize(size, Image.Resampling.LANCZOS, box=box)
    buffer.alpha_composite(sampled)
    return buffer
