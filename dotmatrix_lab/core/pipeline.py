import io
import logging
import time
from pathlib import Path
from typing import Optional, Union
from PIL import Image
import numpy as np

from ..constants import DitherMethod
from ..processing.sampling import working_size, fit_and_sample
from ..processing.tone import apply_tone
from ..processing.text import draw_text_overlay
from ..processing.dither import apply_dithering_algorithm
from ..processing.shapes import render_shapes
from ..processing.bleed import post_process
from ..processing.composite import composite
from .settings import Settings
from .utils import get_output_filename

log = logging.getLogger(__name__)


def apply_dot_matrix(
    img: Image.Image,
    settings: Settings,
    seed: Optional[int] = None
) -> Optional[Image.Image]:
    """
    Render a PIL Image as a dot-matrix print using the given settings.

    The source image is only read. Every intermediate buffer is created for
    this call and dropped afterwards.

    Args:
        img: Source image of any size and mode.
        settings: Render settings.
        seed: Seed for the Random dither method; None draws fresh noise.

    Returns:
        RGBA image of (output_width, output_height), or None when the settings
        cannot produce an image (non-positive dimensions or cell size).
    """
    out_w, out_h = settings.output_width, settings.output_height
    if out_w < 1 or out_h < 1 or settings.pixel_size < 1 or img.width < 1 or img.height < 1:
        log.warning(
            "Skipping render: output %dx%d, cell size %d, source %dx%d",
            out_w, out_h, settings.pixel_size, img.width, img.height
        )
        return None

    started = time.perf_counter()

    # 1. Resize & crop into the low-resolution working buffer
    size = working_size(out_w, out_h, settings.pixel_size)
    buffer = fit_and_sample(img, size)

    # 2. Text overlay, drawn before dithering so it gets the dot treatment too
    draw_text_overlay(buffer, settings.text, settings.pixel_size)

    # 3. Grayscale & brightness/contrast
    buffer = apply_tone(buffer, settings.brightness, settings.contrast)

    # 4. Dithering (channels are equal after toning; red stands in for luminance)
    luminance = np.array(buffer)[..., 0]
    cell_map = apply_dithering_algorithm(settings.dither_method, luminance, seed)

    # 5. Dot shapes at full resolution
    mask = render_shapes(
        cell_map,
        settings.dot_shape,
        settings.pixel_size,
        settings.max_dot_size,
        settings.dither_method == DitherMethod.HALFTONE,
        (out_w, out_h)
    )

    # 6. Ink bleed or hard edges
    mask = post_process(mask, settings.ink_bleed)

    # 7. Colorize and composite
    result = composite(
        mask,
        settings.foreground_color,
        settings.background_color,
        inverted=settings.inverted,
        transparent=settings.transparent_background
    )

    log.debug(
        "Rendered %dx%d (%dx%d cells, %s, %s) in %.3fs",
        out_w, out_h, size[0], size[1],
        settings.dither_method.value, settings.dot_shape.value,
        time.perf_counter() - started
    )
    return result


def encode_png(img: Image.Image) -> bytes:
    """Serialize a rendered image as PNG bytes."""
    stream = io.BytesIO()
    img.save(stream, 'PNG')
    return stream.getvalue()


def render_file(
    input_path: Union[str, Path],
    settings: Settings,
    output_path: Optional[Union[str, Path]] = None,
    seed: Optional[int] = None
) -> Optional[Path]:
    """
    Render an image file and save the result as PNG.

    Args:
        input_path: Path to input image file
        settings: Render settings
        output_path: Optional path for output file. If None, generated from input filename.
        seed: Seed for the Random dither method

    Returns:
        Path to output file, or None when the settings produced nothing to save
    """
    # Load image
    try:
        img = Image.open(input_path)
        img.load()
    except Exception as e:
        raise ValueError(f"Failed to open image: {e}")

    result = apply_dot_matrix(img, settings, seed=seed)
    if result is None:
        return None

    # Determine final output path
    final_output_path: Path
    if output_path is None:
        final_output_path = get_output_filename(input_path)
    else:
        final_output_path = Path(output_path)

    # Output carries alpha, so it is always written as PNG
    result.save(final_output_path, 'PNG')
    log.info("Saved %s", final_output_path)

    return final_output_path
