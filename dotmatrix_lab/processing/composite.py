from typing import Tuple, cast
from PIL import Image, ImageColor

RGBA = Tuple[int, int, int, int]


def parse_color(value: str) -> RGBA:
    """Parse any Pillow color string (e.g. '#1f2937') into an RGBA tuple."""
    return cast(RGBA, ImageColor.getcolor(value, "RGBA"))


def ink_and_paper(foreground: str, background: str, inverted: bool) -> Tuple[RGBA, RGBA]:
    """Return (ink, paper) colors, swapped when inverted."""
    ink, paper = parse_color(foreground), parse_color(background)
    if inverted:
        return paper, ink
    return ink, paper


def colorize(mask: Image.Image, color: RGBA) -> Image.Image:
    """
    Solid fill of `color` stenciled by the mask alpha.

    Equivalent to drawing the mask and filling with 'source-in': the fill
    only shows where the mask is opaque, scaled by its coverage.
    """
    layer = Image.new('RGBA', mask.size, color)
    alpha = mask.getchannel('A')
    if color[3] != 255:
        alpha = Image.eval(alpha, lambda a: a * color[3] // 255)
    layer.putalpha(alpha)
    return layer


def composite(
    mask: Image.Image,
    foreground: str,
    background: str,
    inverted: bool = False,
    transparent: bool = False
) -> Image.Image:
    """
    Colorize the processed shape mask and draw it over the paper.

    Args:
        mask: Black/transparent RGBA mask at output resolution.
        foreground: Ink color.
        background: Paper color.
        inverted: Swap ink and paper.
        transparent: Leave the background transparent instead of painting paper.

    Returns:
        Destination RGBA image.
    """
    ink, paper = ink_and_paper(foreground, background, inverted)

    if transparent:
        dest = Image.new('RGBA', mask.size, (0, 0, 0, 0))
    else:
        dest = Image.new('RGBA', mask.size, paper)

    # 1:1 draw, so no resampling (and no smoothing) is involved here
    dest.alpha_composite(colorize(mask, ink))
    return dest
