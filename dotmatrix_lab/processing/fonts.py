import logging
from functools import lru_cache
from typing import Union

from PIL import ImageFont

log = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

MONOSPACE_FAMILIES = ('DejaVu Sans Mono', 'Courier New', 'Courier', 'Liberation Mono')


def _candidates(family: str, bold: bool) -> list[str]:
    """File names Pillow may resolve for a family name."""
    compact = family.replace(' ', '')
    names = []
    if bold:
        names += [f"{compact}-Bold.ttf", f"{family} Bold.ttf", f"{compact}Bold.ttf"]
    names += [f"{compact}-Regular.ttf", f"{compact}.ttf", f"{family}.ttf", family]
    return names


@lru_cache(maxsize=64)
def load_font(family: str, size: int, bold: bool = False) -> Font:
    """
    Resolve a TrueType font by family name.

    Falls back to Pillow's bundled default font at the requested size when
    the family is not installed.
    """
    size = max(1, int(size))
    for name in _candidates(family, bold):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.debug("Font %r not found, using default font", family)
    return ImageFont.load_default(size=size)


@lru_cache(maxsize=64)
def load_monospace_font(size: int) -> Font:
    size = max(1, int(size))
    for family in MONOSPACE_FAMILIES:
        for name in _candidates(family, bold=False):
            try:
                return ImageFont.truetype(name, size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)
