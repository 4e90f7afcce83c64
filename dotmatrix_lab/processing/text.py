from PIL import Image, ImageDraw

from ..core.settings import TextOverlay
from .fonts import load_font

LINE_HEIGHT: float = 1.2


def draw_text_overlay(buffer: Image.Image, overlay: TextOverlay, cell_size: int) -> None:
    """
    Draw multi-line text into the working buffer in place.

    Font size and position are given in output pixels and scaled by
    1/cell_size. Lines are left aligned with the top of each line at
    y + index * line height, so the text is dithered together with the image.
    """
    if not overlay.enabled or not overlay.text:
        return

    scale = 1 / cell_size
    font_size = max(1, round(overlay.size * scale))
    x = overlay.x * scale
    y = overlay.y * scale

    font = load_font(overlay.font_family, font_size, bold=True)
    fill = (0, 0, 0, 255) if overlay.dark else (255, 255, 255, 255)
    line_height = font_size * LINE_HEIGHT

    draw = ImageDraw.Draw(buffer)
    for index, line in enumerate(overlay.text.split('\n')):
        # 'la' anchors at the left of the ascender line, i.e. a top baseline
        draw.text((x, y + index * line_height), line, font=font, fill=fill, anchor='la')
