import math
from typing import Iterator, Tuple

import numpy as np
import numpy.typing as npt
from PIL import Image, ImageDraw

from ..constants import (
    DotShape, ASCII_RAMP, ASCII_DENSEST, HALFTONE_MIN_VALUE, MIN_DOT_SIZE, SHAPE_SUPERSAMPLE,
)
from .fonts import load_monospace_font

Point = Tuple[float, float]

BEZIER_STEPS = 12


def ascii_glyph(value: int) -> str:
    """Glyph for a cell value, denser glyphs for higher values."""
    for bound, glyph in ASCII_RAMP:
        if value < bound:
            return glyph
    return ASCII_DENSEST


def _rotate(points: list[Point], cx: float, cy: float, angle: float) -> list[Point]:
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    return [
        (cx + x * cos_a - y * sin_a, cy + x * sin_a + y * cos_a)
        for x, y in points
    ]


def _rect(w: float, h: float) -> list[Point]:
    """Axis-aligned rectangle centered on the origin."""
    return [(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]


def _cubic(p0: Point, p1: Point, p2: Point, p3: Point, steps: int = BEZIER_STEPS) -> list[Point]:
    """Sample a cubic Bezier curve, excluding its start point."""
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    pts = np.array([p0, p1, p2, p3], dtype=float)
    curve = (
        (1 - t) ** 3 * pts[0]
        + 3 * (1 - t) ** 2 * t * pts[1]
        + 3 * (1 - t) * t ** 2 * pts[2]
        + t ** 3 * pts[3]
    )
    return [(float(x), float(y)) for x, y in curve]


def diamond_polygon(cx: float, cy: float, size: float) -> list[Point]:
    """Square of side `size` rotated 45 degrees."""
    return _rotate(_rect(size, size), cx, cy, math.pi / 4)


def triangle_polygon(cx: float, cy: float, size: float) -> list[Point]:
    """Equilateral triangle, apex up, centered on its bounding box."""
    h = size * (math.sqrt(3) / 2)
    return [(cx, cy - h / 2), (cx - size / 2, cy + h / 2), (cx + size / 2, cy + h / 2)]


def plus_polygons(cx: float, cy: float, size: float, angle: float = 0.0) -> list[list[Point]]:
    """Two crossing bars with thickness size/3, optionally rotated."""
    t = size / 3
    return [
        _rotate(_rect(size, t), cx, cy, angle),
        _rotate(_rect(t, size), cx, cy, angle),
    ]


def heart_polygon(cx: float, cy: float, size: float) -> list[Point]:
    """Heart silhouette built from four cubic Bezier segments."""
    top = size * 0.3
    ox, oy = cx, cy - size * 0.1
    half = size / 2
    lower = (size + top) / 2

    start = (0.0, top)
    outline = [start]
    outline += _cubic(start, (0, 0), (-half, 0), (-half, top))
    outline += _cubic((-half, top), (-half, lower), (0, lower + size / 3), (0, size))
    outline += _cubic((0, size), (0, lower + size / 3), (half, lower), (half, top))
    outline += _cubic((half, top), (half, 0), (0, 0), start)
    return [(ox + x, oy + y) for x, y in outline]


def star_polygon(
    cx: float,
    cy: float,
    outer_radius: float,
    inner_radius: float,
    spikes: int = 5
) -> list[Point]:
    """Star with the first spike pointing straight up."""
    rot = math.pi / 2 * 3
    step = math.pi / spikes
    points = []
    for _ in range(spikes):
        points.append((cx + math.cos(rot) * outer_radius, cy + math.sin(rot) * outer_radius))
        rot += step
        points.append((cx + math.cos(rot) * inner_radius, cy + math.sin(rot) * inner_radius))
        rot += step
    return points


class ShapeCanvas:
    """
    Supersampled drawing surface for dot shapes.

    Coordinates passed in are output pixels; shapes are drawn `scale` times
    larger and box-filtered down, which gives anti-aliased coverage in the
    alpha channel of the finished mask.
    """

    def __init__(self, size: Tuple[int, int], scale: int = SHAPE_SUPERSAMPLE):
        self.size = size
        self.scale = scale
        self.coverage = Image.new('L', (size[0] * scale, size[1] * scale), 0)
        self.draw = ImageDraw.Draw(self.coverage)

    def _pt(self, p: Point) -> Point:
        # Pixel (i) spans [i, i+1) while Pillow vertices address pixel centers
        return (p[0] * self.scale - 0.5, p[1] * self.scale - 0.5)

    def polygon(self, points: list[Point]) -> None:
        self.draw.polygon([self._pt(p) for p in points], fill=255)

    def square(self, cx: float, cy: float, size: float) -> None:
        s = self.scale
        x0 = round((cx - size / 2) * s)
        y0 = round((cy - size / 2) * s)
        x1 = round((cx + size / 2) * s) - 1
        y1 = round((cy + size / 2) * s) - 1
        if x1 >= x0 and y1 >= y0:
            self.draw.rectangle([x0, y0, x1, y1], fill=255)

    def circle(self, cx: float, cy: float, size: float) -> None:
        s = self.scale
        r = size / 2
        x0, y0 = (cx - r) * s, (cy - r) * s
        x1, y1 = (cx + r) * s - 1, (cy + r) * s - 1
        if x1 >= x0 and y1 >= y0:
            self.draw.ellipse([x0, y0, x1, y1], fill=255)

    def glyph(self, cx: float, cy: float, size: float, char: str) -> None:
        font = load_monospace_font(math.floor(size) * self.scale)
        self.draw.text((cx * self.scale, cy * self.scale), char, font=font, fill=255, anchor='mm')

    def to_mask(self) -> Image.Image:
        """Black RGBA mask whose alpha is the downsampled coverage."""
        alpha = self.coverage.reduce(self.scale) if self.scale > 1 else self.coverage
        black = Image.new('L', self.size, 0)
        return Image.merge('RGBA', (black, black, black, alpha))


def draw_shape(canvas: ShapeCanvas, shape: DotShape, cx: float, cy: float, size: float, value: int) -> None:
    match shape:
        case DotShape.SQUARE:
            canvas.square(cx, cy, size)
        case DotShape.CIRCLE:
            canvas.circle(cx, cy, size)
        case DotShape.DIAMOND:
            canvas.polygon(diamond_polygon(cx, cy, size))
        case DotShape.TRIANGLE:
            canvas.polygon(triangle_polygon(cx, cy, size))
        case DotShape.CROSS:
            for bar in plus_polygons(cx, cy, size, angle=math.pi / 4):
                canvas.polygon(bar)
        case DotShape.PLUS:
            for bar in plus_polygons(cx, cy, size):
                canvas.polygon(bar)
        case DotShape.HEART:
            canvas.polygon(heart_polygon(cx, cy, size))
        case DotShape.STAR:
            canvas.polygon(star_polygon(cx, cy, size / 2, size / 4))
        case DotShape.ASCII:
            canvas.glyph(cx, cy, size, ascii_glyph(value))
        case _:
            raise ValueError(f"Unknown dot shape: {shape}")


def iter_dots(
    cell_map: npt.NDArray[np.integer],
    cell_size: int,
    max_dot_size: float,
    halftone: bool
) -> Iterator[Tuple[float, float, float, int]]:
    """
    Yield (cx, cy, size, value) for every cell that draws a dot.

    Binary maps draw full-size dots on 1s. Halftone maps scale the dot by
    value/255 and skip faint cells.
    """
    ys, xs = np.nonzero(cell_map)
    for y, x in zip(ys.tolist(), xs.tolist()):
        value = int(cell_map[y, x])
        size = float(max_dot_size)
        if halftone:
            if value < HALFTONE_MIN_VALUE:
                continue
            size = (value / 255) * max_dot_size
        if size < MIN_DOT_SIZE:
            continue
        yield (x + 0.5) * cell_size, (y + 0.5) * cell_size, size, value


def render_shapes(
    cell_map: npt.NDArray[np.integer],
    shape: DotShape,
    cell_size: int,
    max_dot_size: float,
    halftone: bool,
    size: Tuple[int, int]
) -> Image.Image:
    """
    Render the cell map as a full-resolution shape mask.

    Returns:
        RGBA image, black where dots are drawn and transparent elsewhere.
        Overlapping dots simply accumulate.
    """
    canvas = ShapeCanvas(size)
    for cx, cy, dot_size, value in iter_dots(cell_map, cell_size, max_dot_size, halftone):
        draw_shape(canvas, shape, cx, cy, dot_size, value)
    return canvas.to_mask()
