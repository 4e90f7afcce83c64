import sys
from pathlib import Path

# Add project root to path so we can import the package without installing
sys.path.append(str(Path(__file__).parent.parent))

import numpy as np
import pytest
from dotmatrix_lab.constants import DotShape
from dotmatrix_lab.processing.shapes import (
    ascii_glyph, iter_dots, render_shapes, star_polygon, triangle_polygon,
)


def alpha_of(mask):
    return np.array(mask.getchannel('A'))


def single_dot(shape, cell=20, gap=0, value=1, halftone=False):
    return alpha_of(render_shapes(np.array([[value]], dtype=np.uint8), shape, cell, cell - gap, halftone, (cell, cell)))


@pytest.mark.parametrize("value, glyph", [
    (0, '.'), (49, '.'), (50, ':'), (99, ':'), (100, '+'),
    (149, '+'), (150, '#'), (199, '#'), (200, '@'), (255, '@'),
])
def test_ascii_glyph_buckets(value, glyph):
    assert ascii_glyph(value) == glyph


def test_squares_tile_without_gap():
    cells = np.ones((2, 3), dtype=np.uint8)
    mask = render_shapes(cells, DotShape.SQUARE, 10, 10, False, (30, 20))
    assert mask.mode == 'RGBA'
    assert mask.size == (30, 20)
    assert (alpha_of(mask) == 255).all()
    assert (np.array(mask)[..., :3] == 0).all()


def test_square_respects_gap():
    alpha = single_dot(DotShape.SQUARE, cell=10, gap=4)
    # Size 6 centered on 5 covers pixels 2..7
    assert alpha[5, 5] == 255
    assert alpha[2, 2] == 255
    assert alpha[7, 7] == 255
    assert alpha[1, 1] == 0
    assert alpha[8, 8] == 0


def test_no_dots_when_max_dot_size_is_zero():
    cells = np.ones((3, 3), dtype=np.uint8)
    mask = render_shapes(cells, DotShape.CIRCLE, 5, 0, False, (15, 15))
    assert alpha_of(mask).max() == 0


def test_empty_cells_draw_nothing():
    mask = render_shapes(np.zeros((4, 4), dtype=np.uint8), DotShape.SQUARE, 5, 5, False, (20, 20))
    assert alpha_of(mask).max() == 0


@pytest.mark.parametrize("shape", [
    DotShape.SQUARE, DotShape.CIRCLE, DotShape.DIAMOND, DotShape.TRIANGLE,
    DotShape.CROSS, DotShape.PLUS, DotShape.STAR,
])
def test_shape_covers_center(shape):
    assert single_dot(shape)[10, 10] == 255


def test_heart_and_ascii_draw_something():
    assert single_dot(DotShape.HEART).max() == 255
    assert single_dot(DotShape.ASCII, value=255).max() > 0


def test_circle_and_diamond_leave_corners_empty():
    for shape in (DotShape.CIRCLE, DotShape.DIAMOND):
        alpha = single_dot(shape)
        assert alpha[0, 0] == 0
        assert alpha[19, 19] == 0
    assert single_dot(DotShape.SQUARE)[0, 0] == 255


def test_plus_is_upright_and_cross_is_diagonal():
    plus = single_dot(DotShape.PLUS)
    cross = single_dot(DotShape.CROSS)
    # Top arm of the plus
    assert plus[2, 10] == 255
    assert cross[2, 10] == 0
    # Upper-left diagonal arm of the cross
    assert cross[5, 5] == 255
    assert plus[5, 5] == 0


def test_star_geometry():
    points = star_polygon(10, 10, 8, 4)
    assert len(points) == 10
    assert points[0] == pytest.approx((10, 2))
    # Alternates between outer and inner radius
    radii = [np.hypot(x - 10, y - 10) for x, y in points]
    assert radii[0::2] == pytest.approx([8] * 5)
    assert radii[1::2] == pytest.approx([4] * 5)


def test_triangle_apex_up():
    apex, left, right = triangle_polygon(10, 10, 12)
    assert apex[1] < left[1] == right[1]
    assert right[0] - left[0] == pytest.approx(12)


def test_iter_dots_binary():
    cells = np.array([[0, 1]], dtype=np.uint8)
    dots = list(iter_dots(cells, 10, 8, halftone=False))
    assert dots == [(15.0, 5.0, 8.0, 1)]


def test_iter_dots_halftone_scales_size():
    cells = np.array([[5, 255, 128]], dtype=np.uint8)
    dots = list(iter_dots(cells, 10, 10, halftone=True))
    # Values under 10 draw nothing
    assert [d[0] for d in dots] == [15.0, 25.0]
    assert dots[0][2] == pytest.approx(10.0)
    assert dots[1][2] == pytest.approx(128 / 255 * 10)


def test_iter_dots_skips_sub_half_pixel_dots():
    cells = np.array([[100]], dtype=np.uint8)
    # max dot size 1, scaled by 100/255 -> 0.39px
    assert list(iter_dots(cells, 2, 1, halftone=True)) == []


def test_iter_dots_raster_order():
    cells = np.array([[1, 1], [1, 0]], dtype=np.uint8)
    centers = [(d[0], d[1]) for d in iter_dots(cells, 4, 4, halftone=False)]
    assert centers == [(2.0, 2.0), (6.0, 2.0), (2.0, 6.0)]
