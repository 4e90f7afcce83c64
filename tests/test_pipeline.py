import sys
from pathlib import Path

# Add project root to path so we can import the package without installing
sys.path.append(str(Path(__file__).parent.parent))

import numpy as np
import pytest
from PIL import Image
from dotmatrix_lab.constants import DitherMethod, DotShape
from dotmatrix_lab.core.pipeline import apply_dot_matrix, encode_png, render_file
from dotmatrix_lab.core.settings import Settings

MONO = Settings(
    foreground_color='#000000',
    background_color='#ffffff',
    dot_shape=DotShape.SQUARE,
    gap=0,
    output_width=60,
    output_height=60,
)


def gradient(width=80, height=60):
    row = np.linspace(0, 255, width).astype(np.uint8)
    return Image.fromarray(np.tile(row, (height, 1)))


PRINT_100 = Settings(
    output_width=100,
    output_height=100,
    pixel_size=10,
    gap=0,
    dither_method=DitherMethod.THRESHOLD,
    dot_shape=DotShape.SQUARE,
    contrast=1.0,
    brightness=0.0,
    foreground_color='#000000',
    background_color='#FFFFFF',
)


def test_mid_gray_threshold_prints_nothing():
    out = np.array(apply_dot_matrix(Image.new('RGB', (100, 100), (128, 128, 128)), PRINT_100))
    assert out.shape == (100, 100, 4)
    assert (out == 255).all()


def test_black_threshold_prints_solid_squares():
    out = np.array(apply_dot_matrix(Image.new('RGB', (100, 100), (0, 0, 0)), PRINT_100))
    assert (out[..., :3] == 0).all()
    assert (out[..., 3] == 255).all()


def test_white_source_renders_only_paper():
    out = apply_dot_matrix(Image.new('RGB', (50, 50), 'white'), MONO)
    assert out is not None
    assert out.mode == 'RGBA'
    assert out.size == (60, 60)
    assert (np.array(out) == 255).all()


@pytest.mark.parametrize("method", list(DitherMethod))
def test_white_source_is_paper_for_every_method(method):
    out = apply_dot_matrix(Image.new('RGB', (20, 20), 'white'), MONO.replace(dither_method=method), seed=1)
    assert (np.array(out) == 255).all()


def test_black_source_renders_solid_ink():
    out = np.array(apply_dot_matrix(Image.new('RGB', (50, 50), 'black'), MONO))
    assert (out[..., :3] == 0).all()
    assert (out[..., 3] == 255).all()


def test_black_source_with_gap_leaves_a_grid():
    out = np.array(apply_dot_matrix(Image.new('RGB', (50, 50), 'black'), MONO.replace(gap=2)))
    # 6px cells with 4px squares: pixels 1..4 of every cell are ink
    assert tuple(out[3, 3]) == (0, 0, 0, 255)
    assert tuple(out[0, 0]) == (255, 255, 255, 255)
    assert tuple(out[3, 5]) == (255, 255, 255, 255)
    assert tuple(out[9, 9]) == (0, 0, 0, 255)


def test_cell_not_larger_than_gap_gives_blank_paper():
    out = apply_dot_matrix(Image.new('RGB', (50, 50), 'black'), MONO.replace(pixel_size=2, gap=2))
    assert (np.array(out) == 255).all()


def test_output_is_deterministic():
    img = gradient()
    first = apply_dot_matrix(img, MONO.replace(dot_shape=DotShape.CIRCLE, gap=1))
    second = apply_dot_matrix(img, MONO.replace(dot_shape=DotShape.CIRCLE, gap=1))
    assert first.tobytes() == second.tobytes()


def test_random_method_is_reproducible_with_seed():
    img = gradient()
    settings = MONO.replace(dither_method=DitherMethod.RANDOM)
    first = apply_dot_matrix(img, settings, seed=5)
    second = apply_dot_matrix(img, settings, seed=5)
    assert first.tobytes() == second.tobytes()


def test_source_image_is_not_modified():
    img = gradient()
    before = img.tobytes()
    apply_dot_matrix(img, MONO.replace(text_enabled=True, text_text='HI'))
    assert img.tobytes() == before
    assert img.size == (80, 60)


def test_hard_edges_on_transparent_background():
    settings = MONO.replace(dot_shape=DotShape.CIRCLE, gap=1, transparent_background=True)
    out = np.array(apply_dot_matrix(gradient(), settings))
    assert set(np.unique(out[..., 3])) == {0, 255}
    assert (out[out[..., 3] == 255][:, :3] == 0).all()


def test_ink_bleed_softens_edges():
    settings = MONO.replace(dot_shape=DotShape.CIRCLE, gap=1, ink_bleed=1.5, pixel_size=10)
    out = np.array(apply_dot_matrix(gradient(), settings))
    # Soft edges leave some partially inked pixels
    assert ((out[..., 0] > 0) & (out[..., 0] < 255)).any()


def test_invert_swaps_ink_and_paper():
    img = gradient()
    settings = MONO.replace(foreground_color='#112233', background_color='#eeddcc', dot_shape=DotShape.DIAMOND)
    inverted = apply_dot_matrix(img, settings.replace(inverted=True))
    swapped = apply_dot_matrix(
        img, settings.replace(foreground_color='#eeddcc', background_color='#112233')
    )
    assert inverted.tobytes() == swapped.tobytes()


@pytest.mark.parametrize("changes", [
    {'output_width': 0},
    {'output_height': -5},
    {'pixel_size': 0},
])
def test_degenerate_settings_render_nothing(changes):
    assert apply_dot_matrix(gradient(), MONO.replace(**changes)) is None


def test_default_output_size():
    out = apply_dot_matrix(Image.new('RGB', (50, 50), 'gray'), Settings())
    assert out.size == (384, 500)


def test_text_overlay_reaches_the_output():
    settings = MONO.replace(
        pixel_size=2,
        output_width=100,
        output_height=100,
        dither_method=DitherMethod.THRESHOLD,
        text_enabled=True,
        text_text='SAMPLE',
        text_size=40,
        text_x=10,
        text_y=30,
    )
    img = Image.new('RGB', (50, 50), 'white')
    out = np.array(apply_dot_matrix(img, settings))
    assert (out[..., 0] == 0).any()
    assert (np.array(apply_dot_matrix(img, settings.replace(text_enabled=False))) == 255).all()


def test_encode_png():
    data = encode_png(Image.new('RGBA', (4, 4)))
    assert data.startswith(b'\x89PNG\r\n\x1a\n')


def test_render_file_names_outputs(tmp_path):
    src = tmp_path / "photo.jpg"
    gradient().convert('RGB').save(src)

    first = render_file(src, MONO)
    second = render_file(src, MONO)
    assert first == tmp_path / "photo-dotmatrix.png"
    assert second == tmp_path / "photo-dotmatrix-1.png"

    with Image.open(first) as img:
        assert img.format == 'PNG'
        assert img.mode == 'RGBA'
        assert img.size == (60, 60)


def test_render_file_explicit_output(tmp_path):
    src = tmp_path / "photo.png"
    gradient().save(src)
    target = tmp_path / "out.png"
    assert render_file(src, MONO, output_path=target) == target
    assert target.exists()


def test_render_file_degenerate_settings(tmp_path):
    src = tmp_path / "photo.png"
    gradient().save(src)
    assert render_file(src, MONO.replace(output_width=0)) is None
    assert not (tmp_path / "photo-dotmatrix.png").exists()


def test_render_file_rejects_bad_input(tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_text("not an image")
    with pytest.raises(ValueError, match="Failed to open image"):
        render_file(bad, MONO)
