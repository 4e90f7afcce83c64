import sys
import json
from pathlib import Path
import unittest.mock as mock

# Add project root to path so we can import the package without installing
sys.path.append(str(Path(__file__).parent.parent))

import pytest
from click.testing import CliRunner
from PIL import Image
from dotmatrix_lab import cli
from dotmatrix_lab.constants import DitherMethod, DotShape
from dotmatrix_lab.core.store import SettingsStore
from dotmatrix_lab.services.generation import GenerationError


@pytest.fixture
def config(tmp_path):
    return tmp_path / "settings.json"


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.png"
    Image.new('RGB', (40, 30), (90, 90, 90)).save(path)
    return path


def invoke(config, *args):
    return CliRunner().invoke(cli.main, ['--config', str(config), *args])


def test_render_with_options(config, photo):
    result = invoke(
        config, 'render', str(photo),
        '--width', '60', '--height', '40', '--pixel-size', '4',
        '--dither', 'bayer 4x4', '--shape', 'Star', '--seed', '1',
    )
    assert result.exit_code == 0, result.output
    assert "Dot-matrix image saved to" in result.output

    out = photo.parent / "photo-dotmatrix.png"
    with Image.open(out) as img:
        assert img.size == (60, 40)
    # Without --save nothing is stored
    assert not config.exists()


def test_render_save_stores_settings(config, photo):
    result = invoke(config, 'render', str(photo), '--width', '30', '--height', '30',
                    '--shape', 'heart', '--text', 'A\\nB', '--save')
    assert result.exit_code == 0, result.output

    stored = SettingsStore(config).load()
    assert stored.dot_shape == DotShape.HEART
    assert stored.output_width == 30
    assert stored.text.enabled
    assert stored.text.text == 'A\nB'


def test_render_uses_stored_settings(config, photo, tmp_path):
    SettingsStore(config).save(SettingsStore(config).load().replace(output_width=24, output_height=12))
    target = tmp_path / "out.png"
    result = invoke(config, 'render', str(photo), '-o', str(target))
    assert result.exit_code == 0, result.output
    with Image.open(target) as img:
        assert img.size == (24, 12)


def test_render_missing_file(config, tmp_path):
    result = invoke(config, 'render', str(tmp_path / "missing.png"))
    assert result.exit_code == 2


def test_render_broken_image(config, tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_text("nope")
    result = invoke(config, 'render', str(bad))
    assert result.exit_code == 1
    assert "Failed to open image" in result.output


def test_settings_shows_and_resets(config):
    SettingsStore(config).save(SettingsStore(config).load().replace(gap=3))

    result = invoke(config, 'settings')
    assert result.exit_code == 0
    assert json.loads(result.output)['gap'] == 3

    result = invoke(config, 'settings', '--reset')
    assert result.exit_code == 0
    assert json.loads(result.output)['gap'] == 1
    assert not config.exists()


def test_label_prints_and_saves(config):
    with mock.patch('dotmatrix_lab.cli.generate_label_text', return_value="BOOT_SEQ_OK") as mock_label:
        result = invoke(config, 'label', 'robot', '--save')

    assert result.exit_code == 0, result.output
    mock_label.assert_called_once_with('robot')
    assert "BOOT_SEQ_OK" in result.output
    assert SettingsStore(config).load().text.text == "BOOT_SEQ_OK"


def test_label_failure(config):
    with mock.patch('dotmatrix_lab.cli.generate_label_text', side_effect=GenerationError("API Key not found in environment.")):
        result = invoke(config, 'label')
    assert result.exit_code == 1
    assert "API Key not found" in result.output


def test_generate_saves_and_renders(config, tmp_path):
    generated = Image.new('RGB', (16, 16), 'white')
    target = tmp_path / "gen.png"
    SettingsStore(config).save(SettingsStore(config).load().replace(
        output_width=20, output_height=20, dither_method=DitherMethod.THRESHOLD
    ))

    with mock.patch('dotmatrix_lab.cli.generate_ai_image', return_value=b'png') as mock_generate, \
            mock.patch('dotmatrix_lab.cli.load_generated_image', return_value=generated):
        result = invoke(config, 'generate', 'a lighthouse', '-o', str(target), '--render')

    assert result.exit_code == 0, result.output
    mock_generate.assert_called_once_with('a lighthouse')
    assert target.exists()
    rendered = tmp_path / "gen-dotmatrix.png"
    with Image.open(rendered) as img:
        assert img.size == (20, 20)


def test_generate_render_with_degenerate_settings(config, tmp_path):
    generated = Image.new('RGB', (16, 16), 'white')
    target = tmp_path / "gen.png"
    SettingsStore(config).save(SettingsStore(config).load().replace(output_width=0))

    with mock.patch('dotmatrix_lab.cli.generate_ai_image', return_value=b'png'), \
            mock.patch('dotmatrix_lab.cli.load_generated_image', return_value=generated):
        result = invoke(config, 'generate', 'a lighthouse', '-o', str(target), '--render')

    assert result.exit_code == 1
    assert target.exists()
    assert "Nothing rendered" in result.output
    assert "saved to: None" not in result.output
    assert not (tmp_path / "gen-dotmatrix.png").exists()


def test_generate_failure(config, tmp_path):
    with mock.patch('dotmatrix_lab.cli.generate_ai_image', side_effect=GenerationError("No image data found in response")):
        result = invoke(config, 'generate', 'x', '-o', str(tmp_path / "gen.png"))
    assert result.exit_code == 1
    assert "No image data found" in result.output
