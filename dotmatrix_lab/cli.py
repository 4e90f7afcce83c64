import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from .constants import DitherMethod, DotShape
from .core.pipeline import render_file
from .core.settings import Settings
from .core.store import SettingsStore, SETTINGS_FILE
from .core.utils import get_output_filename
from .services.generation import (
    GenerationError, generate_ai_image, generate_label_text, load_generated_image,
)

DITHER_CHOICES = [m.value for m in DitherMethod]
SHAPE_CHOICES = [s.value for s in DotShape]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.option(
    '--config',
    type=click.Path(dir_okay=False),
    default=str(SETTINGS_FILE),
    show_default=True,
    help='Settings file used for defaults and --save.'
)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging.')
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """Turn images into dot-matrix / halftone label art."""
    configure_logging(verbose)
    ctx.obj = SettingsStore(Path(config))


@main.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), default=None,
              help='Output PNG path. Defaults to automatic naming.')
@click.option('--pixel-size', type=click.IntRange(1, None), default=None, help='Cell size in output pixels.')
@click.option('--gap', type=click.IntRange(0, None), default=None, help='Gap between dots in pixels.')
@click.option('--contrast', type=click.FloatRange(0.0, 3.0), default=None, help='Contrast gain around mid gray.')
@click.option('--brightness', type=click.FloatRange(-1.0, 1.0), default=None, help='Brightness offset (-1 to 1).')
@click.option('--dither', type=click.Choice(DITHER_CHOICES, case_sensitive=False), default=None,
              help='Dithering method.')
@click.option('--shape', type=click.Choice(SHAPE_CHOICES, case_sensitive=False), default=None,
              help='Dot shape.')
@click.option('--invert/--no-invert', default=None, help='Swap ink and paper colors.')
@click.option('--fg', default=None, help='Ink color, e.g. "#1f2937".')
@click.option('--bg', default=None, help='Paper color, e.g. "#f3f4f6".')
@click.option('--transparent/--opaque', default=None, help='Leave the paper transparent.')
@click.option('--ink-bleed', type=click.FloatRange(0.0, None), default=None,
              help='Ink bleed blur radius in pixels (0 = crisp 1-bit edges).')
@click.option('--width', type=click.IntRange(1, None), default=None, help='Output width in pixels.')
@click.option('--height', type=click.IntRange(1, None), default=None, help='Output height in pixels.')
@click.option('--text', default=None, help='Overlay text; "\\n" starts a new line. Enables the overlay.')
@click.option('--no-text', is_flag=True, help='Disable the text overlay.')
@click.option('--font', default=None, help='Font family for the text overlay.')
@click.option('--text-size', type=click.FloatRange(1.0, None), default=None, help='Text size in output pixels.')
@click.option('--text-x', type=float, default=None, help='Text x position in output pixels.')
@click.option('--text-y', type=float, default=None, help='Text y position in output pixels.')
@click.option('--light-text/--dark-text', default=None, help='Draw the overlay in white instead of black.')
@click.option('--seed', type=int, default=None, help='Random seed for the Random (Noise) method.')
@click.option('--save', is_flag=True, help='Store the resulting settings as the new defaults.')
@click.pass_obj
def render(
    store: SettingsStore,
    image: str,
    output: Optional[str],
    pixel_size: Optional[int],
    gap: Optional[int],
    contrast: Optional[float],
    brightness: Optional[float],
    dither: Optional[str],
    shape: Optional[str],
    invert: Optional[bool],
    fg: Optional[str],
    bg: Optional[str],
    transparent: Optional[bool],
    ink_bleed: Optional[float],
    width: Optional[int],
    height: Optional[int],
    text: Optional[str],
    no_text: bool,
    font: Optional[str],
    text_size: Optional[float],
    text_x: Optional[float],
    text_y: Optional[float],
    light_text: Optional[bool],
    seed: Optional[int],
    save: bool
) -> None:
    """Render IMAGE as dot-matrix art.

    Options that are not given fall back to the stored settings, which in
    turn fall back to the built-in defaults (384x500, 6px cells,
    Floyd-Steinberg, circles).
    """
    try:
        changes: dict[str, Any] = {
            'pixel_size': pixel_size,
            'gap': gap,
            'contrast': contrast,
            'brightness': brightness,
            'dither_method': _choice(DitherMethod, dither),
            'dot_shape': _choice(DotShape, shape),
            'inverted': invert,
            'foreground_color': fg,
            'background_color': bg,
            'transparent_background': transparent,
            'ink_bleed': ink_bleed,
            'output_width': width,
            'output_height': height,
            'text_font_family': font,
            'text_size': text_size,
            'text_x': text_x,
            'text_y': text_y,
            'text_dark': None if light_text is None else not light_text,
        }
        if text is not None:
            changes['text_text'] = text.replace('\\n', '\n')
            changes['text_enabled'] = True
        if no_text:
            changes['text_enabled'] = False

        settings = store.load().replace(**{k: v for k, v in changes.items() if v is not None})

        output_path = render_file(image, settings, output_path=output, seed=seed)
        if output_path is None:
            click.secho("Nothing rendered: check output size and pixel size.", fg='yellow', err=True)
            sys.exit(1)
        click.secho(f"✓ Dot-matrix image saved to: {output_path}", fg='green')

        if save:
            _save(store, settings)
    except Exception as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)


@main.command()
@click.argument('prompt')
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), default='generated.png',
              show_default=True, help='Where to store the generated source image.')
@click.option('--render', 'render_after', is_flag=True, help='Render the generated image with the stored settings.')
@click.pass_obj
def generate(store: SettingsStore, prompt: str, output: str, render_after: bool) -> None:
    """Generate a print-friendly source image for PROMPT with Gemini."""
    try:
        img = load_generated_image(generate_ai_image(prompt))
        img.save(output, 'PNG')
        click.secho(f"✓ Generated image saved to: {output}", fg='green')

        if render_after:
            rendered = render_file(output, store.load(), output_path=get_output_filename(output))
            if rendered is None:
                click.secho("Nothing rendered: check output size and pixel size.", fg='yellow', err=True)
                sys.exit(1)
            click.secho(f"✓ Dot-matrix image saved to: {rendered}", fg='green')
    except GenerationError as e:
        click.secho(f"Generation failed: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)


@main.command()
@click.argument('context', default='a generic cool retro product')
@click.option('--save', is_flag=True, help='Store the suggestion as the overlay text.')
@click.pass_obj
def label(store: SettingsStore, context: str, save: bool) -> None:
    """Suggest label text for CONTEXT with Gemini."""
    try:
        suggestion = generate_label_text(context)
    except GenerationError as e:
        click.secho(f"Generation failed: {e}", fg='red', err=True)
        sys.exit(1)

    click.echo(suggestion)
    if save:
        _save(store, store.load().replace(text_text=suggestion))


@main.command()
@click.option('--reset', is_flag=True, help='Delete stored settings and show the defaults.')
@click.pass_obj
def settings(store: SettingsStore, reset: bool) -> None:
    """Show the stored settings."""
    current = store.reset() if reset else store.load()
    click.echo(json.dumps(current.to_dict(), indent=2, ensure_ascii=False))


@main.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False), required=False)
@click.pass_obj
def tui(store: SettingsStore, image: Optional[str]) -> None:
    """Open the interactive editor, optionally on IMAGE."""
    from .tui.app import DotMatrixApp

    DotMatrixApp(image, store=store).run()


def _choice(enum_type: Any, value: Optional[str]) -> Any:
    """Map a case-insensitive click choice back onto its enum member."""
    if value is None:
        return None
    for member in enum_type:
        if member.value.lower() == value.lower():
            return member
    raise click.BadParameter(f"Unknown choice: {value}")


def _save(store: SettingsStore, settings: Settings) -> None:
    ok, error = store.save(settings)
    if ok:
        click.secho(f"✓ Settings saved to: {store.path}", fg='green')
    else:
        click.secho(f"Could not save settings: {error}", fg='red', err=True)
        sys.exit(1)
