import time
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple
import numpy as np
from PIL import Image
from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.widget import Widget
from textual.widgets import Button, Header, Footer, Label, Switch, Select, Input, Static, ListItem, ListView
from textual.binding import Binding
from textual.screen import Screen
from rich.text import Text
from rich.style import Style

from ..constants import DitherMethod, DotShape
from ..core.pipeline import apply_dot_matrix
from ..core.settings import Settings
from ..core.utils import get_output_filename

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp'}
OUTPUT_MARKER = '-dotmatrix'

# Widget id (also the Settings.replace key) -> parser
NUMBER_INPUTS = {
    'pixel_size': int,
    'gap': int,
    'contrast': float,
    'brightness': float,
    'ink_bleed': float,
    'output_width': int,
    'output_height': int,
    'text_size': float,
    'text_x': float,
    'text_y': float,
}
TEXT_INPUTS = ('foreground_color', 'background_color', 'text_font_family')
SWITCHES = ('inverted', 'transparent_background', 'text_enabled', 'text_dark')
SELECTS = {'dither_method': DitherMethod, 'dot_shape': DotShape}

# (section heading, [(widget id, caption), ...])
SIDEBAR = [
    ("Dots", [
        ('dither_method', "Dither Method"),
        ('dot_shape', "Dot Shape"),
        ('pixel_size', "Pixel Size (px)"),
        ('gap', "Gap (px)"),
        ('contrast', "Contrast (0 - 3)"),
        ('brightness', "Brightness (-1 - 1)"),
        ('ink_bleed', "Ink Bleed (px, 0 = crisp)"),
    ]),
    ("Canvas", [
        ('output_width', "Width (px)"),
        ('output_height', "Height (px)"),
        ('foreground_color', "Ink Color"),
        ('background_color', "Paper Color"),
        ('inverted', "Invert"),
        ('transparent_background', "Transparent Paper"),
    ]),
    ("Text Overlay", [
        ('text_enabled', "Show Text"),
        ('text_text', "Text (\\n for new line)"),
        ('text_font_family', "Font Family"),
        ('text_size', "Text Size (px)"),
        ('text_x', "Text X (px)"),
        ('text_y', "Text Y (px)"),
        ('text_dark', "Dark Text"),
    ]),
]


def list_image_files(directory: Path) -> list[Path]:
    """Source images in a directory, skipping our own renders."""
    return sorted(
        f for f in directory.iterdir()
        if f.is_file() and f.suffix.lower() in IMAGE_EXTENSIONS and OUTPUT_MARKER not in f.stem
    )


def settings_to_values(settings: Settings) -> dict[str, Any]:
    """Widget values for the sidebar, keyed by widget id."""
    overlay = settings.text
    values: dict[str, Any] = {
        'dither_method': settings.dither_method.value,
        'dot_shape': settings.dot_shape.value,
        'text_text': overlay.text.replace('\n', '\\n'),
        'text_font_family': overlay.font_family,
        'text_enabled': overlay.enabled,
        'text_dark': overlay.dark,
        'text_size': overlay.size,
        'text_x': overlay.x,
        'text_y': overlay.y,
    }
    for key in list(NUMBER_INPUTS) + list(TEXT_INPUTS) + list(SWITCHES):
        if not key.startswith('text_'):
            values[key] = getattr(settings, key)
    return values


def settings_from_values(values: Mapping[str, Any], base: Settings) -> Settings:
    """
    Build settings from raw widget values.

    Unparseable numbers keep the value from `base`, so a half-typed input
    never breaks the preview.
    """
    changes: dict[str, Any] = {}
    for key, parse in NUMBER_INPUTS.items():
        if key not in values:
            continue
        try:
            changes[key] = parse(values[key])
        except (TypeError, ValueError):
            pass

    for key in TEXT_INPUTS:
        if values.get(key):
            changes[key] = str(values[key])

    for key in SWITCHES:
        if key in values:
            changes[key] = bool(values[key])

    if 'text_text' in values:
        changes['text_text'] = str(values['text_text']).replace('\\n', '\n')

    for key, enum_type in SELECTS.items():
        choice = values.get(key)
        if choice not in (None, Select.BLANK):
            changes[key] = enum_type(choice)

    return base.replace(**changes)


class FileSelectionScreen(Screen):
    CSS = """
    FileSelectionScreen {
        align: center middle;
    }
    #picker {
        width: 72;
        height: 80%;
        border: round $accent;
        background: $surface;
        padding: 0 1;
    }
    #picker-title {
        width: 100%;
        content-align: center middle;
        text-style: bold;
        color: $accent;
        padding: 1 0;
    }
    #file-list {
        height: 1fr;
    }
    #picker-hint {
        color: $text-muted;
        padding: 1 0 0 0;
    }
    """

    def __init__(self, directory: Path = Path('.')):
        super().__init__()
        self.directory = directory

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="picker"):
            yield Label(f"Pick a source image in {self.directory.resolve()}", id="picker-title")
            yield ListView(id="file-list")
            yield Label("Tip: 'dotmatrix tui <image>' opens an image directly", id="picker-hint")
        yield Footer()

    def on_mount(self):
        list_view = self.query_one("#file-list", ListView)
        files = list_image_files(self.directory)
        for f in files:
            # The item name carries the path; the label is only for display
            list_view.append(ListItem(Label(f.name), name=str(f)))

        if not files:
            list_view.append(ListItem(Label("No jpg, jpeg, png or webp files here")))

    def on_list_view_selected(self, event: ListView.Selected):
        if not event.item.name:
            return
        self.app.push_screen(DotMatrixScreen(Path(event.item.name).resolve()))


class DotMatrixScreen(Screen):
    CSS = """
    DotMatrixScreen {
        layout: horizontal;
    }
    #sidebar {
        width: 42;
        height: 100%;
        dock: left;
        border-right: tall $accent;
        padding: 0 1;
        background: $surface;
    }
    #sidebar .section {
        width: 100%;
        margin-top: 1;
        background: $primary;
        color: $text;
        text-style: bold;
        padding: 0 1;
    }
    #sidebar Label {
        color: $text-muted;
    }
    #sidebar Input, #sidebar Select, #sidebar Switch {
        margin-bottom: 1;
    }
    #btn-save {
        width: 100%;
        margin: 1 0;
    }
    #preview-pane {
        width: 1fr;
        height: 100%;
        align: center middle;
    }
    #preview {
        width: auto;
        height: auto;
    }
    #status {
        width: 100%;
        content-align: center middle;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit_app", "Quit"),
        Binding("escape", "back", "Back"),
        Binding("s", "save_output", "Save"),
    ]

    PREVIEW_DELAY = 0.5  # seconds of typing quiet before re-rendering

    def __init__(self, image_path: Path, settings: Optional[Settings] = None):
        super().__init__()
        self.image_path = image_path
        self.original_image = Image.open(image_path)
        self.original_image.load()
        self.settings = settings
        self._preview_timer = None

    def compose(self) -> ComposeResult:
        if self.settings is None:
            self.settings = self.app.store.load()
        values = settings_to_values(self.settings)

        yield Header()
        with VerticalScroll(id="sidebar"):
            for heading, fields in SIDEBAR:
                yield Label(heading, classes="section")
                for key, caption in fields:
                    yield Label(caption)
                    yield self._control(key, values[key])
            yield Button("Save & Quit (s)", id="btn-save", variant="success")

        with Vertical(id="preview-pane"):
            yield Static(id="preview")
            yield Label("", id="status")
        yield Footer()

    def _control(self, key: str, value: Any) -> Widget:
        if key in SELECTS:
            return Select.from_values([m.value for m in SELECTS[key]], value=value, id=key)
        if key in SWITCHES:
            return Switch(value=value, id=key)
        return Input(value=str(value), id=key)

    def on_mount(self):
        self.update_preview()

    def on_input_changed(self, event):
        # Typing fires per keystroke, so wait for a pause
        if self._preview_timer:
            self._preview_timer.stop()
        self._preview_timer = self.set_timer(self.PREVIEW_DELAY, self.update_preview)

    def on_switch_changed(self, event):
        self.update_preview()

    def on_select_changed(self, event):
        self.update_preview()

    def on_button_pressed(self, event):
        if event.button.id == "btn-save":
            self.action_save_output()

    def action_quit_app(self):
        self.app.exit()

    def action_back(self):
        # Opened straight from the command line: nothing to go back to
        if len(self.app.screen_stack) <= 1:
            self.app.exit()
        else:
            self.app.pop_screen()

    def _widget_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for key in list(NUMBER_INPUTS) + list(TEXT_INPUTS) + ['text_text']:
            values[key] = self.query_one(f"#{key}", Input).value
        for key in SWITCHES:
            values[key] = self.query_one(f"#{key}", Switch).value
        for key in SELECTS:
            values[key] = self.query_one(f"#{key}", Select).value
        return values

    def _read_settings(self) -> Settings:
        base = self.settings if self.settings is not None else Settings()
        self.settings = settings_from_values(self._widget_values(), base)
        self.app.store.save_debounced(self.settings)
        return self.settings

    def _get_preview_target_size(self, image_size: Tuple[int, int]) -> Tuple[int, int]:
        """Largest (w, h) that fits the preview pane; each character shows 1x2 pixels."""
        pane = self.query_one("#preview-pane")
        cols = max(20, (pane.size.width or 80) - 4)
        rows = max(10, (pane.size.height or 40) - 3)  # status line and padding

        img_w, img_h = image_size
        scale = min(cols / img_w, rows * 2 / img_h)

        # Height must be even so every row of half-blocks is complete
        new_w = max(1, int(img_w * scale))
        new_h = max(2, int(img_h * scale) // 2 * 2)
        return new_w, new_h

    def update_preview(self):
        preview = self.query_one("#preview", Static)
        status = self.query_one("#status", Label)
        try:
            settings = self._read_settings()
            started = time.perf_counter()
            result_img = apply_dot_matrix(self.original_image, settings)
            elapsed_ms = (time.perf_counter() - started) * 1000
        except Exception as e:
            self.notify(f"Error updating preview: {e}", severity="error")
            return

        if result_img is None:
            preview.update(Text("Nothing to render: check width, height and pixel size"))
            status.update("")
            return

        preview.update(self.image_to_blocks(result_img))
        cols = settings.output_width // settings.pixel_size
        rows = settings.output_height // settings.pixel_size
        status.update(
            f"{result_img.width}x{result_img.height}px  {cols}x{rows} cells  "
            f"{settings.dither_method.value} / {settings.dot_shape.value}  {elapsed_ms:.0f} ms"
        )

    def image_to_blocks(self, img: Image.Image) -> Text:
        """Convert the render to half-block text for the terminal preview."""
        target_w, target_h = self._get_preview_target_size(img.size)

        # Transparent paper shows as white
        flat = Image.new('RGBA', img.size, (255, 255, 255, 255))
        flat.alpha_composite(img.convert('RGBA'))
        pixels = np.array(flat.convert('RGB').resize((target_w, target_h), Image.Resampling.BOX))

        text = Text()
        blank = np.zeros_like(pixels[0])
        for y in range(0, target_h, 2):
            top = pixels[y]
            bottom = pixels[y + 1] if y + 1 < target_h else blank
            # Upper half block ▀: foreground paints the top pixel, background the bottom
            for (r1, g1, b1), (r2, g2, b2) in zip(top.tolist(), bottom.tolist()):
                text.append("▀", style=Style(color=f"rgb({r1},{g1},{b1})", bgcolor=f"rgb({r2},{g2},{b2})"))
            text.append("\n")
        return text

    def action_save_output(self):
        """Render at full resolution next to the source, then quit."""
        try:
            self.notify("Rendering full size...")
            result_img = apply_dot_matrix(self.original_image, self._read_settings())
            if result_img is None:
                self.notify("Nothing to save: check width, height and pixel size", severity="warning")
                return

            final_path = get_output_filename(self.image_path)
            result_img.save(final_path, 'PNG')
            self.app.store.flush()
        except Exception as e:
            self.notify(f"Error saving: {e}", severity="error")
            return

        print(f"Saved to {final_path}")
        self.app.exit()
