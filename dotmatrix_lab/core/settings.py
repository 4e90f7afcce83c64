from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from ..constants import DitherMethod, DotShape


@dataclass(frozen=True)
class TextOverlay:
    """Text drawn into the working buffer before dithering.

    Position and size are in output pixels; they are scaled down by the
    cell size when drawn.
    """

    enabled: bool = False
    text: str = "示例文本\nSAMPLE"
    font_family: str = 'Space Mono'
    size: float = 40.0
    x: float = 20.0
    y: float = 60.0
    dark: bool = True


@dataclass(frozen=True)
class Settings:
    """Configuration for a single pipeline run."""

    pixel_size: int = 6  # cell size in output pixels
    contrast: float = 1.1  # typically 0 to 3
    brightness: float = 0.0  # -1 to 1
    dither_method: DitherMethod = DitherMethod.FLOYD_STEINBERG
    dot_shape: DotShape = DotShape.CIRCLE
    inverted: bool = False
    foreground_color: str = '#1f2937'
    background_color: str = '#f3f4f6'
    transparent_background: bool = False
    ink_bleed: float = 0.0  # blur radius in px, 0 disables

    output_width: int = 384
    output_height: int = 500
    gap: int = 1

    text: TextOverlay = field(default_factory=TextOverlay)

    @property
    def max_dot_size(self) -> int:
        return self.pixel_size - self.gap

    def replace(self, **changes: Any) -> 'Settings':
        """Return a copy with the given fields changed.

        Text overlay fields may be passed flat with a ``text_`` prefix,
        e.g. ``text_enabled=True``.
        """
        overlay_changes = {
            key[len('text_'):]: changes.pop(key)
            for key in list(changes)
            if key.startswith('text_')
        }
        if overlay_changes:
            changes['text'] = replace(self.text, **overlay_changes)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Flat record in the persisted key format."""
        record: dict[str, Any] = {}
        for name, key in _SETTINGS_KEYS.items():
            value = getattr(self, name)
            record[key] = value.value if isinstance(value, _ENUM_TYPES) else value
        for name, key in _OVERLAY_KEYS.items():
            record[key] = getattr(self.text, name)
        return record

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Settings':
        """Merge a (possibly partial) persisted record over the defaults.

        Unknown keys are ignored. Enum fields accept their display value.
        """
        defaults = cls()
        values: dict[str, Any] = {}
        for name, key in _SETTINGS_KEYS.items():
            if key in data:
                values[name] = _coerce(name, data[key], getattr(defaults, name))

        overlay_values: dict[str, Any] = {}
        for name, key in _OVERLAY_KEYS.items():
            if key in data:
                overlay_values[name] = _coerce(name, data[key], getattr(defaults.text, name))

        if overlay_values:
            values['text'] = replace(defaults.text, **overlay_values)
        return replace(defaults, **values)


# Field name -> persisted key
_SETTINGS_KEYS = {
    'pixel_size': 'pixelSize',
    'contrast': 'contrast',
    'brightness': 'brightness',
    'dither_method': 'ditherMethod',
    'dot_shape': 'dotShape',
    'inverted': 'inverted',
    'foreground_color': 'foregroundColor',
    'background_color': 'backgroundColor',
    'transparent_background': 'transparentBackground',
    'ink_bleed': 'inkBleed',
    'output_width': 'outputWidth',
    'output_height': 'outputHeight',
    'gap': 'gap',
}

_OVERLAY_KEYS = {
    'enabled': 'showText',
    'text': 'text',
    'font_family': 'fontFamily',
    'size': 'textSize',
    'x': 'textX',
    'y': 'textY',
    'dark': 'textDark',
}

_ENUM_TYPES = (DitherMethod, DotShape)

_TRUE_STRINGS = ('true', '1', 'yes', 'on')
_FALSE_STRINGS = ('false', '0', 'no', 'off')


def _parse_bool(name: str, value: Any) -> bool:
    """Accept real booleans, 0/1 and the usual on/off spellings.

    Anything else is rejected; ``bool("false")`` would silently be True.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean for {name!r}: {value!r}")


def _coerce(name: str, value: Any, default: Any) -> Any:
    if isinstance(default, _ENUM_TYPES):
        return type(default)(value)
    if isinstance(default, bool):
        return _parse_bool(name, value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, str):
        return str(value)
    raise TypeError(f"Unsupported setting {name!r}")
