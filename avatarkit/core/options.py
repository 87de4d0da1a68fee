from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional

DEFAULT_SIZE = 500

# Original option names, accepted by AvatarOptions.from_dict
_CAMEL_CASE_KEYS = {
    "fontSize": "font_size",
    "customIcon": "custom_icon",
}


def _to_int32(value: int) -> int:
    return ((value + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def string_to_color(text: str) -> str:
    """
    Derive a deterministic ``#rrggbb`` color from a string.

    Uses a 32-bit rolling hash over UTF-16 code units; the low three bytes
    of the hash become red, green and blue.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = code + (_to_int32(_to_int32(h) << 5) - h)

    h = _to_int32(h)
    return "#" + "".join(f"{(h >> (i * 8)) & 0xFF:02x}" for i in range(3))


@dataclass
class AvatarOptions:
    """
    Rendering options for an avatar.

    Attributes:
        size: Width and height of the avatar in pixels
        foreground: Color of the overlaid text or icon
        font: Font family (or path to a TrueType file) for the overlaid text
        font_size: Text size in pixels; derived as ``size / 2`` when not given
        weight: Font weight; "bold" looks up a bold variant of the font
        custom_icon: Icon reference (URL, file path, bytes or blob-like object).
            SVG icons are recolored to ``foreground``
        export: MIME type of the exported image
    """
    size: int = DEFAULT_SIZE
    foreground: str = "white"
    font: str = "Arial"
    font_size: Optional[float] = None
    weight: str = "bold"
    custom_icon: Optional[Any] = field(default=None, repr=False)
    export: str = "image/png"

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"Avatar size must be positive, got {self.size}")
        if self.font_size is None:
            self.font_size = self.size / 2

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvatarOptions":
        """Create options from a mapping; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)
