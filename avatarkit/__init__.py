"""
Deterministic, identity-derived placeholder avatars.

A background color derived from a string, overlaid with text or a custom
icon (SVG icons are recolored to the foreground color), exported as a data URL.
"""
import logging

from avatarkit.core.errors import (
    AvatarError,
    IconLoadError,
    MalformedVectorError,
    MediaFetchError,
    UnsupportedMediaError,
)
from avatarkit.core.options import AvatarOptions, string_to_color
from avatarkit.media import (
    AvatarRenderer,
    MediaResolver,
    generate_avatar,
    generate_avatar_sync,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    "AvatarError",
    "AvatarOptions",
    "AvatarRenderer",
    "IconLoadError",
    "MalformedVectorError",
    "MediaFetchError",
    "MediaResolver",
    "UnsupportedMediaError",
    "generate_avatar",
    "generate_avatar_sync",
    "string_to_color",
]
