"""
Error types raised by the media pipeline and renderer.

All errors are local and typed; callers catch ``AvatarError`` to handle any
failure coming out of the library.
"""
from __future__ import annotations

from typing import Optional


class AvatarError(RuntimeError):
    """Base class for all avatarkit errors."""


class UnsupportedMediaError(AvatarError):
    """
    Raised when a media reference is not a byte buffer, an existing file,
    a readable blob or an http(s) URL.

    Not retryable: substitute a valid reference or omit the icon.
    """


class MediaFetchError(AvatarError):
    """Raised when fetching a remote reference fails (network error or non-2xx)."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url
        self.status = status


class MalformedVectorError(AvatarError):
    """Raised when content looked like SVG but could not be parsed as such."""


class IconLoadError(AvatarError):
    """Raised when resolved icon content cannot be decoded into an image."""
