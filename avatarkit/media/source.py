"""
Media reference classification.

Turns an arbitrary custom-icon reference (bytes, file path, blob-like object,
URL) into a MediaReference, and a MediaReference into ClassifiedMedia.
"""
from __future__ import annotations

import codecs
import inspect
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlparse

from avatarkit.core.dto.media import (
    ByteBuffer,
    ClassifiedMedia,
    ContentKind,
    LocalPath,
    MediaReference,
    OpaqueBlob,
    RemoteURL,
)
from avatarkit.core.errors import UnsupportedMediaError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = {"http", "https"}

# Prolog (XML declaration, comments, PIs, doctype) followed by an <svg> root.
# XML names are case-sensitive; only the DOCTYPE keyword is not.
_SVG_ROOT_RE = re.compile(
    r"""\A\s*
        (?:<\?.*?\?>\s*|<!--.*?-->\s*|<!(?i:DOCTYPE)[^>\[]*(?:\[.*?\])?\s*>\s*)*
        <(?:[A-Za-z_][\w.-]*:)?svg[\s/>]""",
    re.DOTALL | re.VERBOSE,
)

_XML_ENCODING_RE = re.compile(
    rb"""\A\s*<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z][\w.:-]*)["']""",
)

_REFERENCE_TYPES = (RemoteURL, LocalPath, ByteBuffer, OpaqueBlob)


# ------------------------------------------------------------
# Content tests
# ------------------------------------------------------------

def looks_like_svg(text: str) -> bool:
    """True if the text's root element is an ``svg`` element."""
    return bool(_SVG_ROOT_RE.match(text))


def declared_encoding(data: bytes) -> Optional[str]:
    """Encoding named in a leading XML declaration, if Python knows it."""
    match = _XML_ENCODING_RE.match(data)
    if match is None:
        return None
    name = match.group(1).decode("ascii")
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.debug(f"Unknown declared encoding {name!r}, assuming utf-8")
        return None


def decode_text(data: bytes) -> str:
    """
    Decode markup bytes to text.

    A byte-order mark wins, then the XML declaration's encoding, then UTF-8.
    Undecodable bytes are replaced rather than raising.
    """
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16", errors="replace")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    return data.decode(declared_encoding(data) or "utf-8", errors="replace")


def classify_content(reference: MediaReference, content: Union[bytes, str]) -> ClassifiedMedia:
    """Classify already-read content as VECTOR or RASTER."""
    text = content if isinstance(content, str) else decode_text(content)
    if looks_like_svg(text):
        return ClassifiedMedia(ContentKind.VECTOR, reference, text_content=text)
    return ClassifiedMedia(ContentKind.RASTER, reference, raw_bytes=content)


# ------------------------------------------------------------
# Reference shape checks
# ------------------------------------------------------------

def is_remote_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in REMOTE_SCHEMES and bool(parsed.hostname)


def _existing_file(value: Any) -> Optional[Path]:
    if not isinstance(value, (str, os.PathLike)):
        return None
    try:
        path = Path(value)
        return path if path.is_file() else None
    except (OSError, ValueError):
        # Name too long, embedded NUL, etc.
        return None


def _is_blob(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray, memoryview, os.PathLike)):
        return False
    return callable(getattr(value, "read", None))


def _match_reference(value: Any) -> Optional[MediaReference]:
    if isinstance(value, _REFERENCE_TYPES):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ByteBuffer(bytes(value))
    path = _existing_file(value)
    if path is not None:
        return LocalPath(path)
    if _is_blob(value):
        return OpaqueBlob(value)
    if isinstance(value, str) and is_remote_url(value):
        return RemoteURL(value.strip())
    return None


def _reference_is_valid(reference: MediaReference) -> bool:
    if isinstance(reference, LocalPath):
        return _existing_file(reference.path) is not None
    if isinstance(reference, RemoteURL):
        return is_remote_url(reference.url)
    if isinstance(reference, OpaqueBlob):
        return callable(getattr(reference.handle, "read", None))
    return isinstance(reference, ByteBuffer)


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------

def to_reference(value: Any) -> MediaReference:
    """
    Convert a raw icon reference into a MediaReference.

    Order: byte buffer, existing local file, blob-like object with ``read()``,
    absolute http(s) URL. Explicit MediaReference values pass through.

    Raises:
        UnsupportedMediaError: If the value matches none of the above
    """
    reference = _match_reference(value)
    if reference is None or not _reference_is_valid(reference):
        raise UnsupportedMediaError(f"Unsupported media reference: {value!r:.200}")
    return reference


def is_acceptable(value: Any) -> bool:
    """Synchronous, side-effect free check that ``to_reference`` would succeed."""
    reference = _match_reference(value)
    return reference is not None and _reference_is_valid(reference)


def classify(value: Any) -> ClassifiedMedia:
    """
    Classify a media reference.

    Buffers and local files are read and tested immediately. Remote URLs and
    blobs come back unresolved; their kind is decided after fetch/read.

    Raises:
        UnsupportedMediaError: If the reference is not acceptable
    """
    reference = to_reference(value)

    if isinstance(reference, ByteBuffer):
        return classify_content(reference, reference.data)

    if isinstance(reference, LocalPath):
        path = Path(reference.path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise UnsupportedMediaError(f"Cannot read media file {path}: {e}") from e
        logger.debug(f"Read {len(data)} bytes from {path}")
        return classify_content(reference, data)

    if isinstance(reference, OpaqueBlob):
        return ClassifiedMedia(ContentKind.BLOB_UNRESOLVED, reference)

    return ClassifiedMedia(ContentKind.REMOTE_UNRESOLVED, reference)


async def read_blob(classified: ClassifiedMedia) -> ClassifiedMedia:
    """Perform the lazy read of a BLOB_UNRESOLVED reference and classify its content."""
    reference = classified.reference
    if not isinstance(reference, OpaqueBlob):
        return classified

    content = reference.handle.read()
    if inspect.isawaitable(content):
        content = await content
    if isinstance(content, (bytearray, memoryview)):
        content = bytes(content)
    if not isinstance(content, (bytes, str)):
        raise UnsupportedMediaError(
            f"Blob read() returned {type(content).__name__}, expected bytes or str"
        )
    return classify_content(reference, content)
