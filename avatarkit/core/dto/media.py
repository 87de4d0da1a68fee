from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union


@dataclass(frozen=True, slots=True)
class RemoteURL:
    url: str


@dataclass(frozen=True, slots=True)
class LocalPath:
    path: Path


@dataclass(frozen=True, slots=True)
class ByteBuffer:
    data: bytes


@dataclass(frozen=True, slots=True)
class OpaqueBlob:
    handle: Any                 # exposes read(), sync or async


MediaReference = Union[RemoteURL, LocalPath, ByteBuffer, OpaqueBlob]

# Data URI (vector), original bytes/str (raster) or the original URL (remote raster)
RecoloredResult = Union[str, bytes]


class ContentKind(Enum):
    VECTOR = "vector"
    RASTER = "raster"
    REMOTE_UNRESOLVED = "remote_unresolved"
    BLOB_UNRESOLVED = "blob_unresolved"


@dataclass(frozen=True, slots=True)
class ClassifiedMedia:
    """
    Per-call classification of a MediaReference.

    VECTOR carries ``text_content``; RASTER carries the original content in
    ``raw_bytes`` (a str only when a blob read returned text). The unresolved
    kinds carry nothing until the resolver fetches or reads them.
    """
    content_kind: ContentKind
    reference: MediaReference
    text_content: Optional[str] = None
    raw_bytes: Optional[Union[bytes, str]] = None
