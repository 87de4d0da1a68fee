from avatarkit.core.dto.media import (
    ByteBuffer,
    ClassifiedMedia,
    ContentKind,
    LocalPath,
    MediaReference,
    OpaqueBlob,
    RecoloredResult,
    RemoteURL,
)

__all__ = [
    # References
    "MediaReference",
    "RemoteURL",
    "LocalPath",
    "ByteBuffer",
    "OpaqueBlob",

    # Classification / results
    "ContentKind",
    "ClassifiedMedia",
    "RecoloredResult",
]
