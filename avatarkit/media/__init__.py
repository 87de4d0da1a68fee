"""Icon resolution, SVG recoloring and avatar rendering."""

from .renderer import AvatarRenderer, generate_avatar, generate_avatar_sync
from .resolver import MediaResolver
from .source import classify, is_acceptable, to_reference
from .vector import LxmlVectorCodec, VectorCodec

__all__ = [
    'AvatarRenderer',
    'LxmlVectorCodec',
    'MediaResolver',
    'VectorCodec',
    'classify',
    'generate_avatar',
    'generate_avatar_sync',
    'is_acceptable',
    'to_reference',
]
