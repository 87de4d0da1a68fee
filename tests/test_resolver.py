"""Tests for MediaResolver."""

import asyncio
import base64

import pytest

from avatarkit.core.errors import (
    MalformedVectorError,
    MediaFetchError,
    UnsupportedMediaError,
)
from avatarkit.core.http_client import HttpClient, HttpClientConfig
from avatarkit.media.resolver import MediaResolver

from tests.helpers import LATIN1_SVG, SIMPLE_SVG, AsyncBlob

RECOLORED = '<svg fill="#112233"><path stroke="#112233"/></svg>'
LATIN1_RECOLORED = '<svg><title>café</title><path fill="#112233"/></svg>'
DATA_URI_PREFIX = "data:image/svg+xml;base64,"


def decode(uri: str) -> str:
    assert uri.startswith(DATA_URI_PREFIX)
    return base64.b64decode(uri[len(DATA_URI_PREFIX):]).decode("utf-8")


@pytest.fixture
def resolver():
    return MediaResolver(http_client=HttpClient(HttpClientConfig(connect_timeout=5, read_timeout=5)))


# =============================================================================
# ACCEPTANCE
# =============================================================================

def test_is_acceptable(resolver, svg_file):
    assert resolver.is_acceptable(str(svg_file))
    assert resolver.is_acceptable(b"anything")
    assert resolver.is_acceptable("https://example.com/a.png")
    assert resolver.is_acceptable(AsyncBlob(b""))
    assert not resolver.is_acceptable("not-a-path-or-url")


def test_unsupported_reference_raises_before_awaiting(resolver):
    with pytest.raises(UnsupportedMediaError):
        resolver.resolve("not-a-path-or-url", "#000000")


async def test_unsupported_reference_raises_when_awaited_inline(resolver):
    with pytest.raises(UnsupportedMediaError):
        await resolver.resolve("not-a-path-or-url", "#000000")


# =============================================================================
# LOCAL CONTENT
# =============================================================================

async def test_local_svg_file_is_recolored(resolver, svg_file):
    result = await resolver.resolve(str(svg_file), "#112233")
    assert decode(result) == RECOLORED


async def test_svg_buffer_is_recolored(resolver):
    result = await resolver.resolve(SIMPLE_SVG.encode(), "#112233")
    assert decode(result) == RECOLORED


async def test_latin1_svg_file_keeps_text(resolver, tmp_path):
    path = tmp_path / "latin1.svg"
    path.write_bytes(LATIN1_SVG.encode("latin-1"))
    result = await resolver.resolve(path, "#112233")
    assert decode(result) == LATIN1_RECOLORED


async def test_raster_buffer_passes_through(resolver, png_bytes):
    assert await resolver.resolve(png_bytes, "#112233") == png_bytes


async def test_raster_file_passes_through(resolver, png_file, png_bytes):
    assert await resolver.resolve(png_file, "#112233") == png_bytes


async def test_svg_blob_is_recolored(resolver):
    result = await resolver.resolve(AsyncBlob(SIMPLE_SVG.encode()), "#112233")
    assert decode(result) == RECOLORED


async def test_other_blob_content_passes_through(resolver):
    assert await resolver.resolve(AsyncBlob("plain text"), "#112233") == "plain text"


async def test_malformed_svg_is_not_treated_as_raster(resolver):
    with pytest.raises(MalformedVectorError):
        await resolver.resolve(b"<svg><path></svg>", "#112233")


async def test_recoloring_with_same_color_is_stable(resolver, svg_file):
    first = await resolver.resolve(str(svg_file), "#112233")
    second = await resolver.resolve(decode(first).encode(), "#112233")
    assert first == second


async def test_concurrent_resolutions_are_independent(resolver):
    colors = ["#000001", "#000002", "#000003", "#000004"]
    results = await asyncio.gather(*(resolver.resolve(SIMPLE_SVG.encode(), c) for c in colors))
    for color, result in zip(colors, results):
        assert decode(result) == f'<svg fill="{color}"><path stroke="{color}"/></svg>'


# =============================================================================
# REMOTE CONTENT
# =============================================================================

async def test_remote_svg_is_fetched_and_recolored(resolver, icon_server):
    result = await resolver.resolve(str(icon_server.make_url("/icon.svg")), "#112233")
    assert decode(result) == RECOLORED


async def test_remote_svg_with_declared_charset(resolver, icon_server):
    result = await resolver.resolve(str(icon_server.make_url("/latin1.svg")), "#112233")
    assert decode(result) == LATIN1_RECOLORED



async def test_remote_raster_returns_original_url(resolver, icon_server):
    url = str(icon_server.make_url("/icon.png"))
    assert await resolver.resolve(url, "#112233") == url


@pytest.mark.parametrize("path,status", [("/missing", 404), ("/broken", 500)])
async def test_remote_error_status(resolver, icon_server, path, status):
    with pytest.raises(MediaFetchError) as exc_info:
        await resolver.resolve(str(icon_server.make_url(path)), "#112233")
    assert exc_info.value.status == status


async def test_remote_connection_error(resolver, unused_tcp_port):
    url = f"http://127.0.0.1:{unused_tcp_port}/icon.svg"
    with pytest.raises(MediaFetchError) as exc_info:
        await resolver.resolve(url, "#112233")
    assert exc_info.value.url == url
    assert exc_info.value.status is None


async def test_remote_malformed_svg(resolver, icon_server):
    with pytest.raises(MalformedVectorError):
        await resolver.resolve(str(icon_server.make_url("/bad.svg")), "#112233")


# =============================================================================
# CODEC INJECTION
# =============================================================================

class RecordingCodec:
    """Codec double that records calls and returns fixed markers."""

    def __init__(self):
        self.calls = []

    def parse_vector(self, text):
        from lxml import etree
        self.calls.append("parse")
        return etree.fromstring(text.encode())

    def serialize_vector(self, root):
        self.calls.append("serialize")
        return "<svg/>"

    def text_to_data_uri(self, text):
        self.calls.append("encode")
        return f"custom:{text}"


async def test_injected_codec_is_used():
    codec = RecordingCodec()
    result = await MediaResolver(codec=codec).resolve(SIMPLE_SVG.encode(), "#fff")
    assert result == "custom:<svg/>"
    assert codec.calls == ["parse", "serialize", "encode"]
