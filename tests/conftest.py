"""Shared fixtures for avatarkit tests."""

import pytest
from aiohttp import web

from tests.helpers import LATIN1_SVG, SIMPLE_SVG, make_png


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def svg_file(tmp_path):
    path = tmp_path / "icon.svg"
    path.write_text(SIMPLE_SVG, encoding="utf-8")
    return path


@pytest.fixture
def png_file(tmp_path, png_bytes):
    path = tmp_path / "icon.png"
    path.write_bytes(png_bytes)
    return path


@pytest.fixture
async def icon_server(aiohttp_server, png_bytes):
    """Local HTTP server serving SVG, PNG and error responses."""

    async def svg_icon(request):
        return web.Response(text=SIMPLE_SVG, content_type="image/svg+xml")

    async def png_icon(request):
        return web.Response(body=png_bytes, content_type="image/png")

    async def missing(request):
        return web.Response(status=404, text="not found")

    async def broken(request):
        return web.Response(status=500, text="boom")

    async def bad_svg(request):
        return web.Response(text="<svg><path></svg>", content_type="image/svg+xml")

    async def latin1_svg(request):
        return web.Response(
            body=LATIN1_SVG.encode("latin-1"),
            content_type="image/svg+xml",
            charset="iso-8859-1",
        )

    app = web.Application()
    app.router.add_get("/icon.svg", svg_icon)
    app.router.add_get("/icon.png", png_icon)
    app.router.add_get("/missing", missing)
    app.router.add_get("/broken", broken)
    app.router.add_get("/bad.svg", bad_svg)
    app.router.add_get("/latin1.svg", latin1_svg)
    return await aiohttp_server(app)
