from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import unquote_to_bytes

from PIL import Image, ImageColor, ImageDraw, ImageFont, UnidentifiedImageError

from avatarkit.core.dto.media import RecoloredResult
from avatarkit.core.errors import IconLoadError, UnsupportedMediaError
from avatarkit.core.http_client import HttpClient
from avatarkit.core.options import AvatarOptions, string_to_color
from avatarkit.media.resolver import MediaResolver
from avatarkit.media.source import is_remote_url
from avatarkit.media.vector import SVG_MIME

logger = logging.getLogger(__name__)

ICON_SCALE = 0.7
TEXT_Y_DIVISOR = 1.8

EXPORT_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/bmp": "BMP",
}
DEFAULT_EXPORT = "image/png"

# Formats without an alpha channel
_OPAQUE_FORMATS = {"JPEG", "BMP"}

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


def load_font(family: str, size: float, weight: str = "normal") -> FontType:
    """
    Load a TrueType font by family name or file path.

    Bold weight tries the usual bold file names first. Falls back to Pillow's
    built-in font at the requested size.
    """
    px = max(1, int(round(size)))
    candidates = []
    if weight == "bold":
        candidates += [f"{family}-Bold.ttf", f"{family}bd.ttf", f"{family} Bold.ttf"]
    candidates += [f"{family}.ttf", family]

    for name in candidates:
        for variant in (name, name.lower()):
            try:
                return ImageFont.truetype(variant, px)
            except OSError:
                continue

    logger.debug(f"Font {family!r} not found, using default font")
    return ImageFont.load_default(size=px)


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a ``data:`` URI into (mime, payload bytes)."""
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:"):
        raise IconLoadError("Malformed data URI")
    params = header[len("data:"):].split(";")
    mime = params[0] or "text/plain"
    try:
        if "base64" in params[1:]:
            data = base64.b64decode(payload, validate=True)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise IconLoadError(f"Malformed data URI payload: {e}") from e
    return mime, data


def rasterize_vector(svg: bytes, size: int) -> Image.Image:
    """Render SVG markup to an RGBA image of ``size`` x ``size`` pixels."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        # cairocffi raises OSError when the cairo library is missing
        raise IconLoadError(f"SVG rasterization unavailable: {e}") from e

    try:
        png = cairosvg.svg2png(bytestring=svg, output_width=size, output_height=size)
    except Exception as e:
        raise IconLoadError(f"Failed to rasterize SVG icon: {e}") from e
    return decode_image(png)


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise IconLoadError(f"Icon content is not a decodable image: {e}") from e
    return image.convert("RGBA")


class AvatarRenderer:
    """
    Canvas drawing for avatars.

    Responsibilities:
    - Background fill from the identifier
    - Centered text
    - Icon loading (via MediaResolver) and compositing
    - Export to a data URL

    Non-responsibilities:
    - Deciding what an icon reference is (MediaResolver)
    """

    def __init__(
        self,
        resolver: Optional[MediaResolver] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self._http = http_client or HttpClient()
        self._resolver = resolver or MediaResolver(http_client=self._http)

    # ------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------

    async def render(self, identifier: str, letters: str, options: AvatarOptions) -> str:
        canvas = self.new_canvas(options)
        self.render_background(canvas, identifier)

        if options.custom_icon is None:
            self.render_text(canvas, letters, options)
            return self.export(canvas, options.export)

        if not self._resolver.is_acceptable(options.custom_icon):
            raise UnsupportedMediaError(f"Unsupported custom icon: {options.custom_icon!r:.200}")

        resolved = await self._resolver.resolve(options.custom_icon, options.foreground)
        icon_px = max(1, round(options.size * ICON_SCALE))
        icon = await self.load_icon(resolved, icon_px)
        self.render_icon(canvas, icon)
        return self.export(canvas, options.export)

    def render_sync(self, identifier: str, letters: str, options: AvatarOptions) -> str:
        if options.custom_icon is not None:
            logger.warning(
                "Custom icons are not supported in synchronous rendering; the icon will be ignored"
            )
        canvas = self.new_canvas(options)
        self.render_background(canvas, identifier)
        self.render_text(canvas, letters, options)
        return self.export(canvas, options.export)

    # ------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------

    @staticmethod
    def new_canvas(options: AvatarOptions) -> Image.Image:
        return Image.new("RGBA", (options.size, options.size), (0, 0, 0, 0))

    @staticmethod
    def render_background(canvas: Image.Image, identifier: str) -> None:
        canvas.paste(ImageColor.getcolor(string_to_color(identifier), "RGBA"), (0, 0, canvas.width, canvas.height))

    @staticmethod
    def render_text(canvas: Image.Image, letters: str, options: AvatarOptions) -> None:
        if not letters:
            return
        draw = ImageDraw.Draw(canvas)
        font = load_font(options.font, options.font_size, options.weight)

        # Shrink to fit the canvas width
        width = draw.textlength(letters, font=font)
        if width > canvas.width:
            font = load_font(options.font, options.font_size * canvas.width / width, options.weight)

        draw.text(
            (canvas.width / 2, canvas.height / TEXT_Y_DIVISOR),
            letters,
            fill=options.foreground,
            font=font,
            anchor="mm",
        )

    @staticmethod
    def render_icon(canvas: Image.Image, icon: Image.Image) -> None:
        size = max(1, round(canvas.width * ICON_SCALE))
        if icon.size != (size, size):
            icon = icon.resize((size, size), Image.Resampling.LANCZOS)
        offset = (canvas.width // 2 - size // 2, canvas.height // 2 - size // 2)
        canvas.alpha_composite(icon, dest=offset)

    async def load_icon(self, resolved: RecoloredResult, size: int) -> Image.Image:
        """
        Turn resolved icon content into an RGBA image.

        Accepts an SVG or raster data URI, raw image bytes (or text) and
        remote URLs, which are fetched.
        """
        if isinstance(resolved, str) and resolved.startswith("data:"):
            mime, data = parse_data_uri(resolved)
            if mime == SVG_MIME:
                return rasterize_vector(data, size)
            return decode_image(data)

        if isinstance(resolved, str) and is_remote_url(resolved):
            return decode_image(await self._http.fetch_bytes(resolved))

        if isinstance(resolved, str):
            resolved = resolved.encode("utf-8")
        return decode_image(resolved)

    # ------------------------------------------------------------
    # Export
    # ------------------------------------------------------------

    @staticmethod
    def export(canvas: Image.Image, mime: str = DEFAULT_EXPORT) -> str:
        """Encode the canvas as a ``data:<mime>;base64,...`` URL; unknown types become PNG."""
        mime = (mime or DEFAULT_EXPORT).lower()
        if mime not in EXPORT_FORMATS:
            logger.debug(f"Unsupported export type {mime!r}, falling back to {DEFAULT_EXPORT}")
            mime = DEFAULT_EXPORT
        fmt = EXPORT_FORMATS[mime]

        image = canvas.convert("RGB") if fmt in _OPAQUE_FORMATS else canvas
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:{mime};base64,{encoded}"


# ------------------------------------------------------------
# Entry points
# ------------------------------------------------------------

def _prepare(
    identifier: str,
    letters: Optional[str],
    options: Optional[Union[AvatarOptions, Mapping[str, Any]]],
) -> Tuple[str, AvatarOptions]:
    if not identifier:
        raise ValueError("identifier must be a non-empty string")
    if options is None:
        options = AvatarOptions()
    elif not isinstance(options, AvatarOptions):
        options = AvatarOptions.from_dict(options)
    if letters is None:
        letters = identifier[:1].upper()
    return letters, options


async def generate_avatar(
    identifier: str,
    letters: Optional[str] = None,
    options: Optional[Union[AvatarOptions, Mapping[str, Any]]] = None,
    renderer: Optional[AvatarRenderer] = None,
) -> str:
    """
    Generate an avatar image as a data URL.

    Args:
        identifier: String the background color is derived from (username, slug, ...)
        letters: Text overlaid on the avatar; defaults to the identifier's first
            character, upper-cased. Ignored when a custom icon is set
        options: AvatarOptions or a mapping of option names
        renderer: Renderer to use (defaults to a new AvatarRenderer)

    Returns:
        str: ``data:<mime>;base64,...`` URL of the encoded image
    """
    letters, options = _prepare(identifier, letters, options)
    renderer = renderer or AvatarRenderer()
    return await renderer.render(identifier, letters, options)


def generate_avatar_sync(
    identifier: str,
    letters: Optional[str] = None,
    options: Optional[Union[AvatarOptions, Mapping[str, Any]]] = None,
) -> str:
    """Background and text only; a custom icon in ``options`` is ignored."""
    letters, options = _prepare(identifier, letters, options)
    return AvatarRenderer().render_sync(identifier, letters, options)
