"""
Custom icon resolution.

Given any acceptable icon reference and a target color, produce the content
the renderer draws: a recolored SVG data URI, the original raster content, or
the original URL of a remote raster image.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional

import aiohttp

from avatarkit.core.dto.media import ClassifiedMedia, ContentKind, RecoloredResult, RemoteURL
from avatarkit.core.errors import MediaFetchError
from avatarkit.core.http_client import HttpClient, check_status
from avatarkit.media import source
from avatarkit.media.vector import SVG_MIME, LxmlVectorCodec, VectorCodec, recolor_svg

logger = logging.getLogger(__name__)


class MediaResolver:
    """
    Stateless icon resolver.

    Responsibilities:
    - Acceptance check (sync)
    - Classification of the reference
    - SVG recoloring
    - Remote fetch of http(s) references

    Non-responsibilities:
    - Caching
    - Retries
    - Drawing
    """

    def __init__(
        self,
        codec: Optional[VectorCodec] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self._codec = codec or LxmlVectorCodec()
        self._http = http_client or HttpClient()

    @staticmethod
    def is_acceptable(ref: Any) -> bool:
        return source.is_acceptable(ref)

    def resolve(self, ref: Any, color: str) -> Awaitable[RecoloredResult]:
        """
        Resolve ``ref`` for drawing with ``color``.

        Classification happens before this returns, so an unacceptable
        reference raises immediately rather than when awaited.

        Raises:
            UnsupportedMediaError: Reference not recognized (raised synchronously)
            MediaFetchError: Remote fetch failed (raised when awaited)
            MalformedVectorError: SVG content could not be parsed (raised when awaited)
        """
        classified = source.classify(ref)
        return self._resolve_classified(classified, color)

    async def _resolve_classified(self, classified: ClassifiedMedia, color: str) -> RecoloredResult:
        if classified.content_kind is ContentKind.BLOB_UNRESOLVED:
            classified = await source.read_blob(classified)

        if classified.content_kind is ContentKind.REMOTE_UNRESOLVED:
            return await self._resolve_remote(classified.reference, color)

        if classified.content_kind is ContentKind.VECTOR:
            return recolor_svg(classified.text_content, color, self._codec)

        return classified.raw_bytes

    async def _resolve_remote(self, reference: RemoteURL, color: str) -> RecoloredResult:
        url = reference.url
        logger.debug(f"Fetching remote icon: {url}")

        try:
            async with self._http.session() as session:
                async with session.get(url, proxy=self._http.proxy) as response:
                    check_status(url, response)

                    if SVG_MIME not in response.content_type:
                        logger.debug(f"Remote icon is {response.content_type or 'untyped'}, passing URL through")
                        return url

                    text = await response.text(errors="replace")
        except aiohttp.ClientError as e:
            raise MediaFetchError(url, str(e) or type(e).__name__) from e
        except asyncio.TimeoutError as e:
            raise MediaFetchError(url, "request timed out") from e

        return recolor_svg(text, color, self._codec)
