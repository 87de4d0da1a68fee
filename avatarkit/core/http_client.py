"""
Centralized HTTP client configuration.

Provides aiohttp session management for remote icon fetches with:
- Browser-like media headers (User-Agent, Accept, etc.)
- Connect/read/total timeouts
- Optional HTTP proxy
- Settings loading from a flat mapping or the environment
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional
from urllib.parse import urlparse

import aiohttp
from aiohttp import ClientTimeout, TCPConnector

from avatarkit.core.errors import MediaFetchError

logger = logging.getLogger(__name__)


# Headers for icon/media downloads
MEDIA_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36",
    "Accept": "image/svg+xml,image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Sec-Fetch-Dest": "image",
    "Sec-Fetch-Mode": "no-cors",
}

ENV_PREFIX = "AVATARKIT_"


class ProxyConfig:
    """Configuration for an HTTP proxy used by icon fetches."""

    def __init__(
        self,
        enabled: bool = False,
        proxy_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.enabled = enabled
        self.proxy_url = proxy_url
        self.username = username
        self.password = password

    def get_proxy(self) -> Optional[str]:
        """Get the proxy URL, with credentials inserted if configured."""
        if not self.enabled or not self.proxy_url:
            return None
        return self._format_proxy_url(self.proxy_url)

    def _format_proxy_url(self, url: str) -> str:
        """Format proxy URL with credentials if needed."""
        if not self.username or not self.password:
            return url

        parsed = urlparse(url)
        if parsed.username:  # Already has credentials
            return url

        if parsed.port:
            netloc = f"{self.username}:{self.password}@{parsed.hostname}:{parsed.port}"
        else:
            netloc = f"{self.username}:{self.password}@{parsed.hostname}"

        return f"{parsed.scheme}://{netloc}{parsed.path}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProxyConfig":
        """
        Create config from flat settings.

        Reads ``proxy_url``, ``proxy_username`` and ``proxy_password``. The
        proxy is enabled whenever a URL is present.
        """
        proxy_url = data.get("proxy_url") or None
        return cls(
            enabled=bool(proxy_url),
            proxy_url=proxy_url,
            username=data.get("proxy_username") or None,
            password=data.get("proxy_password") or None,
        )


class HttpClientConfig:
    """Central HTTP client configuration."""

    def __init__(
        self,
        proxy_config: Optional[ProxyConfig] = None,
        headers: Optional[Dict[str, str]] = None,
        max_connections_per_host: int = 10,
        max_total_connections: int = 100,
        connect_timeout: int = 30,
        read_timeout: int = 60,
        total_timeout: Optional[int] = None,
    ):
        self.proxy_config = proxy_config or ProxyConfig()
        self.headers = dict(headers or MEDIA_HEADERS)
        self.max_connections_per_host = max_connections_per_host
        self.max_total_connections = max_total_connections
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.total_timeout = total_timeout


class HttpClient:
    """
    Async HTTP session factory.

    Every ``session()`` block opens and closes its own aiohttp.ClientSession,
    so concurrent resolutions never share connection state.
    """

    def __init__(self, config: Optional[HttpClientConfig] = None):
        self.config = config or HttpClientConfig()

    @property
    def proxy(self) -> Optional[str]:
        """Proxy URL to pass to individual requests, if any."""
        return self.config.proxy_config.get_proxy()

    def create_async_session(self) -> aiohttp.ClientSession:
        """
        Create a configured aiohttp.ClientSession.

        The caller owns the session and must close it.
        """
        connector = TCPConnector(
            limit=self.config.max_total_connections,
            limit_per_host=self.config.max_connections_per_host,
            ttl_dns_cache=300,
            force_close=False,
        )

        timeout = ClientTimeout(
            total=self.config.total_timeout,
            connect=self.config.connect_timeout,
            sock_read=self.config.read_timeout,
        )

        return aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            headers=self.config.headers,
            raise_for_status=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Open a session for the duration of one resolution."""
        session = self.create_async_session()
        try:
            yield session
        finally:
            await session.close()

    async def fetch_bytes(self, url: str) -> bytes:
        """
        GET ``url`` and return the body.

        Raises:
            MediaFetchError: On network errors, timeouts and non-2xx responses
        """
        try:
            async with self.session() as session:
                async with session.get(url, proxy=self.proxy) as response:
                    check_status(url, response)
                    data = await response.read()
        except aiohttp.ClientError as e:
            raise MediaFetchError(url, str(e) or type(e).__name__) from e
        except asyncio.TimeoutError as e:
            raise MediaFetchError(url, "request timed out") from e

        logger.debug(f"Fetched {len(data)} bytes from {url}")
        return data


def check_status(url: str, response: aiohttp.ClientResponse) -> None:
    """Raise MediaFetchError for non-2xx responses."""
    if not 200 <= response.status < 300:
        raise MediaFetchError(url, f"HTTP {response.status}", status=response.status)


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-integer HTTP setting value: {value!r}")
        return default


def create_http_client_from_settings(settings: Mapping[str, Any]) -> HttpClient:
    """
    Create HttpClient configured from a flat settings mapping.

    Recognized keys: ``proxy_url``, ``proxy_username``, ``proxy_password``,
    ``connect_timeout``, ``read_timeout``, ``total_timeout``,
    ``max_connections_per_host``, ``max_total_connections``, ``user_agent``.

    Args:
        settings: Mapping of setting name to value (strings are accepted)

    Returns:
        Configured HttpClient instance
    """
    proxy_config = ProxyConfig.from_dict(settings)

    headers = dict(MEDIA_HEADERS)
    if settings.get("user_agent"):
        headers["User-Agent"] = settings["user_agent"]

    config = HttpClientConfig(
        proxy_config=proxy_config,
        headers=headers,
        max_connections_per_host=_as_int(settings.get("max_connections_per_host"), 10),
        max_total_connections=_as_int(settings.get("max_total_connections"), 100),
        connect_timeout=_as_int(settings.get("connect_timeout"), 30),
        read_timeout=_as_int(settings.get("read_timeout"), 60),
        total_timeout=_as_int(settings.get("total_timeout"), None),
    )

    logger.debug(
        f"HTTP client created - proxy enabled: {proxy_config.enabled}, "
        f"connect_timeout: {config.connect_timeout}, read_timeout: {config.read_timeout}"
    )
    return HttpClient(config)


def settings_from_env(
    environ: Optional[Mapping[str, str]] = None,
    prefix: str = ENV_PREFIX,
) -> Dict[str, str]:
    """
    Collect prefixed environment variables into a settings mapping.

    ``AVATARKIT_CONNECT_TIMEOUT=5`` becomes ``{"connect_timeout": "5"}``.
    """
    environ = os.environ if environ is None else environ
    return {
        key[len(prefix):].lower(): value
        for key, value in environ.items()
        if key.startswith(prefix)
    }
