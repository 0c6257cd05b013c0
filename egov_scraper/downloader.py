"""HTTP access to the portal: redirects disabled, rate limited, cookie jar unused.

Session cookies are carried explicitly in request headers, so the client's own
cookie jar is emptied after every response to keep tokens from leaking between
clients.
"""

import logging
import time
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from .config import HttpConfig

logger = logging.getLogger("egov_scraper")


class PortalHttp:
    def __init__(self, config: Optional[HttpConfig] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.config = config or HttpConfig()
        self._transport = transport
        self._last_request_time: dict = {}  # per-host timestamps
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.config.timeout, connect=30),
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    def close(self):
        if self._client and not self._client.is_closed:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def rate_limit(self, url: str):
        host = urlparse(url).netloc
        last = self._last_request_time.get(host, 0)
        elapsed = time.time() - last
        if elapsed < self.config.rate_limit:
            time.sleep(self.config.rate_limit - elapsed)
        self._last_request_time[host] = time.time()

    def request(self, method: str, url: str, headers: dict = None,
                data: dict = None) -> httpx.Response:
        self.rate_limit(url)
        try:
            resp = self.client.request(method, url, headers=headers or {}, data=data)
        finally:
            self.client.cookies.clear()
        logger.debug(f"{method} {url} -> {resp.status_code}")
        return resp

    def get(self, url: str, headers: dict = None) -> httpx.Response:
        return self.request("GET", url, headers=headers)

    def post(self, url: str, data: dict, headers: dict = None) -> httpx.Response:
        return self.request("POST", url, headers=headers, data=data)

    def fetch_bytes(self, url: str, headers: dict = None) -> bytes:
        """Download a binary resource, enforcing the size cap. Raises on non-2xx."""
        self.rate_limit(url)
        limit = self.config.max_archive_size
        chunks = []
        size = 0
        try:
            # Attachments may redirect to signed storage.
            with self.client.stream("GET", url, headers=headers or {},
                                    follow_redirects=True) as resp:
                resp.raise_for_status()

                content_length = resp.headers.get("content-length")
                if content_length and int(content_length) > limit:
                    raise ValueError(f"File too large: {content_length} bytes")

                for chunk in resp.iter_bytes(chunk_size=65536):
                    chunks.append(chunk)
                    size += len(chunk)
                    if size > limit:
                        raise ValueError(f"File exceeded max size during download: {size} bytes")
        finally:
            self.client.cookies.clear()
        return b"".join(chunks)


def set_cookies(resp: httpx.Response) -> List[str]:
    """All ``Set-Cookie`` header values, in response order."""
    return resp.headers.get_list("set-cookie")
