# apps/wishcard/app/http_client.py
#
# One httpx.AsyncClient per request. FastAPI closes it once the response has
# been produced (yield dependency), so nothing is pooled across requests.

from __future__ import annotations

from typing import AsyncIterator

import httpx

from apps.wishcard.app.config import settings

MAX_REDIRECTS = 5

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)


def _timeout() -> httpx.Timeout:
    return httpx.Timeout(
        timeout=None,
        connect=settings.http_connect_timeout,
        read=settings.http_read_timeout,
        write=settings.http_read_timeout,
        pool=settings.http_connect_timeout,
    )


def _default_headers() -> dict[str, str]:
    return {
        "User-Agent": BROWSER_UA,
        "Accept": "application/json, image/*;q=0.9, */*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }


def build_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=_timeout(),
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        headers=_default_headers(),
        transport=transport,
    )


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with build_client() as client:
        yield client
