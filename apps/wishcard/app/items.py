# apps/wishcard/app/items.py
#
# Image acquisition for a single wishlist item.
#
#   fetch_image()          GET raw bytes, None on any failure (no retries)
#   ItemResolver.resolve() itemId -> catalog icon -> icon repo URL
#                          (HEAD check) -> CDN fallback map when that fails
#
# Everything here is best-effort: one bad item must never take the whole
# wishlist down, so network/decode errors are logged and turned into None.

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from apps.wishcard.app.config import settings
from apps.wishcard.app.models import CatalogEntry

log = logging.getLogger("wishcard.items")


@dataclass(frozen=True)
class ResolvedImage:
    url: str
    used_fallback: bool = False


async def fetch_image(client: httpx.AsyncClient, url: str) -> Optional[bytes]:
    try:
        r = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        log.warning("download failed %s: %s", url, type(e).__name__)
        return None

    if not r.is_success:
        log.warning("download failed %s: HTTP %s", url, r.status_code)
        return None
    if not r.content:
        log.warning("download failed %s: empty body", url)
        return None
    return r.content


def _parse_catalog(data: Any) -> Dict[str, CatalogEntry]:
    if not isinstance(data, list):
        raise ValueError("catalog document is not a list")
    out: Dict[str, CatalogEntry] = {}
    for raw in data:
        if not isinstance(raw, dict):
            continue
        try:
            entry = CatalogEntry.model_validate(raw)
        except ValidationError:
            continue
        # first match wins, same as a linear scan would
        out.setdefault(entry.item_id, entry)
    return out


def _parse_cdn_map(data: Any) -> Dict[str, str]:
    if not isinstance(data, list):
        raise ValueError("cdn document is not a list")
    merged: Dict[str, str] = {}
    for obj in data:
        if not isinstance(obj, dict):
            continue
        for k, v in obj.items():
            if isinstance(v, str) and v:
                merged[str(k).strip()] = v
    return merged


class ItemResolver:
    """
    Resolves item ids to downloadable image URLs.

    One instance serves one request. The catalog and CDN documents are
    downloaded lazily, at most once each, and shared by every concurrent
    resolve() of that request. A new request builds a new resolver.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        catalog_url: str = settings.catalog_url,
        cdn_map_url: str = settings.cdn_map_url,
        icon_base_url: str = settings.icon_base_url,
    ) -> None:
        self._client = client
        self.catalog_url = catalog_url
        self.cdn_map_url = cdn_map_url
        self.icon_base_url = icon_base_url.rstrip("/")
        self._docs: Dict[str, "asyncio.Future[Any]"] = {}

    def _shared(self, key: str, load: Callable[[], Awaitable[Any]]) -> "asyncio.Future[Any]":
        fut = self._docs.get(key)
        if fut is None:
            fut = asyncio.ensure_future(load())
            self._docs[key] = fut
        return fut

    async def _get_json(self, url: str) -> Any:
        r = await self._client.get(url)
        r.raise_for_status()
        return r.json()

    async def _load_catalog(self) -> Dict[str, CatalogEntry]:
        catalog = _parse_catalog(await self._get_json(self.catalog_url))
        log.info("catalog loaded: %d entries", len(catalog))
        return catalog

    async def _load_cdn_map(self) -> Dict[str, str]:
        cdn = _parse_cdn_map(await self._get_json(self.cdn_map_url))
        log.info("cdn map loaded: %d entries", len(cdn))
        return cdn

    async def _exists(self, url: str) -> bool:
        try:
            r = await self._client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL):
            return False
        return r.is_success

    def primary_url(self, icon: str) -> str:
        return f"{self.icon_base_url}/{icon}.png"

    async def resolve(self, item_id: str) -> Optional[ResolvedImage]:
        item_id = str(item_id).strip()
        try:
            catalog = await self._shared("catalog", self._load_catalog)
            entry = catalog.get(item_id)
            if entry is None:
                log.warning("item %s not found in catalog", item_id)
                return None

            # no icon means no primary image; only the CDN map can help
            if entry.icon:
                url = self.primary_url(entry.icon)
                if await self._exists(url):
                    return ResolvedImage(url=url)

            cdn = await self._shared("cdn", self._load_cdn_map)
            fallback = cdn.get(item_id)
            if not fallback:
                log.warning("item %s: primary image missing and no CDN fallback", item_id)
                return None
            log.info("item %s: using CDN fallback %s", item_id, fallback)
            return ResolvedImage(url=fallback, used_fallback=True)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            log.warning("item %s: resolve failed: %s: %s", item_id, type(e).__name__, e)
            return None
