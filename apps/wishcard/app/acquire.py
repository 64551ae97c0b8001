# apps/wishcard/app/acquire.py
#
# Fan-out over the wishlist: one resolve+download task per entry, all started
# together. Results are partitioned into successes/failures and successes keep
# the wishlist order (never completion order), so tile N is always the Nth
# acquirable item.

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import httpx

from apps.wishcard.app.config import settings
from apps.wishcard.app.items import ItemResolver, ResolvedImage, fetch_image
from apps.wishcard.app.models import WishlistEntry

log = logging.getLogger("wishcard.acquire")


@dataclass(frozen=True)
class AcquiredImage:
    item_id: str
    data: bytes
    url: str
    used_fallback: bool = False


@dataclass(frozen=True)
class AcquisitionFailure:
    item_id: str
    reason: str


@dataclass
class AcquisitionResult:
    successes: List[AcquiredImage] = field(default_factory=list)
    failures: List[AcquisitionFailure] = field(default_factory=list)

    @property
    def buffers(self) -> List[bytes]:
        return [s.data for s in self.successes]


class _ItemFailed(Exception):
    pass


class Acquirer:
    """
    source:
      - catalog : ItemResolver (catalog -> icon repo -> CDN fallback), then download
      - direct  : download item_api_base/<itemId> as-is
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        source: str = "catalog",
        resolver: Optional[ItemResolver] = None,
        item_api_base: str = settings.item_api_base,
    ) -> None:
        self._client = client
        self.source = source
        self.resolver = resolver or ItemResolver(client)
        self.item_api_base = item_api_base.rstrip("/")

    async def _locate(self, item_id: str) -> ResolvedImage:
        if self.source == "direct":
            return ResolvedImage(url=f"{self.item_api_base}/{item_id}")
        resolved = await self.resolver.resolve(item_id)
        if resolved is None:
            raise _ItemFailed("not resolvable")
        return resolved

    async def acquire_one(self, item_id: str) -> AcquiredImage:
        resolved = await self._locate(item_id)
        data = await fetch_image(self._client, resolved.url)
        if data is None:
            raise _ItemFailed(f"download failed: {resolved.url}")
        return AcquiredImage(
            item_id=item_id,
            data=data,
            url=resolved.url,
            used_fallback=resolved.used_fallback,
        )

    async def acquire_all(self, entries: Sequence[WishlistEntry]) -> AcquisitionResult:
        ids = [e.item_id for e in entries]
        outcomes = await asyncio.gather(
            *(self.acquire_one(i) for i in ids),
            return_exceptions=True,
        )

        result = AcquisitionResult()
        for item_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, AcquiredImage):
                result.successes.append(outcome)
                continue
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if not isinstance(outcome, _ItemFailed):
                log.warning(
                    "item %s: unexpected error: %s: %s",
                    item_id, type(outcome).__name__, outcome,
                )
            result.failures.append(
                AcquisitionFailure(item_id=item_id, reason=str(outcome) or type(outcome).__name__)
            )

        log.info(
            "acquired %d/%d item images (%d via fallback)",
            len(result.successes),
            len(ids),
            sum(1 for s in result.successes if s.used_fallback),
        )
        return result
