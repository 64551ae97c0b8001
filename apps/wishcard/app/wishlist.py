from __future__ import annotations

import logging
from typing import List

import httpx

from apps.wishcard.app.errors import WishlistEmpty, WishlistNotFound
from apps.wishcard.app.models import WishlistEntry, WishlistResponse

log = logging.getLogger("wishcard.wishlist")


async def fetch_wishlist(
    client: httpx.AsyncClient,
    api_url: str,
    player_id: str,
    region: str,
    limit: int = 9,
) -> List[WishlistEntry]:
    """
    Ordered wishlist entries for a player, truncated to `limit`.

    Raises WishlistNotFound / WishlistEmpty for "no data" answers. Transport
    errors and malformed payloads propagate (the route turns them into 500s).
    """
    r = await client.get(api_url, params={"id": player_id, "region": region})
    if r.status_code == 404:
        log.warning("wishlist upstream 404 for id=%s region=%s", player_id, region)
        raise WishlistNotFound()
    r.raise_for_status()

    payload = WishlistResponse.model_validate(r.json())
    info = payload.wishlist_basic_info
    if not payload.success or info is None or info.items is None:
        log.warning("upstream returned no valid wishlist for id=%s", player_id)
        raise WishlistNotFound()

    entries = info.items[:limit]
    if not entries:
        raise WishlistEmpty()
    return entries
