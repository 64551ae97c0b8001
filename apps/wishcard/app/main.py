# apps/wishcard/app/main.py
#
# ROLE:
# - Wishlist card service
#   - /lista-de-desejos : PNG grid of a player's wishlist items (first 9)
#   - /demo             : same canvas with 9 coloured placeholder tiles
#   - /health           : liveness check, touches no external services
#
# PIPELINE (per request, nothing shared between requests):
#   wishlist API -> Acquirer (concurrent resolve + download per item)
#                -> background download -> compositor -> image/png
#
# ERRORS:
# - per-item failures are absorbed (logged, item skipped)
# - request-level failures are WishcardError subclasses -> {"error": "..."}
# - anything unexpected becomes a generic 500; the process never goes down

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from apps.wishcard.app.acquire import Acquirer
from apps.wishcard.app.compositor import CanvasLayout, compose, compose_demo, load_background
from apps.wishcard.app.config import settings
from apps.wishcard.app.errors import AcquisitionFailed, MissingParameter, WishcardError
from apps.wishcard.app.http_client import get_http_client
from apps.wishcard.app.items import ItemResolver
from apps.wishcard.app.models import ErrorBody
from apps.wishcard.app.wishlist import fetch_wishlist

VERSION = "1.0.0"

DEMO_ERROR = "Erro interno ao gerar a imagem de demonstração."

# -------------------------------------------------------------------
# logging
# -------------------------------------------------------------------

log = logging.getLogger("wishcard.api")
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


app = FastAPI(
    title="Wishcard",
    version=VERSION,
    description="Renders a player's wishlist as a 1280x720 PNG item grid.",
)


# -------------------------------------------------------------------
# Error handlers
# -------------------------------------------------------------------

def _json_error(status_code: int, msg: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(error=msg).model_dump())


@app.exception_handler(WishcardError)
async def wishcard_exc_handler(_: Request, exc: WishcardError):
    return _json_error(exc.status_code, exc.message)


@app.exception_handler(Exception)
async def unhandled_exc_handler(_: Request, exc: Exception):
    log.error("unhandled %s: %s", type(exc).__name__, exc, exc_info=exc)
    return _json_error(500, WishcardError.message)


def _png(data: bytes) -> Response:
    return Response(content=data, media_type="image/png")


def _acquirer(client: httpx.AsyncClient) -> Acquirer:
    resolver = ItemResolver(
        client,
        catalog_url=settings.catalog_url,
        cdn_map_url=settings.cdn_map_url,
        icon_base_url=settings.icon_base_url,
    )
    return Acquirer(
        client,
        source=settings.item_source,
        resolver=resolver,
        item_api_base=settings.item_api_base,
    )


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@app.get("/health")
def health():
    return {"status": "ok", "service": "wishcard", "env": settings.env, "version": VERSION}


@app.get("/lista-de-desejos")
async def wishlist_card(
    player_id: Optional[str] = Query(None, alias="id", description="Player/account id."),
    region: str = Query(settings.default_region, description="Upstream region code."),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    if not player_id or not player_id.strip():
        raise MissingParameter()
    player_id = player_id.strip()

    log.info("wishlist card for id=%s region=%s", player_id, region)

    try:
        entries = await fetch_wishlist(
            client,
            settings.wishlist_api_url,
            player_id,
            region,
            limit=settings.max_items,
        )
        log.info("wishlist items: %d", len(entries))

        result = await _acquirer(client).acquire_all(entries)
        if not result.successes:
            raise AcquisitionFailed()

        background = await load_background(client, settings.background_url)
        png = compose(background, result.buffers, CanvasLayout.from_settings(settings))
    except WishcardError:
        raise
    except Exception as e:
        log.exception("wishlist card failed for id=%s", player_id)
        raise WishcardError() from e

    log.info("wishlist card sent for id=%s (%d bytes)", player_id, len(png))
    return _png(png)


@app.get("/demo")
async def demo(client: httpx.AsyncClient = Depends(get_http_client)):
    try:
        background = await load_background(client, settings.background_url)
        png = compose_demo(background, CanvasLayout.from_settings(settings))
    except Exception as e:
        log.exception("demo render failed")
        raise WishcardError(DEMO_ERROR) from e

    return _png(png)
