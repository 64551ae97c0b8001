from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from apps.wishcard.app.config import settings
from apps.wishcard.app.http_client import build_client, get_http_client
from apps.wishcard.app.main import app

BG_COLOR = (20, 40, 60)
FALLBACK_BG = (16, 16, 16)  # #101010

Route = Union[Exception, Callable[[httpx.Request], httpx.Response]]


def png_bytes(color: Tuple[int, int, int], size: Tuple[int, int] = (64, 64)) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", size, color + (255,)).save(buf, format="PNG")
    return buf.getvalue()


def close(a, b, tol: int = 3) -> bool:
    return all(abs(x - y) <= tol for x, y in zip(a, b))


class FakeRemote:
    """Every outbound URL the service touches, served from memory."""

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.head_status: Dict[str, int] = {}
        self.delays: Dict[str, float] = {}
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    # -- seeding ----------------------------------------------------
    def json(self, url: str, data, status: int = 200) -> None:
        self.routes[url] = lambda req: httpx.Response(status, json=data)

    def image(self, url: str, color: Tuple[int, int, int], delay: float = 0.0) -> None:
        body = png_bytes(color)
        self.routes[url] = lambda req: httpx.Response(
            200, content=body, headers={"Content-Type": "image/png"}
        )
        if delay:
            self.delays[url] = delay

    def raw(self, url: str, body: bytes, status: int = 200) -> None:
        self.routes[url] = lambda req: httpx.Response(status, content=body)

    def down(self, url: str) -> None:
        self.routes[url] = httpx.ConnectError("unreachable")

    def wishlist(self, item_ids, success: bool = True) -> None:
        self.json(
            settings.wishlist_api_url,
            {"success": success, "wishlistBasicInfo": {"Items": [{"itemId": i} for i in item_ids]}},
        )

    def catalog(self, items: Dict[str, dict]) -> None:
        """
        items: id -> {"color": (r,g,b), "primary": bool, "fallback": (r,g,b)|None, "delay": float}
        """
        catalog = []
        cdn = []
        for item_id, opts in items.items():
            icon = f"icon_{item_id}"
            catalog.append({"itemID": int(item_id), "icon": icon})
            primary = f"{settings.icon_base_url}/{icon}.png"
            if opts.get("primary", True):
                self.image(primary, opts["color"], delay=opts.get("delay", 0.0))
            else:
                self.down(primary)
            if opts.get("fallback"):
                fb = f"https://cdn.example.test/{item_id}.png"
                cdn.append({item_id: fb})
                self.image(fb, opts["fallback"], delay=opts.get("delay", 0.0))
        self.json(settings.catalog_url, catalog)
        self.json(settings.cdn_map_url, cdn)

    # -- introspection ----------------------------------------------
    def count(self, method: str, url: str) -> int:
        return sum(1 for m, u in self.calls if m == method and u.split("?", 1)[0] == url)

    # -- transport --------------------------------------------------
    async def handle(self, request: httpx.Request) -> httpx.Response:
        full = str(request.url)
        url = full.split("?", 1)[0]
        self.calls.append((request.method, full))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(url)
            if delay:
                await asyncio.sleep(delay)
        finally:
            self.in_flight -= 1

        route = self.routes.get(url)
        if route is None:
            raise httpx.ConnectError(f"no route for {url}", request=request)
        if isinstance(route, Exception):
            raise route
        resp = route(request)
        if request.method == "HEAD":
            return httpx.Response(self.head_status.get(url, resp.status_code))
        return resp


@pytest.fixture
def remote() -> FakeRemote:
    r = FakeRemote()
    r.image(settings.background_url, BG_COLOR)
    return r


@pytest.fixture
def http(remote: FakeRemote):
    """Factory for an AsyncClient wired to the fake remote (use inside asyncio.run)."""
    def _make() -> httpx.AsyncClient:
        return build_client(transport=httpx.MockTransport(remote.handle))
    return _make


@pytest.fixture
def api(remote: FakeRemote):
    async def _client():
        async with build_client(transport=httpx.MockTransport(remote.handle)) as c:
            yield c

    app.dependency_overrides[get_http_client] = _client
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()


def open_png(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img.convert("RGB")


def tile_center(index: int, count: int, layout=None) -> Tuple[int, int]:
    from apps.wishcard.app.compositor import CanvasLayout

    layout = layout or CanvasLayout.from_settings(settings)
    x, y = layout.cell(index, count)
    return x + layout.tile_size // 2, y + layout.tile_size // 2


def pixel(img: Image.Image, xy: Tuple[int, int]) -> Tuple[int, int, int]:
    return img.getpixel(xy)[:3]
