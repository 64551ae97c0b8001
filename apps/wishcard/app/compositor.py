# apps/wishcard/app/compositor.py
#
# Draws the wishlist card:
#   - background image stretched to the canvas (solid colour if unavailable)
#   - up to 9 item tiles in a row-major grid, each with a soft drop shadow
#   - PNG encode
#
# Geometry lives in CanvasLayout so callers/tests can swap it out; nothing in
# here reads global state at draw time.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Sequence, Tuple

import httpx
from PIL import Image, ImageDraw, ImageFilter, ImageFont

from apps.wishcard.app.config import Settings
from apps.wishcard.app.items import fetch_image

log = logging.getLogger("wishcard.compositor")

DEMO_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1",
    "#96CEB4", "#FFEAA7", "#DDA0DD",
    "#98D8C8", "#F7DC6F", "#BB8FCE",
]

_BOLD_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
)


@dataclass(frozen=True)
class CanvasLayout:
    width: int = 1280
    height: int = 720
    columns: int = 3
    tile_size: int = 180
    gap: int = 30
    origin_x: int = 100
    offset_y: int = 40
    max_tiles: int = 9
    background_color: str = "#101010"

    # rgba(0, 0, 0, 0.7), blur 15, offset (5, 5)
    shadow_color: Tuple[int, int, int, int] = (0, 0, 0, 178)
    shadow_blur: int = 15
    shadow_offset: Tuple[int, int] = (5, 5)

    font_path: Optional[str] = None
    label_size: int = 24

    @classmethod
    def from_settings(cls, s: Settings) -> "CanvasLayout":
        return cls(
            width=s.canvas_width,
            height=s.canvas_height,
            columns=s.grid_columns,
            tile_size=s.tile_size,
            gap=s.tile_gap,
            origin_x=s.grid_origin_x,
            offset_y=s.grid_offset_y,
            max_tiles=s.max_items,
            background_color=s.background_color,
            font_path=s.font_path,
        )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def origin(self, count: int) -> Tuple[int, int]:
        """Top-left of the grid; the block of rows is centred vertically."""
        rows = math.ceil(count / self.columns)
        y = (self.height - rows * (self.tile_size + self.gap)) // 2 + self.offset_y
        return self.origin_x, y

    def cell(self, index: int, count: int) -> Tuple[int, int]:
        x0, y0 = self.origin(count)
        row, col = divmod(index, self.columns)
        step = self.tile_size + self.gap
        return x0 + col * step, y0 + row * step


# -------------------------------------------------------------------
# background
# -------------------------------------------------------------------

async def load_background(client: httpx.AsyncClient, url: str) -> Optional[Image.Image]:
    """Download + decode the background. Returns None instead of raising."""
    data = await fetch_image(client, url)
    if data is None:
        log.warning("background unavailable, using solid colour")
        return None
    try:
        img = Image.open(BytesIO(data))
        img.load()
        return img
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        log.warning("background decode failed: %s: %s", type(e).__name__, e)
        return None


def _new_canvas(background: Optional[Image.Image], layout: CanvasLayout) -> Image.Image:
    canvas = Image.new("RGB", layout.size, layout.background_color)
    if background is None:
        return canvas
    try:
        bg = background.convert("RGB").resize(layout.size, Image.Resampling.LANCZOS)
        canvas.paste(bg, (0, 0))
    except (OSError, ValueError) as e:
        log.warning("background draw failed: %s: %s", type(e).__name__, e)
    return canvas


# -------------------------------------------------------------------
# tiles
# -------------------------------------------------------------------

def _decode_tile(data: bytes, size: int) -> Image.Image:
    with Image.open(BytesIO(data)) as im:
        im.load()
        return im.convert("RGBA").resize((size, size), Image.Resampling.LANCZOS)


def _draw_shadow(canvas: Image.Image, mask: Image.Image, x: int, y: int, layout: CanvasLayout) -> None:
    """Blurred copy of the tile's alpha, painted in shadow_color under (x, y)."""
    blur = layout.shadow_blur
    pad = blur * 2
    opacity = layout.shadow_color[3] / 255.0

    alpha = Image.new("L", (mask.width + 2 * pad, mask.height + 2 * pad), 0)
    alpha.paste(mask.point(lambda a: int(a * opacity)), (pad, pad))
    if blur:
        alpha = alpha.filter(ImageFilter.GaussianBlur(blur / 2))

    dx, dy = layout.shadow_offset
    color = Image.new("RGB", alpha.size, layout.shadow_color[:3])
    canvas.paste(color, (x + dx - pad, y + dy - pad), alpha)


def _draw_tile(canvas: Image.Image, tile: Image.Image, x: int, y: int, layout: CanvasLayout) -> None:
    # shadow belongs to this draw only; the next tile starts clean
    mask = tile.getchannel("A")
    _draw_shadow(canvas, mask, x, y, layout)
    canvas.paste(tile.convert("RGB"), (x, y), mask)


def draw_grid(canvas: Image.Image, items: Sequence[bytes], layout: CanvasLayout) -> int:
    """Draw item images in order; returns how many tiles made it onto the canvas."""
    items = list(items)[: layout.max_tiles]
    count = len(items)
    drawn = 0
    for i, data in enumerate(items):
        x, y = layout.cell(i, count)
        try:
            tile = _decode_tile(data, layout.tile_size)
            _draw_tile(canvas, tile, x, y, layout)
            drawn += 1
        except Exception as e:
            log.warning("tile %d skipped: %s: %s", i, type(e).__name__, e)
    return drawn


def to_png(canvas: Image.Image) -> bytes:
    buf = BytesIO()
    canvas.save(buf, format="PNG")
    return buf.getvalue()


def compose(
    background: Optional[Image.Image],
    items: Sequence[bytes],
    layout: Optional[CanvasLayout] = None,
) -> bytes:
    layout = layout or CanvasLayout()
    canvas = _new_canvas(background, layout)
    drawn = draw_grid(canvas, items, layout)
    log.info("composited %d/%d tiles", drawn, min(len(items), layout.max_tiles))
    return to_png(canvas)


# -------------------------------------------------------------------
# demo
# -------------------------------------------------------------------

def _label_font(layout: CanvasLayout) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    paths = ((layout.font_path,) if layout.font_path else ()) + _BOLD_FONT_CANDIDATES
    for p in paths:
        try:
            return ImageFont.truetype(p, layout.label_size)
        except OSError:
            continue
    return ImageFont.load_default(size=layout.label_size)


def compose_demo(background: Optional[Image.Image], layout: Optional[CanvasLayout] = None) -> bytes:
    """Nine coloured placeholder tiles labelled "Item 1".."Item 9"."""
    layout = layout or CanvasLayout()
    canvas = _new_canvas(background, layout)
    draw = ImageDraw.Draw(canvas)
    font = _label_font(layout)
    ts = layout.tile_size

    count = len(DEMO_COLORS)
    for i, color in enumerate(DEMO_COLORS):
        x, y = layout.cell(i, count)
        _draw_tile(canvas, Image.new("RGBA", (ts, ts), color), x, y, layout)

        label = f"Item {i + 1}"
        left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
        tx = x + (ts - (right - left)) / 2 - left
        ty = y + (ts - (bottom - top)) / 2 - top
        draw.text((tx, ty), label, fill="white", font=font)

    return to_png(canvas)
