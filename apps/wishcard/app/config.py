from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # runtime env
    env: str = "dev"
    port: int = 3000
    log_level: str = "INFO"

    # upstream wishlist API (called as ?id=<id>&region=<region>)
    wishlist_api_url: str = "https://freefireapis.squareweb.app/api/wishlist"
    default_region: str = "br"
    max_items: int = 9  # only the first N wishlist entries are rendered

    # item image sources
    # catalog : catalog lookup -> icon repo (HEAD check) -> CDN fallback map
    # direct  : one GET per item against item_api_base/<itemId>
    item_source: Literal["catalog", "direct"] = "catalog"
    catalog_url: str = "https://0xme.github.io/ItemID2/assets/itemData.json"
    cdn_map_url: str = "https://0xme.github.io/ItemID2/assets/cdn.json"
    icon_base_url: str = (
        "https://raw.githubusercontent.com/0xme/ff-resources/refs/heads/main/pngs/300x300"
    )
    item_api_base: str = "https://freefireapi.com/api/item"
    background_url: str = "https://files.catbox.moe/q4uv15.jpg"

    # outbound HTTP
    http_connect_timeout: float = 3.0
    http_read_timeout: float = 10.0

    # canvas / grid
    canvas_width: int = 1280
    canvas_height: int = 720
    grid_columns: int = 3
    tile_size: int = 180
    tile_gap: int = 30
    grid_origin_x: int = 100
    grid_offset_y: int = 40
    background_color: str = "#101010"

    # optional TTF for /demo labels; Pillow's default font otherwise
    font_path: Optional[str] = None


settings = Settings()
