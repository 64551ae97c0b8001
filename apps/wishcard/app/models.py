from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_item_id(v: Any) -> Any:
    # upstream mixes numeric and string ids; compare everything as str
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, str)):
        return str(v).strip()
    return v


class WishlistEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemId", min_length=1)

    @field_validator("item_id", mode="before")
    @classmethod
    def normalize_item_id(cls, v: Any) -> Any:
        return _to_item_id(v)


class WishlistBasicInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: Optional[List[WishlistEntry]] = Field(default=None, alias="Items")


class WishlistResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    wishlist_basic_info: Optional[WishlistBasicInfo] = Field(
        default=None, alias="wishlistBasicInfo"
    )


class CatalogEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemID")
    icon: Optional[str] = None

    @field_validator("item_id", mode="before")
    @classmethod
    def normalize_item_id(cls, v: Any) -> Any:
        return _to_item_id(v)


class ErrorBody(BaseModel):
    error: str
