from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from menuvision.app.domain.models import CandidateItem, MenuItem, MenuSource


class RegisterSourceRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1, description="Menu page to scrape")


class ReprocessRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)


class MenuSourceResponse(BaseModel):
    id: str
    restaurant_id: str
    source_type: Literal["url", "image"]
    status: Literal["pending", "processing", "completed", "failed"]
    source_url: Optional[str] = None
    file_path: Optional[str] = None
    scraped_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, source: MenuSource) -> "MenuSourceResponse":
        return cls(
            id=source.id,
            restaurant_id=source.restaurant_id,
            source_type=source.source_type.value,
            status=source.status.value,
            source_url=source.source_url,
            file_path=source.file_path,
            scraped_at=source.scraped_at,
            created_at=source.created_at,
        )


class MenuItemPayload(BaseModel):
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None

    @classmethod
    def from_candidate(cls, item: CandidateItem) -> "MenuItemPayload":
        return cls(**item.to_dict())


class SaveMenuItemRequest(MenuItemPayload):
    restaurant_id: str = Field(..., min_length=1)


class MenuItemResponse(MenuItemPayload):
    id: str
    restaurant_id: str

    @classmethod
    def from_domain(cls, item: MenuItem) -> "MenuItemResponse":
        return cls(
            id=item.id,
            restaurant_id=item.restaurant_id,
            name=item.name,
            category=item.category,
            description=item.description,
            price=item.price,
        )


class ParseImageResponse(BaseModel):
    items: list[MenuItemPayload] = Field(default_factory=list)
    count: int = 0
