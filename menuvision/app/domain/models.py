# menuvision/app/domain/models.py
"""
Domain models for menu ingestion and photo classification.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SourceStatus(str, Enum):
    """Processing status of a menu source."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SourceStatus.COMPLETED, SourceStatus.FAILED)


class SourceType(str, Enum):
    URL = "url"
    IMAGE = "image"


class ClassificationReason(str, Enum):
    """Why a photo classification ended the way it did."""
    MATCHED = "matched"
    NO_MENU_ITEMS = "no_menu_items"
    NOT_FOOD = "not_food"
    NO_MATCH = "no_match"


@dataclass
class MenuSource:
    """
    A registered ingestion attempt for a restaurant.
    The most recent source of a restaurant is the authoritative one.
    """
    id: str
    restaurant_id: str
    source_type: SourceType
    status: SourceStatus
    source_url: Optional[str] = None
    file_path: Optional[str] = None
    scraped_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_consistent_location(self) -> bool:
        """Exactly one of source_url/file_path is set, matching source_type."""
        if self.source_type is SourceType.URL:
            return bool(self.source_url) and not self.file_path
        return bool(self.file_path) and not self.source_url


@dataclass
class MenuItem:
    """A dish known to a restaurant, unique by (restaurant_id, name)."""
    id: str
    restaurant_id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None


@dataclass(frozen=True)
class CandidateItem:
    """A normalized item produced by the extractor, not yet persisted."""
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.price,
        }


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes handed to a vision model."""
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass
class LifecycleOutcome:
    """Result of one lifecycle run, for logging and tests."""
    source_id: str
    status: SourceStatus
    items_extracted: int = 0
    items_written: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is SourceStatus.COMPLETED


@dataclass
class ClassificationResult:
    photo_id: str
    reason: ClassificationReason
    menu_item_id: Optional[str] = None
    menu_item_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.reason is ClassificationReason.MATCHED
