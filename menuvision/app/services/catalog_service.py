# menuvision/app/services/catalog_service.py
"""
Catalog persistence service.
Writes extracted items idempotently, keyed by (restaurant, name).
"""
from __future__ import annotations

import logging
from typing import Iterable

from menuvision.app.domain.errors import InvalidMenuItemError, PersistenceError
from menuvision.app.domain.models import CandidateItem, MenuItem
from menuvision.app.infra.db.base import MenuItemRepository

logger = logging.getLogger(__name__)


def _dedupe_by_name(items: Iterable[CandidateItem]) -> list[CandidateItem]:
    """Keep one candidate per name; a later duplicate overwrites an earlier one."""
    by_name: dict[str, CandidateItem] = {}
    for item in items:
        by_name.pop(item.name, None)
        by_name[item.name] = item
    return list(by_name.values())


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class CatalogService:
    """
    Service for a restaurant's menu items.

    Responsibilities:
    - Upsert extracted batches with per-item isolation
    - Manual single-item upsert and delete
    - Ordered catalog reads
    """

    def __init__(self, repository: MenuItemRepository):
        self._repo = repository

    def upsert_items(self, restaurant_id: str, items: Iterable[CandidateItem]) -> int:
        """
        Persist each item, skipping (and logging) the ones that fail.

        Args:
            restaurant_id: Owner of the catalog
            items: Normalized candidates from the extractor

        Returns:
            Number of items successfully written
        """
        batch = _dedupe_by_name(items)
        written = 0

        for item in batch:
            try:
                self._repo.upsert_item(restaurant_id, item)
                written += 1
            except PersistenceError as error:
                logger.warning(
                    "Skipping menu item after write failure: restaurant=%s, name=%s, error=%s",
                    restaurant_id, item.name, error,
                )

        logger.info("Catalog upsert: restaurant=%s, written=%d/%d", restaurant_id, written, len(batch))
        return written

    def save_item(
        self,
        restaurant_id: str,
        name: str,
        category: str | None = None,
        description: str | None = None,
        price: str | None = None,
    ) -> MenuItem:
        """
        Manually add or overwrite one item.

        Raises:
            InvalidMenuItemError: If the name is blank
            PersistenceError: If the write fails
        """
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidMenuItemError("Menu item name is required")

        item = CandidateItem(
            name=clean_name,
            category=_clean_optional(category),
            description=_clean_optional(description),
            price=_clean_optional(price),
        )
        return self._repo.upsert_item(restaurant_id, item)

    def list_items(self, restaurant_id: str) -> list[MenuItem]:
        """Catalog ordered by category then name."""
        return self._repo.list_items(restaurant_id)

    def delete_item(self, restaurant_id: str, item_id: str) -> bool:
        return self._repo.delete_item(restaurant_id, item_id)
