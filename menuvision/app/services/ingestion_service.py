# menuvision/app/services/ingestion_service.py
"""
Manager-facing menu operations.
Checks restaurant ownership, then records sources and catalog edits.
Background runs are scheduled by the caller once a source row exists.
"""
from __future__ import annotations

import logging
from typing import Optional

from menuvision.app.domain.errors import (
    InvalidSourceError,
    RestaurantAccessError,
    SourceNotFoundError,
)
from menuvision.app.domain.models import (
    CandidateItem,
    ImageInput,
    MenuItem,
    MenuSource,
    SourceStatus,
    SourceType,
)
from menuvision.app.infra.db.base import MenuSourceRepository, RestaurantAccessRepository
from menuvision.app.services.catalog_service import CatalogService
from menuvision.services.extractor import MenuExtractor

logger = logging.getLogger(__name__)


class MenuIngestionService:
    """
    Service for restaurant managers.

    Responsibilities:
    - Register URL sources and pick sources to reprocess
    - Expose the latest source status for polling
    - Synchronous menu photo preview
    - Manual catalog edits
    """

    def __init__(
        self,
        access_repository: RestaurantAccessRepository,
        source_repository: MenuSourceRepository,
        catalog: CatalogService,
        extractor: MenuExtractor,
    ):
        self._access = access_repository
        self._sources = source_repository
        self._catalog = catalog
        self._extractor = extractor

    def ensure_owner(self, actor_id: str, restaurant_id: str) -> None:
        """
        Raises:
            RestaurantAccessError: If the actor does not manage the restaurant
            PersistenceError: If ownership cannot be looked up
        """
        if not self._access.is_owner(actor_id, restaurant_id):
            logger.warning("Access denied: actor=%s, restaurant=%s", actor_id, restaurant_id)
            raise RestaurantAccessError(actor_id, restaurant_id)

    def register_url_source(self, actor_id: str, restaurant_id: str, url: str) -> MenuSource:
        """
        Record a new pending URL source.

        Args:
            actor_id: Authenticated manager
            restaurant_id: Target restaurant
            url: Menu page address

        Returns:
            The stored MenuSource, still `pending`

        Raises:
            RestaurantAccessError: If the actor does not manage the restaurant
            InvalidSourceError: If the URL is blank or not http(s)
            PersistenceError: If the row cannot be written
        """
        self.ensure_owner(actor_id, restaurant_id)

        clean_url = (url or "").strip()
        if not clean_url:
            raise InvalidSourceError("Menu URL is required")
        if not clean_url.lower().startswith(("http://", "https://")):
            raise InvalidSourceError(f"Menu URL must use http or https: {clean_url}")

        source = self._sources.create_source(
            restaurant_id,
            SourceType.URL,
            source_url=clean_url,
            status=SourceStatus.PENDING,
        )
        logger.info("Menu source registered: id=%s, restaurant=%s, url=%s", source.id, restaurant_id, clean_url)
        return source

    def reprocess(self, actor_id: str, restaurant_id: str) -> MenuSource:
        """
        Pick the most recent source for another lifecycle run.

        Raises:
            RestaurantAccessError: If the actor does not manage the restaurant
            SourceNotFoundError: If the restaurant has no source yet
        """
        self.ensure_owner(actor_id, restaurant_id)
        source = self._sources.get_latest_source(restaurant_id)
        if source is None:
            raise SourceNotFoundError(restaurant_id)

        logger.info("Menu source reprocess requested: id=%s, previous_status=%s", source.id, source.status.value)
        return source

    def get_latest_source(self, actor_id: str, restaurant_id: str) -> Optional[MenuSource]:
        self.ensure_owner(actor_id, restaurant_id)
        return self._sources.get_latest_source(restaurant_id)

    def parse_image(self, actor_id: str, restaurant_id: str, image: ImageInput) -> list[CandidateItem]:
        """Extract items from a menu photo for review. Nothing is stored."""
        self.ensure_owner(actor_id, restaurant_id)
        if not image.data:
            raise InvalidSourceError("Menu image is empty")
        return self._extractor.extract_from_image(image)

    def list_items(self, actor_id: str, restaurant_id: str) -> list[MenuItem]:
        self.ensure_owner(actor_id, restaurant_id)
        return self._catalog.list_items(restaurant_id)

    def save_item(
        self,
        actor_id: str,
        restaurant_id: str,
        name: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[str] = None,
    ) -> MenuItem:
        self.ensure_owner(actor_id, restaurant_id)
        return self._catalog.save_item(restaurant_id, name, category, description, price)

    def delete_item(self, actor_id: str, restaurant_id: str, item_id: str) -> bool:
        self.ensure_owner(actor_id, restaurant_id)
        deleted = self._catalog.delete_item(restaurant_id, item_id)
        if deleted:
            logger.info("Menu item deleted: restaurant=%s, item=%s", restaurant_id, item_id)
        return deleted
