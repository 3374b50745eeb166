# menuvision/app/infra/db/base.py
"""
Abstract repositories for the menu pipeline.
This interface allows swapping Supabase for another backend (or a stub in tests).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from menuvision.app.domain.models import (
    CandidateItem,
    MenuItem,
    MenuSource,
    SourceStatus,
    SourceType,
)


class MenuSourceRepository(ABC):
    """
    Storage for MenuSource rows.

    Implementations:
    - SupabaseMenuSourceRepository: `menu_sources` table
    """

    @abstractmethod
    def create_source(
        self,
        restaurant_id: str,
        source_type: SourceType,
        source_url: Optional[str] = None,
        file_path: Optional[str] = None,
        status: SourceStatus = SourceStatus.PENDING,
    ) -> MenuSource:
        """
        Insert a new source row.

        Raises:
            PersistenceError: If the insert fails
        """
        pass

    @abstractmethod
    def get_source(self, source_id: str, restaurant_id: str) -> Optional[MenuSource]:
        """
        Get a source by id, scoped to its restaurant.

        Returns:
            The source, or None if it does not exist for this restaurant
        """
        pass

    @abstractmethod
    def get_latest_source(self, restaurant_id: str) -> Optional[MenuSource]:
        """Most recently created source for the restaurant."""
        pass

    @abstractmethod
    def update_status(
        self,
        source_id: str,
        status: SourceStatus,
        scraped_at: Optional[datetime] = None,
    ) -> None:
        """
        Write the status column (and scraped_at when given).

        Raises:
            PersistenceError: If the update did not persist
        """
        pass


class MenuItemRepository(ABC):
    """
    Storage for a restaurant's catalog.

    Implementations:
    - SupabaseMenuItemRepository: `menu_items` table, unique (restaurant_id, name)
    """

    @abstractmethod
    def upsert_item(self, restaurant_id: str, item: CandidateItem) -> MenuItem:
        """
        Insert or overwrite the row keyed by (restaurant_id, item.name).

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def list_items(self, restaurant_id: str) -> list[MenuItem]:
        """
        All items of a restaurant ordered by category then name.

        Raises:
            PersistenceError: If the read fails
        """
        pass

    @abstractmethod
    def delete_item(self, restaurant_id: str, item_id: str) -> bool:
        """Delete one item of the restaurant. Returns True if a row was removed."""
        pass


class PhotoRepository(ABC):
    """
    Access to the `photos` table owned by the submission subsystem.
    A photo belongs to a restaurant through its submission.
    """

    @abstractmethod
    def belongs_to(self, photo_id: str, restaurant_id: str) -> bool:
        """
        Whether the photo was submitted to the restaurant.

        Raises:
            PersistenceError: If the lookup fails
        """
        pass

    @abstractmethod
    def attach_menu_item(self, photo_id: str, restaurant_id: str, menu_item_id: str) -> None:
        """
        Set photos.menu_item_id, only for a photo of `restaurant_id`.

        Raises:
            PersistenceError: If the update fails or the photo belongs elsewhere
        """
        pass


class RestaurantAccessRepository(ABC):
    """Ownership lookups against `manager_users`."""

    @abstractmethod
    def is_owner(self, actor_id: str, restaurant_id: str) -> bool:
        """
        Raises:
            PersistenceError: If the lookup fails
        """
        pass
