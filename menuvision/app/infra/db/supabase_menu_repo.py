from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from menuvision.app.domain.errors import PersistenceError
from menuvision.app.domain.models import (
    CandidateItem,
    MenuItem,
    MenuSource,
    SourceStatus,
    SourceType,
)
from menuvision.app.infra.db.base import (
    MenuItemRepository,
    MenuSourceRepository,
    PhotoRepository,
    RestaurantAccessRepository,
)

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (APIError, httpx.HTTPError, ConnectionError, TimeoutError)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _error_reason(error: Exception) -> str:
    message = getattr(error, "message", None)
    return str(message or error)


def _row_to_source(row: dict[str, Any]) -> MenuSource:
    return MenuSource(
        id=str(row["id"]),
        restaurant_id=str(row["restaurant_id"]),
        source_type=SourceType(str(row["source_type"])),
        status=SourceStatus(str(row["status"])),
        source_url=_safe_str(row.get("source_url")),
        file_path=_safe_str(row.get("file_path")),
        scraped_at=_parse_datetime(row.get("scraped_at")),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _row_to_item(row: dict[str, Any]) -> MenuItem:
    return MenuItem(
        id=str(row["id"]),
        restaurant_id=str(row["restaurant_id"]),
        name=str(row["name"]),
        category=_safe_str(row.get("category")),
        description=_safe_str(row.get("description")),
        price=_safe_str(row.get("price")),
    )


class SupabaseMenuSourceRepository(MenuSourceRepository):
    TABLE_NAME = "menu_sources"

    def __init__(self, client: Client):
        self._client = client

    def create_source(
        self,
        restaurant_id: str,
        source_type: SourceType,
        source_url: Optional[str] = None,
        file_path: Optional[str] = None,
        status: SourceStatus = SourceStatus.PENDING,
    ) -> MenuSource:
        data = {
            "restaurant_id": restaurant_id,
            "source_type": source_type.value,
            "source_url": source_url,
            "file_path": file_path,
            "status": status.value,
            "created_at": _now_utc().isoformat(),
        }

        try:
            result = self._client.table(self.TABLE_NAME).insert(data).execute()
        except _BACKEND_ERRORS as error:
            logger.error("Error creating menu source: restaurant=%s, error=%s", restaurant_id, error)
            raise PersistenceError("create_source", _error_reason(error)) from error

        if not result.data:
            raise PersistenceError("create_source", "insert returned no row")

        source = _row_to_source(result.data[0])
        logger.info(
            "Created menu source: id=%s, restaurant=%s, type=%s",
            source.id, restaurant_id, source_type.value,
        )
        return source

    def get_source(self, source_id: str, restaurant_id: str) -> MenuSource | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("id", source_id)
                .eq("restaurant_id", restaurant_id)
                .limit(1)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("get_source", _error_reason(error)) from error

        return _row_to_source(result.data[0]) if result.data else None

    def get_latest_source(self, restaurant_id: str) -> MenuSource | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("restaurant_id", restaurant_id)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("get_latest_source", _error_reason(error)) from error

        return _row_to_source(result.data[0]) if result.data else None

    def update_status(
        self,
        source_id: str,
        status: SourceStatus,
        scraped_at: datetime | None = None,
    ) -> None:
        update_data: dict[str, str] = {"status": status.value}
        if scraped_at is not None:
            update_data["scraped_at"] = scraped_at.isoformat()

        try:
            result = self._client.table(self.TABLE_NAME).update(update_data).eq("id", source_id).execute()
        except _BACKEND_ERRORS as error:
            raise PersistenceError(f"update_status({status.value})", _error_reason(error)) from error

        if not result.data:
            raise PersistenceError(f"update_status({status.value})", "no row updated")

        logger.debug("Menu source status written: id=%s, status=%s", source_id, status.value)


class SupabaseMenuItemRepository(MenuItemRepository):
    TABLE_NAME = "menu_items"
    CONFLICT_KEY = "restaurant_id,name"

    def __init__(self, client: Client):
        self._client = client

    def upsert_item(self, restaurant_id: str, item: CandidateItem) -> MenuItem:
        row = {"restaurant_id": restaurant_id, **item.to_dict()}

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .upsert(row, on_conflict=self.CONFLICT_KEY)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("upsert_item", _error_reason(error)) from error

        if not result.data:
            raise PersistenceError("upsert_item", f"no row returned for {item.name!r}")

        return _row_to_item(result.data[0])

    def list_items(self, restaurant_id: str) -> list[MenuItem]:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("restaurant_id", restaurant_id)
                .order("category")
                .order("name")
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("list_items", _error_reason(error)) from error

        return [_row_to_item(row) for row in (result.data or [])]

    def delete_item(self, restaurant_id: str, item_id: str) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .delete()
                .eq("id", item_id)
                .eq("restaurant_id", restaurant_id)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("delete_item", _error_reason(error)) from error

        deleted = bool(result.data)
        if deleted:
            logger.info("Menu item deleted: id=%s, restaurant=%s", item_id, restaurant_id)
        return deleted


class SupabasePhotoRepository(PhotoRepository):
    TABLE_NAME = "photos"

    def __init__(self, client: Client):
        self._client = client

    def belongs_to(self, photo_id: str, restaurant_id: str) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("id, submissions!inner(restaurant_id)")
                .eq("id", photo_id)
                .eq("submissions.restaurant_id", restaurant_id)
                .limit(1)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("photo_belongs_to", _error_reason(error)) from error

        return bool(result.data)

    def attach_menu_item(self, photo_id: str, restaurant_id: str, menu_item_id: str) -> None:
        if not self.belongs_to(photo_id, restaurant_id):
            logger.warning("Refusing cross-restaurant photo link: photo=%s, restaurant=%s", photo_id, restaurant_id)
            raise PersistenceError("attach_menu_item", f"photo {photo_id} does not belong to restaurant {restaurant_id}")

        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update({"menu_item_id": menu_item_id})
                .eq("id", photo_id)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            raise PersistenceError("attach_menu_item", _error_reason(error)) from error

        if not result.data:
            raise PersistenceError("attach_menu_item", f"photo {photo_id} not updated")


class SupabaseRestaurantAccessRepository(RestaurantAccessRepository):
    TABLE_NAME = "manager_users"

    def __init__(self, client: Client):
        self._client = client

    def is_owner(self, actor_id: str, restaurant_id: str) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("restaurant_id")
                .eq("manager_id", actor_id)
                .eq("restaurant_id", restaurant_id)
                .limit(1)
                .execute()
            )
        except _BACKEND_ERRORS as error:
            logger.error("Ownership check failed: actor=%s, restaurant=%s, error=%s", actor_id, restaurant_id, error)
            raise PersistenceError("is_owner", _error_reason(error)) from error

        return bool(result.data)
