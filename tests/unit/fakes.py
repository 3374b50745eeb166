from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from menuvision.app.domain.errors import FetchError, PersistenceError
from menuvision.app.domain.models import (
    CandidateItem,
    ImageInput,
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
from menuvision.services.fetcher import ContentAcquirer
from menuvision.services.gemini_client import LanguageModelClient


class MenuSourceRepositoryStub(MenuSourceRepository):
    def __init__(self) -> None:
        self.sources: dict[str, MenuSource] = {}
        self.status_history: list[tuple[str, SourceStatus]] = []
        self.fail_on_status: set[SourceStatus] = set()
        self._next_id = 1

    def add(self, source: MenuSource) -> MenuSource:
        self.sources[source.id] = source
        return source

    def create_source(
        self,
        restaurant_id: str,
        source_type: SourceType,
        source_url: Optional[str] = None,
        file_path: Optional[str] = None,
        status: SourceStatus = SourceStatus.PENDING,
    ) -> MenuSource:
        source = MenuSource(
            id=f"source-{self._next_id}",
            restaurant_id=restaurant_id,
            source_type=source_type,
            status=status,
            source_url=source_url,
            file_path=file_path,
            created_at=datetime(2024, 1, 15, 12, self._next_id),
        )
        self._next_id += 1
        return self.add(source)

    def get_source(self, source_id: str, restaurant_id: str) -> Optional[MenuSource]:
        source = self.sources.get(source_id)
        if source is None or source.restaurant_id != restaurant_id:
            return None
        return source

    def get_latest_source(self, restaurant_id: str) -> Optional[MenuSource]:
        owned = [s for s in self.sources.values() if s.restaurant_id == restaurant_id]
        if not owned:
            return None
        return max(owned, key=lambda s: s.created_at or datetime.min)

    def update_status(
        self,
        source_id: str,
        status: SourceStatus,
        scraped_at: Optional[datetime] = None,
    ) -> None:
        if status in self.fail_on_status:
            raise PersistenceError("update_status", f"simulated failure writing {status.value}")
        source = self.sources[source_id]
        source.status = status
        if scraped_at is not None:
            source.scraped_at = scraped_at
        self.status_history.append((source_id, status))


class MenuItemRepositoryStub(MenuItemRepository):
    def __init__(self, items: Sequence[MenuItem] = ()) -> None:
        self.rows: dict[tuple[str, str], MenuItem] = {
            (item.restaurant_id, item.name): item for item in items
        }
        self.failing_names: set[str] = set()
        self.fail_reads = False
        self.upsert_calls = 0
        self._next_id = len(self.rows) + 1

    def upsert_item(self, restaurant_id: str, item: CandidateItem) -> MenuItem:
        self.upsert_calls += 1
        if item.name in self.failing_names:
            raise PersistenceError("upsert_item", f"simulated failure for {item.name}")

        existing = self.rows.get((restaurant_id, item.name))
        item_id = existing.id if existing else f"item-{self._next_id}"
        if existing is None:
            self._next_id += 1
        row = MenuItem(
            id=item_id,
            restaurant_id=restaurant_id,
            name=item.name,
            category=item.category,
            description=item.description,
            price=item.price,
        )
        self.rows[(restaurant_id, item.name)] = row
        return row

    def list_items(self, restaurant_id: str) -> list[MenuItem]:
        if self.fail_reads:
            raise PersistenceError("list_items", "simulated read failure")
        owned = [item for (rid, _), item in self.rows.items() if rid == restaurant_id]
        return sorted(owned, key=lambda item: (item.category or "", item.name))

    def delete_item(self, restaurant_id: str, item_id: str) -> bool:
        for key, item in list(self.rows.items()):
            if key[0] == restaurant_id and item.id == item_id:
                del self.rows[key]
                return True
        return False


class PhotoRepositoryStub(PhotoRepository):
    """`photos` maps photo id to the restaurant it was submitted to."""

    def __init__(self, photos: Optional[dict[str, str]] = None) -> None:
        self.photos = photos if photos is not None else {"p1": "r1"}
        self.links: dict[str, str] = {}
        self.fail_writes = False
        self.fail_lookups = False

    def belongs_to(self, photo_id: str, restaurant_id: str) -> bool:
        if self.fail_lookups:
            raise PersistenceError("photo_belongs_to", "simulated lookup failure")
        return self.photos.get(photo_id) == restaurant_id

    def attach_menu_item(self, photo_id: str, restaurant_id: str, menu_item_id: str) -> None:
        if self.fail_writes:
            raise PersistenceError("attach_menu_item", "simulated write failure")
        if self.photos.get(photo_id) != restaurant_id:
            raise PersistenceError("attach_menu_item", f"photo {photo_id} does not belong to restaurant {restaurant_id}")
        self.links[photo_id] = menu_item_id


class RestaurantAccessStub(RestaurantAccessRepository):
    def __init__(self, owners: Optional[dict[str, set[str]]] = None) -> None:
        self.owners = owners or {}
        self.fail_lookups = False

    def is_owner(self, actor_id: str, restaurant_id: str) -> bool:
        if self.fail_lookups:
            raise PersistenceError("is_owner", "simulated lookup failure")
        return restaurant_id in self.owners.get(actor_id, set())


class LanguageModelStub(LanguageModelClient):
    """Returns queued answers in order; an Exception instance is raised instead."""

    def __init__(self, answers: Sequence[object] = ()) -> None:
        self.answers: list[object] = list(answers)
        self.calls: list[dict] = []

    def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        images: Sequence[ImageInput] = (),
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "images": list(images),
                "model": model,
            }
        )
        if not self.answers:
            raise AssertionError("LanguageModelStub ran out of answers")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FetcherStub(ContentAcquirer):
    def __init__(
        self,
        pages: Optional[dict[str, str]] = None,
        images: Optional[dict[str, ImageInput]] = None,
    ) -> None:
        self.pages = pages or {}
        self.images = images or {}
        self.acquired: list[str] = []
        self.image_requests: list[str] = []

    def acquire(self, url: str) -> str:
        self.acquired.append(url)
        if url not in self.pages:
            raise FetchError(url, "HTTP 404 Not Found", status_code=404)
        return self.pages[url]

    def fetch_image(self, url: str) -> ImageInput:
        self.image_requests.append(url)
        if url not in self.images:
            raise FetchError(url, "HTTP 403 Forbidden", status_code=403)
        return self.images[url]
