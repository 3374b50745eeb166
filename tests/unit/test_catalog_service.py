from __future__ import annotations

import pytest

from menuvision.app.domain.errors import InvalidMenuItemError
from menuvision.app.domain.models import CandidateItem
from menuvision.app.services.catalog_service import CatalogService
from tests.unit.fakes import MenuItemRepositoryStub

BATCH = [
    CandidateItem(name="Tacos", category="main", price="$3"),
    CandidateItem(name="Burritos", category="main", price="$8"),
    CandidateItem(name="Horchata", category="drink", price="$2"),
]


class TestUpsertItems:
    def test_writes_every_item(self) -> None:
        repo = MenuItemRepositoryStub()
        assert CatalogService(repo).upsert_items("r1", BATCH) == 3
        assert len(repo.list_items("r1")) == 3

    def test_same_batch_twice_keeps_one_row_per_name(self) -> None:
        repo = MenuItemRepositoryStub()
        service = CatalogService(repo)

        service.upsert_items("r1", BATCH)
        first_ids = {item.name: item.id for item in repo.list_items("r1")}
        service.upsert_items("r1", BATCH)

        assert {item.name: item.id for item in repo.list_items("r1")} == first_ids

    def test_one_failing_item_does_not_abort_the_batch(self) -> None:
        repo = MenuItemRepositoryStub()
        repo.failing_names = {"Burritos"}

        written = CatalogService(repo).upsert_items("r1", BATCH)

        assert written == 2
        assert {item.name for item in repo.list_items("r1")} == {"Tacos", "Horchata"}

    def test_duplicate_names_in_a_batch_keep_the_later_one(self) -> None:
        repo = MenuItemRepositoryStub()
        batch = [CandidateItem(name="Tacos", price="$3"), CandidateItem(name="Tacos", price="$4")]

        assert CatalogService(repo).upsert_items("r1", batch) == 1
        assert repo.list_items("r1")[0].price == "$4"

    def test_restaurants_are_isolated(self) -> None:
        repo = MenuItemRepositoryStub()
        service = CatalogService(repo)
        service.upsert_items("r1", BATCH)
        service.upsert_items("r2", BATCH[:1])

        assert len(repo.list_items("r1")) == 3
        assert len(repo.list_items("r2")) == 1


class TestManualEdits:
    def test_save_item_trims_fields(self) -> None:
        repo = MenuItemRepositoryStub()
        item = CatalogService(repo).save_item("r1", "  Flan ", category=" dessert ", description="   ", price="$4")

        assert item.name == "Flan"
        assert item.category == "dessert"
        assert item.description is None

    def test_blank_name_is_rejected(self) -> None:
        with pytest.raises(InvalidMenuItemError):
            CatalogService(MenuItemRepositoryStub()).save_item("r1", "   ")

    def test_delete_is_scoped_to_restaurant(self) -> None:
        repo = MenuItemRepositoryStub()
        service = CatalogService(repo)
        saved = service.save_item("r1", "Flan")

        assert service.delete_item("r2", saved.id) is False
        assert service.delete_item("r1", saved.id) is True
        assert service.list_items("r1") == []
