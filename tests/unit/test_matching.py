from __future__ import annotations

from menuvision.app.domain.models import MenuItem
from menuvision.services.matching import find_matching_item, names_match

CATALOG = [
    MenuItem(id="i1", restaurant_id="r1", name="Steak Taco"),
    MenuItem(id="i2", restaurant_id="r1", name="Chicken Burrito"),
    MenuItem(id="i3", restaurant_id="r1", name="Burrito"),
]


class TestNamesMatch:
    def test_case_insensitive_equality(self) -> None:
        assert names_match("chicken burrito", "Chicken Burrito")

    def test_containment_is_symmetric(self) -> None:
        assert names_match("Burrito", "Chicken Burrito")
        assert names_match("Chicken Burrito", "Burrito")

    def test_unrelated_names_do_not_match(self) -> None:
        assert not names_match("Taco", "Burrito")

    def test_blank_names_never_match(self) -> None:
        assert not names_match("", "Burrito")
        assert not names_match("Burrito", "   ")


class TestFindMatchingItem:
    def test_first_match_in_catalog_order_wins(self) -> None:
        match = find_matching_item("Burrito", CATALOG)
        assert match is not None
        assert match.id == "i2"

    def test_no_match(self) -> None:
        assert find_matching_item("Quesadilla", CATALOG) is None

    def test_null_answer(self) -> None:
        assert find_matching_item(None, CATALOG) is None
