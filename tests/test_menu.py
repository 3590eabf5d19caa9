import json
from pathlib import Path
import random

import pytest

from domain.errors import MenuItemNotFound
from domain.menu import MENU_ITEMS, Catalog
from domain.models import MenuItem


def test_default_catalog(catalog: Catalog) -> None:
    assert len(catalog) == 4
    assert catalog.names() == ["순두부찌개", "김치찌개", "동태탕", "선지해장국"]
    assert catalog.get("kimchi").name == "김치찌개"
    assert all(item.image.startswith("https://wsrv.nl/?url=") for item in catalog)


def test_get_unknown_raises(catalog: Catalog) -> None:
    with pytest.raises(MenuItemNotFound):
        catalog.get("pizza")


def test_find_by_name_is_exact(catalog: Catalog) -> None:
    assert catalog.find_by_name("김치찌개") == catalog.get("kimchi")
    assert catalog.find_by_name(" 김치찌개") is None
    assert catalog.find_by_name("피자") is None


def test_contains(catalog: Catalog) -> None:
    assert "kimchi" in catalog
    assert MENU_ITEMS[0] in catalog
    assert "pizza" not in catalog


def test_random_item_is_from_catalog(catalog: Catalog) -> None:
    rng = random.Random(7)
    for _ in range(50):
        assert catalog.random_item(rng) in catalog


@pytest.mark.parametrize(
    "items",
    (
        [],
        [MenuItem(id="a", name="A"), MenuItem(id="a", name="B")],
    ),
)
def test_invalid_catalogs(items: list[MenuItem]) -> None:
    with pytest.raises(ValueError):
        Catalog(items)


def test_from_file(tmp_path: Path) -> None:
    path = tmp_path / "menu.json"
    path.write_text(
        json.dumps(
            [
                {"id": "bibim", "name": "비빔밥", "tags": ["건강"]},
                {"id": "naeng", "name": "냉면", "color": "bg-blue-300"},
            ]
        ),
        encoding="utf-8",
    )
    catalog = Catalog.from_file(path)
    assert catalog.names() == ["비빔밥", "냉면"]
    assert catalog.get("bibim").tags == ("건강",)
    assert catalog.get("naeng").color == "bg-blue-300"
