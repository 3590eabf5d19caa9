import json
import logging
from pathlib import Path
import random
from typing import Iterable, Iterator, Self
from urllib.parse import quote

from domain.errors import MenuItemNotFound
from domain.models import MenuItem


logger = logging.getLogger(__name__)


def proxy_image_url(url: str) -> str:
    return (
        f"https://wsrv.nl/?url={quote(url, safe='')}"
        "&w=600&h=600&fit=cover&output=webp&q=80"
    )


MENU_ITEMS: tuple[MenuItem, ...] = (
    MenuItem(
        id="sundubu",
        name="순두부찌개",
        image=proxy_image_url(
            "https://images.unsplash.com/photo-1583000292276-646ca0572b93"
            "?auto=format&fit=crop&q=80&w=600"
        ),
        color="bg-red-500",
        tags=["매콤", "부드러움", "단백질"],
    ),
    MenuItem(
        id="kimchi",
        name="김치찌개",
        image=proxy_image_url(
            "https://images.unsplash.com/photo-1541696432-82c6da8ce7bf"
            "?auto=format&fit=crop&q=80&w=600"
        ),
        color="bg-orange-500",
        tags=["얼큰", "한국인의맛", "든든"],
    ),
    MenuItem(
        id="dongtae",
        name="동태탕",
        image=proxy_image_url(
            "https://images.unsplash.com/photo-1559737558-2f5a35f4523b"
            "?auto=format&fit=crop&q=80&w=600"
        ),
        color="bg-blue-500",
        tags=["시원", "해산물", "피로회복"],
    ),
    MenuItem(
        id="seonji",
        name="선지해장국",
        image=proxy_image_url(
            "https://images.unsplash.com/photo-1547592166-23ac45744acd"
            "?auto=format&fit=crop&q=80&w=600"
        ),
        color="bg-red-900",
        tags=["철분왕", "에너지", "전통의맛"],
    ),
)


class Catalog:
    """The fixed, ordered menu for the lifetime of the process."""

    def __init__(self, items: Iterable[MenuItem]) -> None:
        self._items = tuple(items)
        if not self._items:
            raise ValueError("A catalog needs at least one item.")
        self._by_id = {item.id: item for item in self._items}
        if len(self._by_id) != len(self._items):
            raise ValueError("Duplicate menu item ids.")
        self._by_name = {item.name: item for item in self._items}

    @classmethod
    def default(cls) -> Self:
        return cls(MENU_ITEMS)

    @classmethod
    def from_file(cls, path: Path) -> Self:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of menu items in {path}.")
        logger.info("Loaded %d menu items from %s", len(data), path)
        return cls(MenuItem.from_dict(d) for d in data)

    def __iter__(self) -> Iterator[MenuItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, MenuItem):
            return self._by_id.get(item.id) == item
        return item in self._by_id

    def get(self, id: str) -> MenuItem:
        try:
            return self._by_id[id]
        except KeyError:
            raise MenuItemNotFound(id) from None

    def find_by_name(self, name: str) -> MenuItem | None:
        # Exact and case-sensitive.
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [item.name for item in self._items]

    def random_item(self, rng: random.Random | None = None) -> MenuItem:
        rng = random.Random() if rng is None else rng
        return rng.choice(self._items)
