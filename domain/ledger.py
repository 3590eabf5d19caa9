class OrderLedger:
    """Order counts per menu item id.

    Only positive counts are stored. An item whose count drops to zero is removed.
    """

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}

    def __repr__(self) -> str:
        return f"<OrderLedger(total={self.total()}, entries={len(self._counts)})>"

    def __len__(self) -> int:
        return len(self._counts)

    def increment(self, item_id: str) -> int:
        count = self._counts.get(item_id, 0) + 1
        self._counts[item_id] = count
        return count

    def decrement(self, item_id: str) -> int:
        count = max(0, self._counts.get(item_id, 0) - 1)
        if count == 0:
            self._counts.pop(item_id, None)
        else:
            self._counts[item_id] = count
        return count

    def clear(self) -> None:
        self._counts.clear()

    def count(self, item_id: str) -> int:
        return self._counts.get(item_id, 0)

    def total(self) -> int:
        return sum(self._counts.values())

    def items(self) -> list[tuple[str, int]]:
        return list(self._counts.items())

    def to_dict(self) -> dict[str, int]:
        return dict(self._counts)
