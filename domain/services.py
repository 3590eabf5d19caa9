from domain.ledger import OrderLedger
from domain.menu import Catalog
from domain.models import MenuItem
from domain.selection import Result, SelectionController


def order_lines(ledger: OrderLedger, catalog: Catalog) -> list[tuple[MenuItem, int]]:
    lines: list[tuple[MenuItem, int]] = []
    for item_id, count in ledger.items():
        if item_id in catalog:
            lines.append((catalog.get(item_id), count))
    return lines


def add_result_to_order(
    *,
    controller: SelectionController,
    ledger: OrderLedger,
) -> MenuItem | None:
    """Order the picked item and go back to idle. Nothing happens unless a result
    is showing."""
    state = controller.state
    if not isinstance(state, Result):
        return None
    item = state.item
    ledger.increment(item.id)
    controller.reset()
    return item
