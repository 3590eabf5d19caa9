import asyncio

import pytest

from domain.menu import Catalog
from domain.models import Recommendation
from domain.selection import SelectionController, SelectionSettings


VALID_API_KEY = "sk-test-0123456789abcdefghij"


class StubRecommender:
    def __init__(
        self,
        menu_name: str = "김치찌개",
        reason: str = "test-reason",
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.menu_name = menu_name
        self.reason = reason
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, list[str], str]] = []

    async def recommend(
        self,
        condition: str,
        *,
        menu_names: list[str],
        api_key: str,
    ) -> Recommendation:
        self.calls.append((condition, menu_names, api_key))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return Recommendation(menu_name=self.menu_name, reason=self.reason)

    async def validate_api_key(self, api_key: str) -> bool:
        return api_key == VALID_API_KEY


def fast_settings(**kwargs: object) -> SelectionSettings:
    defaults: dict[str, object] = {
        "spin_ticks": 5,
        "spin_interval": 0,
        "settle_delay": 0,
        "error_recovery_delay": 0.01,
    }
    defaults.update(kwargs)
    return SelectionSettings(**defaults)  # type: ignore[arg-type]


async def settle(controller: SelectionController, timeout: float = 2) -> None:
    async with asyncio.timeout(timeout):
        while (task := controller.pending_task) is not None:
            await asyncio.wait([task])


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.default()


@pytest.fixture
def recommender() -> StubRecommender:
    return StubRecommender()
