"""Picking today's lunch.

The controller owns one state at a time and at most one pending task. Every
transition bumps a generation counter and cancels whatever task was pending, so
a late answer from the recommendation service, or a tick from an old spin, can
never overwrite a newer state.
"""

import asyncio
from enum import Enum
import logging
import random
from typing import AsyncIterator, Callable, Protocol

from domain.errors import MissingCredential, SelectionBusy
from domain.menu import Catalog
from domain.models import MenuItem, Recommendation


logger = logging.getLogger(__name__)


DEFAULT_CONDITION = "운동 후 체력 소모가 큼"
RANDOM_REASON = "오늘의 행운 메뉴입니다! 맛있게 드시고 득점하세요!"
DELAYED_REASON = (
    "AI 코치와 연결이 지연되고 있으나, 오늘 컨디션에는 이 메뉴가 최고입니다!"
)
ERROR_MESSAGE = "AI 코치와 연결하지 못했습니다. 잠시 후 다시 시도해 주세요."


class Mode(Enum):
    idle = "idle"
    random_spinning = "random_spinning"
    ai_thinking = "ai_thinking"
    result = "result"
    error = "error"


class Source(Enum):
    random = "random"
    ai = "ai"


class Idle:
    mode = Mode.idle

    def __repr__(self) -> str:
        return "<Idle>"


class RandomSpinning:
    mode = Mode.random_spinning

    def __init__(self, tick: int = 0) -> None:
        self.tick = tick

    def __repr__(self) -> str:
        return f"<RandomSpinning(tick={self.tick})>"


class AiThinking:
    mode = Mode.ai_thinking

    def __init__(self, condition: str) -> None:
        self.condition = condition

    def __repr__(self) -> str:
        return f"<AiThinking(condition={self.condition})>"


class Result:
    mode = Mode.result

    def __init__(self, item: MenuItem, reason: str, source: Source) -> None:
        self.item = item
        self.reason = reason
        self.source = source

    def __repr__(self) -> str:
        return f"<Result(item={self.item.id}, source={self.source.value})>"

    @property
    def is_ai_recommended(self) -> bool:
        return self.source is Source.ai


class Error:
    mode = Mode.error

    def __init__(self, message: str = ERROR_MESSAGE) -> None:
        self.message = message

    def __repr__(self) -> str:
        return "<Error>"


type SelectionState = Idle | RandomSpinning | AiThinking | Result | Error
type Listener = Callable[[SelectionState], None]


IDLE = Idle()


class Recommender(Protocol):
    async def recommend(
        self,
        condition: str,
        *,
        menu_names: list[str],
        api_key: str,
    ) -> Recommendation:
        ...


class SelectionSettings:
    def __init__(
        self,
        *,
        spin_ticks: int = 12,
        spin_interval: float = 0.15,
        settle_delay: float = 0.5,
        error_recovery_delay: float = 2.0,
        default_condition: str = DEFAULT_CONDITION,
        fallback_on_error: bool = False,
    ) -> None:
        if spin_ticks < 1:
            raise ValueError("spin_ticks must be at least 1.")
        self.spin_ticks = spin_ticks
        self.spin_interval = spin_interval
        self.settle_delay = settle_delay
        self.error_recovery_delay = error_recovery_delay
        self.default_condition = default_condition
        self.fallback_on_error = fallback_on_error


async def spin(
    catalog: Catalog,
    *,
    ticks: int,
    interval: float,
    rng: random.Random,
) -> AsyncIterator[MenuItem]:
    """Yield one uniformly random candidate per tick, `ticks` times."""
    for _ in range(ticks):
        await asyncio.sleep(interval)
        yield catalog.random_item(rng)


class SelectionController:
    def __init__(
        self,
        catalog: Catalog,
        *,
        recommender: Recommender,
        api_key: str | None = None,
        settings: SelectionSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.catalog = catalog
        self.recommender = recommender
        self.api_key = api_key
        self.settings = SelectionSettings() if settings is None else settings
        self._rng = random.Random() if rng is None else rng
        self._state: SelectionState = IDLE
        self._selected_id: str | None = None
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._version = 0
        self._changed = asyncio.Event()
        self._listeners: list[Listener] = []
        self.condition = ""

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selected_id(self) -> str | None:
        """Item currently highlighted. Display only, the outcome is in `Result`."""
        return self._selected_id

    @property
    def version(self) -> int:
        return self._version

    @property
    def busy(self) -> bool:
        return self._state.mode is not Mode.idle

    @property
    def pending_task(self) -> asyncio.Task[None] | None:
        if self._task is None or self._task.done():
            return None
        return self._task

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def wait_for_change(self, version: int) -> int:
        while self._version == version:
            await self._changed.wait()
        return self._version

    def start_random_pick(self) -> None:
        self.condition = ""
        self._start_spin()

    def _start_spin(self) -> None:
        self._begin(RandomSpinning(0), selected_id=self._selected_id)
        self._task = asyncio.create_task(self._run_spin(self._generation))

    def start_ai_recommendation(self, free_text: str = "") -> None:
        if self.busy:
            raise SelectionBusy(repr(self._state))
        if not self.api_key:
            raise MissingCredential("An API key is required for recommendations.")
        self.condition = free_text
        condition = free_text.strip() or self.settings.default_condition
        self._begin(AiThinking(condition), selected_id=None)
        self._task = asyncio.create_task(self._run_ai(self._generation, condition))

    def reset(self) -> None:
        self._begin(IDLE, selected_id=None)

    def _begin(self, state: SelectionState, *, selected_id: str | None) -> None:
        self._cancel_pending()
        self._generation += 1
        self._set_state(state, selected_id=selected_id)

    def _cancel_pending(self) -> None:
        task, self._task = self._task, None
        # The AI task falls back to a spin from inside itself.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _set_state(self, state: SelectionState, *, selected_id: str | None) -> None:
        self._state = state
        self._selected_id = selected_id
        self._version += 1
        logger.debug("Selection state %r (selected=%s)", state, selected_id)
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Selection listener failed on %r.", state)

    async def _run_spin(self, generation: int) -> None:
        candidate: MenuItem | None = None
        tick = 0
        async for candidate in spin(
            self.catalog,
            ticks=self.settings.spin_ticks,
            interval=self.settings.spin_interval,
            rng=self._rng,
        ):
            if generation != self._generation:
                return
            tick += 1
            self._set_state(RandomSpinning(tick), selected_id=candidate.id)

        # The last displayed candidate is the pick.
        assert candidate is not None
        await asyncio.sleep(self.settings.settle_delay)
        if generation != self._generation:
            return
        self._set_state(
            Result(candidate, RANDOM_REASON, Source.random),
            selected_id=candidate.id,
        )

    async def _run_ai(self, generation: int, condition: str) -> None:
        assert self.api_key is not None
        try:
            recommendation = await self.recommender.recommend(
                condition,
                menu_names=self.catalog.names(),
                api_key=self.api_key,
            )
        except Exception:
            if generation != self._generation:
                logger.info("Dropping failed recommendation for a stale selection.")
                return
            logger.exception("Recommendation failed.")
            await self._recover(generation)
            return

        if generation != self._generation:
            logger.warning(
                "Discarding stale recommendation %r.", recommendation.menu_name
            )
            return

        item = self.catalog.find_by_name(recommendation.menu_name)
        if item is None:
            logger.warning(
                "Recommended %r is not on the menu. Spinning instead.",
                recommendation.menu_name,
            )
            self._start_spin()
            return

        self._set_state(
            Result(item, recommendation.reason, Source.ai),
            selected_id=item.id,
        )

    async def _recover(self, generation: int) -> None:
        if self.settings.fallback_on_error:
            item = self.catalog.random_item(self._rng)
            self._set_state(
                Result(item, DELAYED_REASON, Source.ai), selected_id=item.id
            )
            return

        self._set_state(Error(), selected_id=None)
        await asyncio.sleep(self.settings.error_recovery_delay)
        if generation == self._generation:
            self._set_state(IDLE, selected_id=None)
