from datetime import date

from jinja2 import Environment
from markupsafe import Markup

from domain.ledger import OrderLedger
from domain.menu import Catalog
from domain.models import MenuItem
from domain.selection import Error, Mode, Result, SelectionController
from domain.services import order_lines


DEFAULT_REASON = "운동 후 최고의 영양 보충이 될 것입니다!"


class View:
    template_name = ""

    def __init__(self, *, environment: Environment, oob: bool = False) -> None:
        self.env = environment
        self.oob = oob

    def render(self) -> str:
        return self.env.get_template(self.template_name).render(view=self)


class ResultView(View):
    template_name = "result.html"

    def __init__(
        self,
        result: Result | None,
        *,
        environment: Environment,
        oob: bool = False,
    ) -> None:
        super().__init__(environment=environment, oob=oob)
        self.result = result

    @property
    def item(self) -> MenuItem | None:
        return None if self.result is None else self.result.item

    @property
    def badge(self) -> str:
        if self.result is not None and self.result.is_ai_recommended:
            return "AI 코치 강력 추천"
        return "오늘의 베스트 초이스"

    @property
    def reason(self) -> str:
        if self.result is None or not self.result.reason:
            return DEFAULT_REASON
        return self.result.reason


class OrderSummary(View):
    template_name = "orders.html"

    def __init__(
        self,
        ledger: OrderLedger,
        catalog: Catalog,
        *,
        environment: Environment,
        oob: bool = False,
    ) -> None:
        super().__init__(environment=environment, oob=oob)
        self.ledger = ledger
        self.catalog = catalog

    @property
    def lines(self) -> list[tuple[MenuItem, int]]:
        return order_lines(self.ledger, self.catalog)

    @property
    def total(self) -> int:
        return self.ledger.total()


class MenuGrid(View):
    template_name = "menu-grid.html"

    def __init__(
        self,
        catalog: Catalog,
        ledger: OrderLedger,
        *,
        selected_id: str | None,
        environment: Environment,
        oob: bool = False,
    ) -> None:
        super().__init__(environment=environment, oob=oob)
        self.catalog = catalog
        self.ledger = ledger
        self.selected_id = selected_id

    @property
    def cards(self) -> list[tuple[MenuItem, int, bool]]:
        return [
            (item, self.ledger.count(item.id), item.id == self.selected_id)
            for item in self.catalog
        ]


class Controls(View):
    template_name = "controls.html"

    def __init__(
        self,
        controller: SelectionController,
        *,
        environment: Environment,
        oob: bool = False,
    ) -> None:
        super().__init__(environment=environment, oob=oob)
        self.controller = controller

    @property
    def mode(self) -> str:
        return self.controller.state.mode.value

    @property
    def busy(self) -> bool:
        return self.controller.busy

    @property
    def condition(self) -> str:
        return self.controller.condition

    @property
    def thinking(self) -> bool:
        return self.controller.state.mode is Mode.ai_thinking

    @property
    def status(self) -> str:
        match self.controller.state.mode:
            case Mode.random_spinning:
                return "메뉴를 고르는 중..."
            case Mode.ai_thinking:
                return "AI 코치가 고민하는 중..."
            case Mode.error if isinstance(self.controller.state, Error):
                return self.controller.state.message
            case _:
                return ""


def selection_fragments(
    controller: SelectionController,
    ledger: OrderLedger,
    *,
    environment: Environment,
) -> Markup:
    """Everything the page needs to follow the controller, as out of band swaps."""
    state = controller.state
    result = state if isinstance(state, Result) else None
    parts = [
        MenuGrid(
            controller.catalog,
            ledger,
            selected_id=controller.selected_id,
            environment=environment,
            oob=True,
        ).render(),
        Controls(controller, environment=environment, oob=True).render(),
        ResultView(result, environment=environment, oob=True).render(),
    ]
    return Markup("\n".join(parts))


def today() -> str:
    d = date.today()
    return f"{d.year}. {d.month}. {d.day}."
