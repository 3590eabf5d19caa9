import contextlib
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from jinja2 import Environment, FileSystemLoader, select_autoescape
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.requests import HTTPConnection, Request
from starlette.responses import (
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles
from starlette.websockets import WebSocket

from app import config
from app.html.views import (
    Controls,
    MenuGrid,
    OrderSummary,
    ResultView,
    selection_fragments,
    today,
)
from app.sessions import SESSION_ID_KEY, LunchSession, SessionStore
from domain.errors import MenuItemNotFound, MissingCredential, SelectionBusy
from domain.llm_service import LLMService
from domain.menu import Catalog
from domain.selection import Mode, Result
from domain.services import add_result_to_order


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def aHTMLResponse(route: Callable[..., Awaitable[str | tuple[str, int]]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> HTMLResponse:
        resp = await route(*args, **kwargs)
        if not isinstance(resp, tuple):
            html, code = resp, 200
        else:
            html, code = resp
        return HTMLResponse(html, status_code=code)

    return wrapper


def lunch_session(conn: HTTPConnection) -> LunchSession:
    store: SessionStore = conn.app.state.sessions
    session = store.get_or_create(conn.session.get(SESSION_ID_KEY))
    conn.session[SESSION_ID_KEY] = session.id
    return session


def existing_session(conn: HTTPConnection) -> LunchSession | None:
    store: SessionStore = conn.app.state.sessions
    return store.get(conn.session.get(SESSION_ID_KEY))


def templates(conn: HTTPConnection) -> Environment:
    return conn.app.state.templates


def orders_fragment(
    conn: HTTPConnection, session: LunchSession, *, oob: bool = False
) -> str:
    env = templates(conn)
    catalog: Catalog = conn.app.state.catalog
    return "\n".join(
        [
            OrderSummary(
                session.ledger, catalog, environment=env, oob=oob
            ).render(),
            MenuGrid(
                catalog,
                session.ledger,
                selected_id=session.controller.selected_id,
                environment=env,
                oob=True,
            ).render(),
        ]
    )


async def homepage(request: Request) -> Response:
    session = existing_session(request)
    if session is None:
        store: SessionStore = request.app.state.sessions
        session = store.blank()
    if session.api_key is None:
        return RedirectResponse("/setup", status_code=303)

    env = templates(request)
    catalog: Catalog = request.app.state.catalog
    controller = session.controller
    state = controller.state
    html = env.get_template("index.html").render(
        today=today(),
        controls=Controls(controller, environment=env).render(),
        orders=OrderSummary(session.ledger, catalog, environment=env).render(),
        menu_grid=MenuGrid(
            catalog,
            session.ledger,
            selected_id=controller.selected_id,
            environment=env,
        ).render(),
        result=ResultView(
            state if isinstance(state, Result) else None, environment=env
        ).render(),
        selection_ws=(
            env.get_template("selection-ws.html").render() if controller.busy else ""
        ),
    )
    return HTMLResponse(html)


async def setup(request: Request) -> Response:
    env = templates(request)
    match request.method.lower():
        case "get":
            return HTMLResponse(env.get_template("setup.html").render(message=None))
        case "post":
            async with request.form() as form:
                api_key = str(form.get("api_key", "")).strip()
            llm: LLMService = request.app.state.llm
            if not await llm.validate_api_key(api_key):
                html = env.get_template("setup.html").render(
                    message="API 키를 확인할 수 없습니다. 다시 입력해 주세요."
                )
                return HTMLResponse(html, status_code=400)
            session = lunch_session(request)
            session.api_key = api_key
            logger.info("API key set for session %s", session.id)
            return RedirectResponse("/", status_code=303)
        case _:
            raise ValueError("Unsupported method.")


async def logout(request: Request) -> RedirectResponse:
    session = existing_session(request)
    if session is not None:
        store: SessionStore = request.app.state.sessions
        store.discard(session.id)
    request.session.pop(SESSION_ID_KEY, None)
    return RedirectResponse("/setup", status_code=303)


@aHTMLResponse
async def increment(request: Request) -> str:
    session = lunch_session(request)
    item = request.app.state.catalog.get(request.path_params["id"])
    session.ledger.increment(item.id)
    return orders_fragment(request, session)


@aHTMLResponse
async def decrement(request: Request) -> str:
    session = lunch_session(request)
    item = request.app.state.catalog.get(request.path_params["id"])
    session.ledger.decrement(item.id)
    return orders_fragment(request, session)


@aHTMLResponse
async def clear_orders(request: Request) -> str:
    # The page asks for confirmation before posting here.
    session = lunch_session(request)
    session.ledger.clear()
    return orders_fragment(request, session)


def selection_started(conn: HTTPConnection, session: LunchSession) -> str:
    env = templates(conn)
    return "\n".join(
        [
            env.get_template("selection-ws.html").render(),
            Controls(session.controller, environment=env, oob=True).render(),
        ]
    )


@aHTMLResponse
async def pick_random(request: Request) -> str:
    session = lunch_session(request)
    session.controller.start_random_pick()
    return selection_started(request, session)


@aHTMLResponse
async def pick_ai(request: Request) -> str:
    session = lunch_session(request)
    async with request.form() as form:
        condition = str(form.get("condition", ""))
    session.controller.start_ai_recommendation(condition)
    return selection_started(request, session)


async def selection(ws: WebSocket) -> None:
    """Streams the selection to the page until it settles."""
    session = existing_session(ws)
    await ws.accept()
    if session is None:
        await ws.send_text('<div id="selection-ws" hx-swap-oob="true"></div>')
        await ws.close()
        return

    controller = session.controller
    env = templates(ws)

    while True:
        version = controller.version
        await ws.send_text(
            selection_fragments(controller, session.ledger, environment=env)
        )
        if controller.state.mode in (Mode.idle, Mode.result):
            break
        await controller.wait_for_change(version)

    await ws.send_text('<div id="selection-ws" hx-swap-oob="true"></div>')
    await ws.close()


def selection_settled(conn: HTTPConnection, session: LunchSession) -> str:
    env = templates(conn)
    return "\n".join(
        [
            ResultView(None, environment=env).render(),
            Controls(session.controller, environment=env, oob=True).render(),
            orders_fragment(conn, session, oob=True),
        ]
    )


@aHTMLResponse
async def reset_selection(request: Request) -> str:
    session = lunch_session(request)
    session.controller.reset()
    return selection_settled(request, session)


@aHTMLResponse
async def add_selection(request: Request) -> str:
    session = lunch_session(request)
    item = add_result_to_order(controller=session.controller, ledger=session.ledger)
    if item is not None:
        logger.info("Ordered %s from selection", item.id)
    return selection_settled(request, session)


async def healthz(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


async def menu_item_not_found(request: Request, exc: Exception) -> HTMLResponse:
    return HTMLResponse(f"Unknown menu item: {exc}", status_code=404)


async def missing_credential(request: Request, exc: Exception) -> Response:
    if request.headers.get("HX-Request"):
        return HTMLResponse("", status_code=401, headers={"HX-Redirect": "/setup"})
    return RedirectResponse("/setup", status_code=303)


async def selection_busy(request: Request, exc: Exception) -> HTMLResponse:
    return HTMLResponse("이미 메뉴를 고르는 중입니다.", status_code=409)


def create_app(
    conf: config.Config | None = None,
    *,
    llm: LLMService | None = None,
    catalog: Catalog | None = None,
) -> Starlette:
    conf = config.Config() if conf is None else conf
    configure_logging(conf.log_level)

    if catalog is None:
        if conf.menu_path is None:
            catalog = Catalog.default()
        else:
            catalog = Catalog.from_file(conf.menu_path)
    llm = LLMService(model=conf.core_model) if llm is None else llm
    sessions = SessionStore(
        catalog=catalog,
        recommender=llm,
        settings=conf.selection_settings(),
        api_key=conf.openai_api_key,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Serving %d menu items (%s)", len(catalog), conf.env.value)
        yield
        sessions.close_all()

    app = Starlette(
        debug=True if conf.env == config.Env.local else False,
        routes=[
            Route("/", homepage),
            Route("/setup", setup, methods=["GET", "POST"]),
            Route("/logout", logout, methods=["POST"]),
            Route("/orders/clear", clear_orders, methods=["POST"]),
            Route("/orders/{id}/increment", increment, methods=["POST"]),
            Route("/orders/{id}/decrement", decrement, methods=["POST"]),
            Route("/pick/random", pick_random, methods=["POST"]),
            Route("/pick/ai", pick_ai, methods=["POST"]),
            WebSocketRoute("/selection", selection),
            Route("/selection/reset", reset_selection, methods=["POST"]),
            Route("/selection/add", add_selection, methods=["POST"]),
            Route("/healthz", healthz),
            Mount("/assets", StaticFiles(directory=conf.assets_dir), name="assets"),
        ],
        middleware=[Middleware(SessionMiddleware, secret_key=conf.session_secret)],
        exception_handlers={
            MenuItemNotFound: menu_item_not_found,
            MissingCredential: missing_credential,
            SelectionBusy: selection_busy,
        },
        lifespan=lifespan,
    )

    app.state.config = conf
    app.state.catalog = catalog
    app.state.llm = llm
    app.state.sessions = sessions
    app.state.templates = Environment(
        loader=FileSystemLoader(conf.html_dir),
        autoescape=select_autoescape(),
    )
    return app


app = create_app()
