from starlette.applications import Starlette
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.app import create_app
from app.config import Config

from conftest import VALID_API_KEY, StubRecommender


def make_app(
    api_key: str | None = VALID_API_KEY,
    *,
    llm: StubRecommender | None = None,
    **kwargs: object,
) -> Starlette:
    settings: dict[str, object] = {
        "openai_api_key": api_key,
        "spin_ticks": 3,
        "spin_interval": 0,
        "settle_delay": 0,
        "error_recovery_delay": 0.01,
    }
    settings.update(kwargs)
    llm = StubRecommender() if llm is None else llm
    return create_app(Config(**settings), llm=llm)  # type: ignore[arg-type]


def follow_selection(client: TestClient) -> list[str]:
    messages: list[str] = []
    with client.websocket_connect("/selection") as ws:
        while True:
            try:
                messages.append(ws.receive_text())
            except WebSocketDisconnect:
                break
    return messages


def test_healthz() -> None:
    with TestClient(make_app()) as client:
        assert client.get("/healthz").text == "ok"


def test_homepage_requires_key() -> None:
    with TestClient(make_app(api_key=None)) as client:
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/setup"
        assert "API 키 연결하기" in client.get("/setup").text


def test_setup_rejects_bad_key() -> None:
    with TestClient(make_app(api_key=None)) as client:
        resp = client.post("/setup", data={"api_key": "nope"})
        assert resp.status_code == 400
        assert "API 키를 확인할 수 없습니다" in resp.text


def test_setup_then_logout() -> None:
    with TestClient(make_app(api_key=None)) as client:
        resp = client.post(
            "/setup", data={"api_key": VALID_API_KEY}, follow_redirects=False
        )
        assert resp.status_code == 303
        home = client.get("/")
        assert home.status_code == 200
        assert "김치찌개" in home.text
        assert "무엇을 먹을까요?" in home.text

        client.post("/logout", follow_redirects=False)
        assert client.get("/", follow_redirects=False).status_code == 303


def test_orders() -> None:
    with TestClient(make_app()) as client:
        client.get("/")
        client.post("/orders/kimchi/increment")
        resp = client.post("/orders/kimchi/increment")
        assert resp.status_code == 200
        assert 'id="orders"' in resp.text
        assert "<strong>2<small>" in resp.text

        resp = client.post("/orders/kimchi/decrement")
        assert "<strong>1<small>" in resp.text

        resp = client.post("/orders/clear")
        assert "아직 주문이 없습니다" in resp.text


def test_decrement_empty_is_fine() -> None:
    with TestClient(make_app()) as client:
        resp = client.post("/orders/dongtae/decrement")
        assert resp.status_code == 200
        assert "아직 주문이 없습니다" in resp.text


def test_unknown_item() -> None:
    with TestClient(make_app()) as client:
        assert client.post("/orders/pizza/increment").status_code == 404


def test_random_pick_streams_result_and_can_be_ordered() -> None:
    with TestClient(make_app()) as client:
        resp = client.post("/pick/random")
        assert resp.status_code == 200
        assert 'ws-connect="/selection"' in resp.text

        messages = follow_selection(client)
        assert "오늘의 베스트 초이스" in messages[-2]
        assert messages[-1] == '<div id="selection-ws" hx-swap-oob="true"></div>'

        resp = client.post("/selection/add")
        assert "<strong>1<small>" in resp.text
        assert "overlay" not in resp.text


def test_ai_pick_streams_recommendation() -> None:
    with TestClient(make_app()) as client:
        resp = client.post("/pick/ai", data={"condition": "비가 와요"})
        assert resp.status_code == 200

        messages = follow_selection(client)
        assert "AI 코치 강력 추천" in messages[-2]
        assert "test-reason" in messages[-2]
        assert "김치찌개" in messages[-2]

        resp = client.post("/selection/reset")
        assert resp.status_code == 200
        assert "overlay" not in resp.text


def test_ai_pick_while_spinning_is_refused() -> None:
    with TestClient(make_app(spin_interval=10)) as client:
        client.post("/pick/random")
        resp = client.post("/pick/ai", data={"condition": ""})
        assert resp.status_code == 409


def test_ai_pick_without_key_redirects_htmx() -> None:
    with TestClient(make_app(api_key=None)) as client:
        resp = client.post(
            "/pick/ai",
            data={"condition": ""},
            headers={"HX-Request": "true"},
        )
        assert resp.status_code == 401
        assert resp.headers["HX-Redirect"] == "/setup"


def test_homepage_without_cookie_stores_no_session() -> None:
    for api_key in (None, VALID_API_KEY):
        app = make_app(api_key=api_key)
        with TestClient(app) as client:
            for _ in range(20):
                client.cookies.clear()
                client.get("/", follow_redirects=False)
            assert len(app.state.sessions) == 0


def test_logout_drops_session() -> None:
    app = make_app(api_key=None)
    with TestClient(app) as client:
        client.post("/setup", data={"api_key": VALID_API_KEY})
        client.post("/orders/kimchi/increment")
        assert len(app.state.sessions) == 1

        client.post("/logout", follow_redirects=False)
        assert len(app.state.sessions) == 0
        assert client.get("/", follow_redirects=False).status_code == 303
        assert len(app.state.sessions) == 0


def test_selection_without_session_closes() -> None:
    app = make_app()
    with TestClient(app) as client:
        messages = follow_selection(client)
        assert messages == ['<div id="selection-ws" hx-swap-oob="true"></div>']
        assert len(app.state.sessions) == 0


def test_condition_survives_failed_recommendation() -> None:
    llm = StubRecommender(error=RuntimeError("boom"))
    with TestClient(make_app(llm=llm)) as client:
        resp = client.post("/pick/ai", data={"condition": "비가 와요"})
        assert ">비가 와요</textarea>" in resp.text

        messages = follow_selection(client)
        assert ">비가 와요</textarea>" in messages[-2]
        assert "disabled" not in messages[-2].split("</textarea>")[0]
