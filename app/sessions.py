import logging
import uuid

from domain.ledger import OrderLedger
from domain.menu import Catalog
from domain.selection import Recommender, SelectionController, SelectionSettings


logger = logging.getLogger(__name__)


SESSION_ID_KEY = "lunch_session_id"
API_KEY_SESSION_KEY = "green_fc_api_key"


class LunchSession:
    def __init__(
        self,
        *,
        id: str,
        catalog: Catalog,
        recommender: Recommender,
        settings: SelectionSettings,
        api_key: str | None = None,
    ) -> None:
        self.id = id
        self.ledger = OrderLedger()
        self.controller = SelectionController(
            catalog,
            recommender=recommender,
            settings=settings,
        )
        self._store: dict[str, str] = {}
        if api_key:
            self.api_key = api_key

    def __repr__(self) -> str:
        return f"<LunchSession(id={self.id})>"

    @property
    def api_key(self) -> str | None:
        return self._store.get(API_KEY_SESSION_KEY)

    @api_key.setter
    def api_key(self, value: str) -> None:
        self._store[API_KEY_SESSION_KEY] = value
        self.controller.api_key = value

    def logout(self) -> None:
        self._store.pop(API_KEY_SESSION_KEY, None)
        self.controller.api_key = None
        self.controller.reset()


class SessionStore:
    """In-memory sessions, one per browser. Gone when the process stops."""

    def __init__(
        self,
        *,
        catalog: Catalog,
        recommender: Recommender,
        settings: SelectionSettings,
        api_key: str | None = None,
    ) -> None:
        self.catalog = catalog
        self.recommender = recommender
        self.settings = settings
        self.api_key = api_key
        self._sessions: dict[str, LunchSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, id: str | None) -> LunchSession | None:
        return None if id is None else self._sessions.get(id)

    def blank(self) -> LunchSession:
        """A session that is not stored. Nothing has been written yet."""
        return LunchSession(
            id=uuid.uuid4().hex,
            catalog=self.catalog,
            recommender=self.recommender,
            settings=self.settings,
            api_key=self.api_key,
        )

    def get_or_create(self, id: str | None) -> LunchSession:
        session = self.get(id)
        if session is not None:
            return session
        session = self.blank()
        self._sessions[session.id] = session
        logger.info("New session %s", session.id)
        return session

    def discard(self, id: str) -> None:
        session = self._sessions.pop(id, None)
        if session is not None:
            session.logout()
            logger.info("Dropped session %s", id)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.controller.reset()
        self._sessions.clear()
