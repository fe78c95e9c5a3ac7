import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: Optional[str] = None


SessionCallback = Callable[[Optional[AuthSession]], None]


class SessionProvider(ABC):
    """What the sync layer needs from authentication; login flows live elsewhere."""

    @abstractmethod
    def current_session(self) -> Optional[AuthSession]:
        ...

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register a callback; returns an unsubscribe function."""

    @abstractmethod
    def sign_out(self) -> None:
        ...


class LocalSessionProvider(SessionProvider):
    """Session set directly by the operator (API sign-in endpoint or tests)."""

    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._callbacks: List[SessionCallback] = []

    def current_session(self) -> Optional[AuthSession]:
        return self._session

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback)

    def sign_in(self, user_id: str, email: Optional[str] = None) -> AuthSession:
        self._session = AuthSession(user_id=user_id, email=email)
        logger.info(f"Signed in as {user_id}")
        self._emit()
        return self._session

    def sign_out(self) -> None:
        if self._session is None:
            return
        logger.info(f"Signed out {self._session.user_id}")
        self._session = None
        self._emit()

    def _emit(self) -> None:
        for callback in list(self._callbacks):
            callback(self._session)


session_provider = LocalSessionProvider()


def get_session_provider() -> LocalSessionProvider:
    return session_provider
