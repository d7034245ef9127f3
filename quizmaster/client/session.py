"""Client-side session state.

One ``SessionState`` is owned by each ``QuizMasterClient``. Observers
subscribe to sign-in / sign-out changes and get back an unsubscribe
callable; ``close()`` drops every observer when the client shuts down.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from quizmaster.schemas.user import Role, UserRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    access_token: str
    user: UserRead


Listener = Callable[[Session | None], None]


class SessionState:
    def __init__(self) -> None:
        self._session: Session | None = None
        self._listeners: list[Listener] = []

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> UserRead | None:
        return self._session.user if self._session else None

    @property
    def is_professor(self) -> bool:
        return self.user is not None and self.user.role == Role.PROFESSOR

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; call the returned function to unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set(self, session: Session) -> None:
        self._session = session
        self._notify()

    def clear(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._notify()

    def auth_headers(self) -> dict[str, str]:
        if self._session is None:
            return {}
        return {"Authorization": f"Bearer {self._session.access_token}"}

    def close(self) -> None:
        self._listeners.clear()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("Session listener %r failed", listener)
