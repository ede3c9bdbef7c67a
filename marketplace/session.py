# marketplace/session.py
from typing import Optional

from .errors import NotLoggedInError


class SessionGate:
    """LoggedOut until a username is set; the username is the whole session."""

    def __init__(self, username: Optional[str] = None):
        self._username = username or None

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def logged_in(self) -> bool:
        return self._username is not None

    @property
    def user_initial(self) -> str:
        return self._username[:1].upper() if self._username else ""

    def enter(self, username: str) -> None:
        self._username = username

    def leave(self) -> None:
        self._username = None

    def require(self) -> str:
        if self._username is None:
            raise NotLoggedInError("login required")
        return self._username
