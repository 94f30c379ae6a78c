"""
Accounts

Signed-in user, role and credit balance consulted before a report is
generated. Hosted identity backends plug in through AccountProvider;
InMemoryAccountProvider serves local use and tests.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
import logging
import threading

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class UserSession:
    """An authenticated user."""

    user_id: str
    email: str = ""


@dataclass(frozen=True)
class Credits:
    """Report credits for one user."""

    total: int = 0
    used: int = 0

    @property
    def remaining(self) -> int:
        return max(self.total - self.used, 0)


class AccountProvider(Protocol):
    """Identity and credit store."""

    def get_session(self) -> UserSession | None:
        ...

    def get_role(self) -> Role:
        ...

    def get_credits(self) -> Credits | None:
        ...

    def decrement_credits(self) -> Credits | None:
        ...


class InMemoryAccountProvider:
    """Account provider backed by process memory."""

    def __init__(
        self,
        session: UserSession | None = None,
        role: Role = Role.USER,
        credits: Credits | None = None,
    ):
        self._session = session
        self._role = role
        self._credits = credits if credits is not None else Credits()
        self._lock = threading.Lock()

    def get_session(self) -> UserSession | None:
        return self._session

    def get_role(self) -> Role:
        return self._role

    def get_credits(self) -> Credits | None:
        if self._session is None:
            return None
        return self._credits

    def decrement_credits(self) -> Credits | None:
        """Consume one credit; the used count never exceeds the total."""
        if self._session is None:
            return None
        with self._lock:
            used = min(self._credits.used + 1, self._credits.total)
            self._credits = Credits(total=self._credits.total, used=used)
            logger.debug("[Accounts] Credits remaining: %d", self._credits.remaining)
            return self._credits

    def sign_in(self, session: UserSession) -> None:
        self._session = session

    def sign_out(self) -> None:
        self._session = None
