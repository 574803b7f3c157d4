"""
Identity Providers

Who is using the tracker is kept apart from the ledger: nothing in the
store, ledger or budgets looks at the identity. The only implementation
today is a mock that signs in any e-mail address without a password,
which is what a single-user local install needs.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4

from finance_tracker.models.entities import Identity


class AuthenticationError(Exception):
    """Sign-in was refused."""
    pass


class IdentityProvider(ABC):
    """Pluggable sign-in / sign-out."""

    @abstractmethod
    def login(self, email: str, password: Optional[str] = None) -> Identity:
        pass

    @abstractmethod
    def logout(self) -> None:
        pass

    @property
    @abstractmethod
    def current(self) -> Optional[Identity]:
        pass

    @property
    def is_authenticated(self) -> bool:
        return self.current is not None


class MockIdentityProvider(IdentityProvider):
    """
    Accepts any non-empty e-mail. The password is ignored.

    A fresh identity id is generated on every login.
    """

    def __init__(self):
        self._current: Optional[Identity] = None

    def login(self, email: str, password: Optional[str] = None) -> Identity:
        email = (email or "").strip()
        if not email:
            raise AuthenticationError("An e-mail address is required")
        self._current = Identity(
            id=str(uuid4()),
            email=email,
            name=email.split("@")[0],
        )
        return self._current

    def logout(self) -> None:
        self._current = None

    @property
    def current(self) -> Optional[Identity]:
        return self._current
