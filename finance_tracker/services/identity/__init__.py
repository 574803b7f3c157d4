"""Identity provider package."""

from finance_tracker.services.identity.provider import (
    AuthenticationError,
    IdentityProvider,
    MockIdentityProvider,
)

__all__ = ["AuthenticationError", "IdentityProvider", "MockIdentityProvider"]
