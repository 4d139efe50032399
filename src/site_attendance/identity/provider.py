from __future__ import annotations

from typing import Optional, Protocol

from .model import IssuedSession, PrincipalPage


class IdentityProvider(Protocol):
    def list_principals(self, page_size: int, page_token: Optional[str] = None) -> PrincipalPage:
        raise NotImplementedError

    def revoke_sessions(self, principal_id: str) -> None:
        """Invalidate every refresh token of the principal."""

        raise NotImplementedError

    def sign_in_anonymously(self) -> IssuedSession:
        raise NotImplementedError

    def is_session_valid(self, principal_id: str, refresh_token: str) -> bool:
        raise NotImplementedError
