"""
Explicit session context.

The login flow (owned by the backend) hands out a token and a username.
Instead of keeping them in ambient global storage, callers build a
SessionContext and pass it to every outbound call that needs it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionContext:
    """Credentials of the user operating the form."""

    token: str | None = None
    username: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def auth_headers(self) -> dict[str, str]:
        """Headers to attach to requests against the leave API."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


ANONYMOUS = SessionContext()


def session_from_headers(authorization: str | None, username: str | None = None) -> SessionContext:
    """Build a session from an incoming `Authorization: Bearer <token>` header."""
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            token = credentials.strip()
    return SessionContext(token=token, username=username or None)
