"""Password and token authentication against the backend auth service."""

import json
import logging
import os
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Any, Optional

import httpx

from cashbook.domain.errors import ConflictError, DomainError, RemoteRejected, ValidationError
from cashbook.domain.validation import validate_email, validate_password
from cashbook.remote.http import build_client, json_body, send

logger = logging.getLogger(__name__)

# Refresh a little before the server-side expiry.
EXPIRY_MARGIN = timedelta(seconds=60)
SESSION_FILE_MODE = 0o600


@dataclass(frozen=True)
class AuthSession:
    """Signed-in user session."""

    user_id: str
    email: str
    access_token: str
    refresh_token: str
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return datetime.now(UTC) >= self.expires_at - EXPIRY_MARGIN

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthSession":
        return cls(
            user_id=data["user_id"],
            email=data["email"],
            access_token=data["access_token"],
            refresh_token=data["refresh_token"],
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


def session_from_token_response(body: dict[str, Any]) -> AuthSession:
    user = body.get("user") or {}
    if not body.get("access_token") or not user.get("id"):
        raise RemoteRejected("Server did not return a session")
    return AuthSession(
        user_id=user["id"],
        email=user.get("email", ""),
        access_token=body["access_token"],
        refresh_token=body.get("refresh_token", ""),
        expires_at=datetime.now(UTC) + timedelta(seconds=int(body.get("expires_in") or 3600)),
    )


class AuthClient:
    """Client for the ``/auth/v1`` endpoints."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.api_key = api_key
        self.client = build_client(base_url, timeout, client)

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
        }

    def _post(self, path: str, payload: dict[str, Any], access_token: Optional[str] = None, **kwargs: Any) -> Any:
        response = send(
            self.client, "POST", f"/auth/v1/{path}", json=payload, headers=self._headers(access_token), **kwargs
        )
        return json_body(response)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        email = validate_email(email)
        if not password:
            raise ValidationError("Password is required")
        body = self._post("token", {"email": email, "password": password}, params={"grant_type": "password"})
        session = session_from_token_response(body or {})
        logger.info("Signed in as %s", session.email)
        return session

    def sign_up(self, email: str, password: str, name: str) -> Optional[AuthSession]:
        """Register a new user.

        Returns:
            The new session, or None when the server requires email confirmation

        Raises:
            ConflictError: If the email is already registered
        """
        email = validate_email(email)
        validate_password(password)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        if len(name) > 100:
            raise ValidationError("Name is too long (max 100 characters)")

        body = self._post("signup", {"email": email, "password": password, "data": {"name": name}}) or {}
        user = body.get("user", body)
        if isinstance(user, dict) and user.get("identities") == []:
            raise ConflictError(f"An account with email '{email}' already exists")
        if body.get("access_token"):
            return session_from_token_response(body)
        return None

    def refresh(self, session: AuthSession) -> AuthSession:
        body = self._post("token", {"refresh_token": session.refresh_token}, params={"grant_type": "refresh_token"})
        return session_from_token_response(body or {})

    def request_password_reset(self, email: str) -> None:
        """Ask the server to email a time-limited reset token."""
        self._post("recover", {"email": validate_email(email)})

    def confirm_password_reset(self, email: str, token: str, new_password: str) -> AuthSession:
        """Exchange a reset token for a session and set the new password."""
        email = validate_email(email)
        validate_password(new_password)
        if not (token or "").strip():
            raise ValidationError("Reset token is required")
        body = self._post("verify", {"type": "recovery", "email": email, "token": token.strip()})
        session = session_from_token_response(body or {})
        send(
            self.client,
            "PUT",
            "/auth/v1/user",
            json={"password": new_password},
            headers=self._headers(session.access_token),
        )
        return session

    def sign_out(self, session: AuthSession) -> None:
        self._post("logout", {}, access_token=session.access_token)

    def close(self) -> None:
        self.client.close()


class SessionFile:
    """Persists the current session so it survives process restarts."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[AuthSession]:
        if not self.path.exists():
            return None
        try:
            return AuthSession.from_dict(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def save(self, session: AuthSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # owner-only before any token is written, also for an existing file
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        try:
            os.chmod(self.path, SESSION_FILE_MODE)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionManager:
    """Holds the persisted session and refreshes it when it expires."""

    def __init__(self, session_file: SessionFile, auth: Optional[AuthClient] = None):
        self.session_file = session_file
        self.auth = auth
        self._session = session_file.load()

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    def current(self) -> Optional[AuthSession]:
        """Return the session, refreshing an expired one when possible."""
        if self._session is not None and self._session.expired and self.auth is not None:
            try:
                self.set(self.auth.refresh(self._session))
            except DomainError as e:
                logger.warning("Session refresh failed: %s", e)
        return self._session

    def access_token(self) -> Optional[str]:
        session = self.current()
        return session.access_token if session else None

    def set(self, session: AuthSession) -> None:
        self._session = session
        self.session_file.save(session)

    def clear(self) -> None:
        self._session = None
        self.session_file.clear()
