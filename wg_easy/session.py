"""
Session handling for the wg-easy API.

The service keeps the session in a cookie; this module tracks whether that
session is believed to be valid and logs in on demand.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel

from wg_easy.events import EventEmitter, EventType
from wg_easy.exceptions import AuthenticationError, UnauthorizedError
from wg_easy.transport import HttpTransport

logger = logging.getLogger(__name__)

SESSION_PATH = "/api/session"


class Session(BaseModel):
    """Local view of the remote session."""

    authenticated: bool = False
    requires_password: bool = True
    authenticated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Expiry is a local heuristic; the service issues no refresh token."""
        if self.expires_at is None:
            return False
        return (now or datetime.now()) > self.expires_at

    @property
    def is_valid(self) -> bool:
        return self.authenticated and not self.is_expired()

    def set_authenticated(self, authenticated: bool, expires_in: Optional[float] = None) -> None:
        """
        Record the authentication state.

        Args:
            authenticated: New state
            expires_in: Optional local lifetime in seconds
        """
        now = datetime.now()
        self.authenticated = authenticated
        self.authenticated_at = now if authenticated else None
        self.expires_at = (
            now + timedelta(seconds=expires_in) if authenticated and expires_in else None
        )


class SessionManager:
    """
    Ensures a valid session before remote operations.

    ``ensure_authenticated()`` is cheap when the session is known to be
    valid: it returns without touching the network.
    """

    def __init__(
        self,
        transport: HttpTransport,
        password: Optional[str] = None,
        events: Optional[EventEmitter] = None,
        session_ttl: Optional[float] = None,
    ):
        self.transport = transport
        self.events = events or EventEmitter()
        self.session_ttl = session_ttl
        self._password = password
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None and self._session.is_valid

    async def get_session(self) -> Session:
        """Return the local session, probing the service when it is not valid."""
        if self._session is not None and self._session.is_valid:
            return self._session

        logger.debug("Checking session status")

        try:
            response = await self.transport.get(SESSION_PATH)
        except UnauthorizedError:
            logger.debug("Session probe rejected, not authenticated")
            self._session = Session(authenticated=False)
            return self._session

        session = Session(authenticated=False)
        if response.success and isinstance(response.data, dict):
            session.requires_password = bool(response.data.get("requiresPassword", True))
            session.set_authenticated(
                bool(response.data.get("authenticated")), expires_in=self.session_ttl
            )

        self._session = session
        return session

    async def login(self, password: Optional[str] = None) -> Session:
        password = password or self._password
        if not password:
            raise AuthenticationError("Password is required")

        logger.info("Attempting login")

        try:
            response = await self.transport.post(SESSION_PATH, {"password": password})
        except UnauthorizedError as e:
            raise AuthenticationError("Invalid password") from e

        if not response.success:
            raise AuthenticationError("Invalid password")

        session = Session(requires_password=True)
        session.set_authenticated(True, expires_in=self.session_ttl)
        self._session = session

        logger.info("Login successful")
        self.events.emit(EventType.SESSION_LOGIN)
        return session

    async def logout(self) -> None:
        """Revoke the remote session and forget local state. Safe to repeat."""
        logger.info("Logging out")

        try:
            await self.transport.delete(SESSION_PATH)
        except UnauthorizedError:
            logger.debug("Session already revoked")
        finally:
            self.transport.clear_cookies()
            self._session = None

        self.events.emit(EventType.SESSION_LOGOUT)
        logger.info("Logout successful")

    async def ensure_authenticated(self) -> None:
        """
        Make sure the next request runs with a valid session.

        Raises:
            AuthenticationError: login failed, or no password is configured
        """
        session = await self.get_session()
        if session.authenticated:
            return

        if self._password:
            await self.login(self._password)
        else:
            raise AuthenticationError("Not authenticated and no password provided")

    def invalidate(self) -> None:
        """Forget the local session so the next guard probes the service."""
        self._session = None
