"""Authentication boundary.

``FirebaseAuthClient`` signs in with email/password through the Identity
Toolkit REST endpoint and keeps the resulting ID token so the gateways can
authorize their requests. ID tokens are short lived: once one is about to
expire (or the real-time stream reports it revoked) it is exchanged for a new
one with the refresh token before being handed out again. Provider error
strings are translated to the ``auth/...`` codes the login screen understands.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from tienda.utilities.errors import AuthError

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Refresh this many seconds before the provider's expiry
REFRESH_MARGIN = 60.0

# REST error message (prefix) -> auth code
_REST_ERRORS: Dict[str, str] = {
    "INVALID_EMAIL": "auth/invalid-email",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "USER_DISABLED": "auth/user-disabled",
    "MISSING_PASSWORD": "auth/missing-password",
    "TOKEN_EXPIRED": "auth/user-token-expired",
    "INVALID_REFRESH_TOKEN": "auth/user-token-expired",
    "USER_NOT_FOUND": "auth/user-token-expired",
}


@dataclass
class AuthSession:
    uid: str
    email: str
    id_token: str
    refresh_token: str = ""
    expires_in: int = 3600
    expires_at: Optional[float] = None  # on the client's clock; None never expires


def auth_code_for(message: str) -> str:
    """Map an Identity Toolkit error message ('TOO_MANY_ATTEMPTS_TRY_LATER : ...') to a code."""
    key = (message or "").split(":", 1)[0].strip()
    return _REST_ERRORS.get(key, "auth/internal-error")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    error = body.get("error") or {}
    return error.get("message", "") if isinstance(error, dict) else str(error)


class AuthClient:
    """Holds the signed-in session; subclasses implement ``_authenticate`` and ``_refresh``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.session: Optional[AuthSession] = None
        self.clock = clock
        self._stale = False
        self._refresh_lock: Optional[asyncio.Lock] = None

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    def _needs_refresh(self) -> bool:
        if self.session is None:
            return False
        if self._stale:
            return True
        expires_at = self.session.expires_at
        return expires_at is not None and self.clock() >= expires_at - REFRESH_MARGIN

    async def id_token(self) -> Optional[str]:
        """Current ID token, refreshed first when it is about to expire.

        Raises AuthError when the refresh is rejected; the session is then dropped.
        """
        if not self._needs_refresh():
            return self.session.id_token if self.session else None
        if self._refresh_lock is None:
            self._refresh_lock = asyncio.Lock()
        async with self._refresh_lock:
            # another caller may have refreshed while we waited
            if self._needs_refresh():
                await self._renew()
        return self.session.id_token if self.session else None

    async def _renew(self) -> None:
        try:
            session = await self._refresh(self.session)
        except AuthError as e:
            if e.code != "auth/network-request-failed":
                logger.warning("Session for %s could not be renewed (%s)", self.session.email, e.code)
                self.session = None
                self._stale = False
            raise
        self.session = session
        self._stale = False
        logger.info("ID token renewed for %s", session.email)

    def invalidate_token(self) -> None:
        """Force a refresh before the token is handed out again (e.g. after 'auth_revoked')."""
        if self.session is not None:
            self._stale = True

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self.session = await self._authenticate(email, password)
        self._stale = False
        logger.info("Signed in as %s", self.session.email)
        return self.session

    def sign_out(self) -> None:
        if self.session:
            logger.info("Signed out %s", self.session.email)
        self.session = None
        self._stale = False

    async def _authenticate(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    async def _refresh(self, session: AuthSession) -> AuthSession:
        return session

    async def aclose(self) -> None:
        pass


class FirebaseAuthClient(AuthClient):
    def __init__(self, api_key: str, *, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = 30.0, endpoint: str = IDENTITY_TOOLKIT_URL,
                 refresh_endpoint: str = SECURE_TOKEN_URL, clock: Callable[[], float] = time.monotonic):
        super().__init__(clock=clock)
        self.api_key = api_key
        self.endpoint = endpoint
        self.refresh_endpoint = refresh_endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def _post(self, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._client.post(url, params={"key": self.api_key}, **kwargs)
        except httpx.HTTPError as e:
            raise AuthError("auth/network-request-failed", str(e)) from e
        if response.status_code != 200:
            message = _error_message(response)
            raise AuthError(auth_code_for(message), message or f"HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as e:
            raise AuthError("auth/internal-error", "Malformed response from the auth provider") from e
        if not isinstance(body, dict):
            raise AuthError("auth/internal-error", "Malformed response from the auth provider")
        return body

    async def _authenticate(self, email: str, password: str) -> AuthSession:
        body = await self._post(
            self.endpoint,
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        expires_in = int(body.get("expiresIn", 3600))
        return AuthSession(
            uid=body.get("localId", ""),
            email=body.get("email", email),
            id_token=body.get("idToken", ""),
            refresh_token=body.get("refreshToken", ""),
            expires_in=expires_in,
            expires_at=self.clock() + expires_in,
        )

    async def _refresh(self, session: AuthSession) -> AuthSession:
        # The secure-token endpoint answers in snake_case
        body = await self._post(
            self.refresh_endpoint,
            data={"grant_type": "refresh_token", "refresh_token": session.refresh_token},
        )
        expires_in = int(body.get("expires_in", 3600))
        return AuthSession(
            uid=body.get("user_id", session.uid),
            email=session.email,
            id_token=body.get("id_token", ""),
            refresh_token=body.get("refresh_token", session.refresh_token),
            expires_in=expires_in,
            expires_at=self.clock() + expires_in,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class MemoryAuthClient(AuthClient):
    """Offline accounts (email -> password) for BACKEND=memory and tests. Tokens never expire."""

    def __init__(self, users: Optional[Dict[str, str]] = None):
        super().__init__()
        self.users = dict(users or {})

    async def _authenticate(self, email: str, password: str) -> AuthSession:
        if email not in self.users:
            raise AuthError("auth/user-not-found")
        if self.users[email] != password:
            raise AuthError("auth/wrong-password")
        return AuthSession(uid=f"local-{abs(hash(email)) % 10**8}", email=email, id_token="local-token")
