"""
Supabase Identity Adapter - Implements IdentityServicePort over the GoTrue REST API.
"""

import logging
from typing import Optional, Dict, Any

import httpx

from mindspace_auth.ports.identity_port import IdentityServicePort
from mindspace_auth.ports.snapshot_port import SnapshotStorePort
from mindspace_auth.domain.identity import Identity
from mindspace_auth.domain.session import Session
from mindspace_auth.domain.events import AuthEvent, ChangeFeed, ChangeListener, Subscription
from mindspace_auth.domain.errors import ProviderError, ProviderErrorKind, SnapshotStoreError

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."

# Logout responses that mean the session is already gone server-side
_SESSION_GONE = {401, 403, 404}


class SupabaseIdentityAdapter(IdentityServicePort):
    """
    Supabase auth (GoTrue) adapter.

    Keeps the current session in-process and, when a session_store is
    given, persists its tokens so the session survives a restart. Emits
    change events for its own transitions (sign-in, sign-out, refresh,
    user update), like the JS client's onAuthStateChange.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        http_client: Optional[httpx.Client] = None,
        session_store: Optional[SnapshotStorePort] = None,
        timeout: float = 10.0,
        client_info: str = "mindspace-web",
    ):
        """
        Initialize Supabase identity adapter.

        Args:
            url: Project URL (https://<ref>.supabase.co)
            anon_key: Public anon API key
            http_client: httpx client (built with `timeout` if omitted)
            session_store: Optional store for the session tokens
            timeout: Request timeout in seconds
            client_info: X-Client-Info header value
        """
        self._url = url.rstrip("/")
        self._anon_key = anon_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._session_store = session_store
        self._client_info = client_info
        self._session: Optional[Session] = None
        self._session_loaded = False
        self._feed = ChangeFeed()

    @property
    def access_token(self) -> Optional[str]:
        """Bearer token of the current session, if any."""
        session = self._load_session()
        return session.access_token if session else None

    def create_account(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Identity]:
        """
        Sign up. When email confirmation is enabled the provider returns the
        user without a session.
        """
        data = self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )

        if "access_token" in data:
            return self._start_session(data, AuthEvent.SIGNED_IN)

        return _identity_from_user(data if "id" in data else data.get("user"))

    def authenticate(self, email: str, password: str) -> Optional[Identity]:
        """Password grant."""
        data = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._start_session(data, AuthEvent.SIGNED_IN)

    def end_session(self) -> None:
        """
        Log out on the provider, then drop the local session.

        A session the provider no longer knows is treated as ended. Any other
        failure is raised and the local session is kept.
        """
        session = self._load_session()
        if session is None:
            return

        try:
            self._request("POST", "/logout", access_token=session.access_token)
        except ProviderError as exc:
            if exc.status_code not in _SESSION_GONE:
                raise
            logger.info("Session already ended on the provider (HTTP %s)", exc.status_code)

        self.discard_local_session()
        self._feed.emit(AuthEvent.SIGNED_OUT, None)

    def current_session(self) -> Optional[Session]:
        """
        Get the current session, refreshing it if the access token expired.

        A failed refresh ends the session locally.
        """
        session = self._load_session()
        if session is None or not session.is_expired():
            return session

        if not session.refresh_token:
            self._expire()
            return None

        try:
            return self.refresh_session()
        except ProviderError as exc:
            logger.warning("Session refresh failed: %s", exc.message)
            self._expire()
            return None

    def refresh_session(self) -> Session:
        """
        Exchange the refresh token for a new session.

        Raises:
            ProviderError: If there is no session or the provider rejects the token
        """
        session = self._load_session()
        if session is None or not session.refresh_token:
            raise ProviderError(ProviderErrorKind.UNKNOWN, "Auth session missing!")

        data = self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
        )
        self._start_session(data, AuthEvent.TOKEN_REFRESHED)
        return self._session

    def subscribe(self, listener: ChangeListener) -> Subscription:
        return self._feed.subscribe(listener)

    def discard_local_session(self) -> None:
        """Forget the session in memory and in the session store."""
        self._session = None
        self._session_loaded = True
        if self._session_store is not None:
            self._session_store.clear()

    def request_password_reset(self, email: str) -> None:
        self._request("POST", "/recover", json={"email": email})

    def update_password(self, password: str) -> None:
        session = self._load_session()
        if session is None:
            raise ProviderError(ProviderErrorKind.UNKNOWN, "Auth session missing!", status_code=401)

        data = self._request(
            "PUT",
            "/user",
            json={"password": password},
            access_token=session.access_token,
        )
        self._feed.emit(AuthEvent.USER_UPDATED, data.get("id", session.identity_id))

    def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            self._http.close()

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token or self._anon_key}",
            "X-Client-Info": self._client_info,
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Call the auth API.

        Raises:
            ProviderError: Classified from the response body, or UNKNOWN on transport failure
        """
        try:
            response = self._http.request(
                method,
                f"{self._url}/auth/v1{path}",
                params=params,
                json=json,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth request %s %s failed: %s", method, path, exc)
            raise ProviderError(ProviderErrorKind.UNKNOWN, NETWORK_ERROR_MESSAGE) from exc

        if response.status_code >= 400:
            raise ProviderError.from_message(
                _error_message(response),
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                ProviderErrorKind.UNKNOWN,
                "Unexpected response from the identity service",
                status_code=response.status_code,
            ) from exc

    def _start_session(self, data: Dict[str, Any], event: AuthEvent) -> Optional[Identity]:
        identity = _identity_from_user(data.get("user"))
        if identity is None or "access_token" not in data:
            return identity

        self._session = Session.from_tokens(
            identity_id=identity.identity_id,
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
        )
        self._session_loaded = True
        self._persist_session()
        self._feed.emit(event, identity.identity_id)
        return identity

    def _expire(self):
        self.discard_local_session()
        self._feed.emit(AuthEvent.SIGNED_OUT, None)

    def _load_session(self) -> Optional[Session]:
        """Read the stored session once per process."""
        if self._session_loaded or self._session_store is None:
            return self._session

        self._session_loaded = True
        try:
            data = self._session_store.load()
        except SnapshotStoreError as exc:
            logger.warning("Ignoring unreadable stored session: %s", exc)
            return None

        if data and data.get("identity_id") and data.get("access_token"):
            self._session = Session.from_tokens(
                identity_id=data["identity_id"],
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
            )
        return self._session

    def _persist_session(self):
        if self._session_store is None or self._session is None:
            return
        # Tokens only; never logged
        self._session_store.save({
            "identity_id": self._session.identity_id,
            "access_token": self._session.access_token,
            "refresh_token": self._session.refresh_token,
        })


def _identity_from_user(user: Optional[Dict[str, Any]]) -> Optional[Identity]:
    if not user or not user.get("id"):
        return None
    return Identity(
        identity_id=user["id"],
        email=user.get("email") or "",
        metadata=user.get("user_metadata") or {},
    )


def _error_message(response: httpx.Response) -> str:
    """Pull the message out of a GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        for field in ("msg", "error_description", "message", "error"):
            if body.get(field):
                return str(body[field])
    return response.text or f"HTTP {response.status_code}"
