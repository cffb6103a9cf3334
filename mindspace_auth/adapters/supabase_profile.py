"""
Supabase Profile Adapter - Implements ProfileStorePort over PostgREST.
"""

import logging
from typing import Optional, Dict, Any, Callable, List

import httpx

from mindspace_auth.ports.profile_port import ProfileStorePort
from mindspace_auth.domain.profile import Profile
from mindspace_auth.domain.errors import ProfileStoreError

logger = logging.getLogger(__name__)


class SupabaseProfileAdapter(ProfileStorePort):
    """
    Reads and upserts rows of the "profiles" table.

    Requests run as the signed-in user when token_provider returns a token
    (row-level security), otherwise with the anon key.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        http_client: Optional[httpx.Client] = None,
        table: str = "profiles",
        timeout: float = 10.0,
    ):
        """
        Initialize Supabase profile adapter.

        Args:
            url: Project URL
            anon_key: Public anon API key
            token_provider: Returns the current access token, or None
            http_client: httpx client (built with `timeout` if omitted)
            table: Table name
            timeout: Request timeout in seconds
        """
        self._endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self._anon_key = anon_key
        self._token_provider = token_provider
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def get(self, identity_id: str) -> Optional[Profile]:
        """Select the row with this id, if any."""
        rows = self._request(
            "GET",
            params={"select": "*", "id": f"eq.{identity_id}"},
        )
        if not rows:
            return None
        return self._parse(rows[0])

    def upsert(self, identity_id: str, fields: Dict[str, Any]) -> Profile:
        """Insert, merging into an existing row on id conflict."""
        rows = self._request(
            "POST",
            params={"on_conflict": "id"},
            json={"id": identity_id, **fields},
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise ProfileStoreError(f"Upsert of profile {identity_id} returned no row")
        return self._parse(rows[0])

    def close(self):
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            self._http.close()

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {token or self._anon_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        params: Dict[str, str],
        json: Optional[Dict[str, Any]] = None,
        prefer: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        try:
            response = self._http.request(
                method,
                self._endpoint,
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
        except httpx.HTTPError as exc:
            raise ProfileStoreError(f"Profile store unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise ProfileStoreError(
                f"Profile store returned HTTP {response.status_code}: {response.text}"
            )

        try:
            rows = response.json()
        except ValueError as exc:
            raise ProfileStoreError("Profile store returned invalid JSON") from exc

        if not isinstance(rows, list):
            raise ProfileStoreError("Profile store returned an unexpected payload")
        return rows

    @staticmethod
    def _parse(row: Dict[str, Any]) -> Profile:
        try:
            return Profile.from_dict(row)
        except (KeyError, TypeError, ValueError) as exc:
            raise ProfileStoreError(f"Malformed profile row: {exc}") from exc
