import logging
from typing import Any, Iterable, Optional

import httpx

from .. import config

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """Supabase responded with an error or could not be reached"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SupabaseService:
    """
    Patient identity and profile lookups against Supabase.

    Talks to GoTrue (``/auth/v1``) for patient tokens and to PostgREST
    (``/rest/v1``) for the ``profiles``, ``medical_records`` and
    ``app_pins`` tables. Server-side lookups use the service-role key when
    one is configured; calls made on behalf of a patient forward the
    patient's access token so row-level security applies.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_role_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.url = (url if url is not None else config.SUPABASE_URL or "").rstrip("/")
        self.anon_key = anon_key if anon_key is not None else config.SUPABASE_ANON_KEY
        self.service_role_key = (
            service_role_key if service_role_key is not None else config.SUPABASE_SERVICE_ROLE_KEY
        )
        self.transport = transport
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)

    def _client(self, access_token: Optional[str] = None) -> httpx.AsyncClient:
        bearer = access_token or self.service_role_key or self.anon_key
        headers = {
            "apikey": self.anon_key or "",
            "Authorization": f"Bearer {bearer}",
        }
        return httpx.AsyncClient(
            base_url=self.url, headers=headers, timeout=self.timeout, transport=self.transport
        )

    def _ensure_configured(self):
        if not self.configured:
            logger.error("❌ SUPABASE_URL / SUPABASE_ANON_KEY not configured")
            raise SupabaseError("Supabase is not configured", 500)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def get_user(self, access_token: str) -> Optional[dict[str, Any]]:
        """Resolve a patient access token to its Supabase user, or None when rejected"""
        if not self.configured:
            logger.warning("⚠️ Supabase not configured - patient tokens cannot be verified")
            return None

        try:
            async with self._client(access_token) as client:
                response = await client.get("/auth/v1/user")
        except httpx.HTTPError as e:
            logger.error(f"❌ Supabase user lookup failed: {e}")
            raise SupabaseError("Failed to reach Supabase", 502) from e

        if response.status_code in (401, 403, 404):
            return None
        if response.status_code >= 400:
            logger.error(f"❌ Supabase user lookup returned HTTP {response.status_code}")
            raise SupabaseError("Failed to verify patient token", 502)

        user = response.json()
        return user if user.get("id") else None

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Password grant; returns {access_token, refresh_token, user}"""
        self._ensure_configured()
        try:
            async with self._client() as client:
                response = await client.post(
                    "/auth/v1/token",
                    params={"grant_type": "password"},
                    json={"email": email, "password": password},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Supabase sign-in request failed: {e}")
            raise SupabaseError("Failed to reach Supabase", 502) from e

        if response.status_code >= 400:
            body = response.json() if response.content else {}
            message = (
                body.get("error_description") or body.get("msg") or body.get("message") or "Invalid email or password"
            )
            logger.warning(f"⚠️ Patient sign-in rejected for {email}: {message}")
            raise SupabaseError(message, 401)

        session = response.json()
        if not session.get("access_token") or not session.get("user"):
            raise SupabaseError("Invalid email or password", 401)
        return session

    # ------------------------------------------------------------------
    # PostgREST
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: Optional[dict[str, str]] = None,
        access_token: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """
        ``SELECT *`` from a PostgREST table.

        ``filters`` maps column names to PostgREST operators, e.g.
        ``{"id": "eq.abc"}`` or ``{"user_id": "in.(a,b)"}``.
        """
        self._ensure_configured()
        params = {"select": "*", **(filters or {})}
        if limit is not None:
            params["limit"] = str(limit)

        try:
            async with self._client(access_token) as client:
                response = await client.get(f"/rest/v1/{table}", params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Supabase select on {table} failed: HTTP {e.response.status_code}")
            raise SupabaseError(f"Failed to fetch {table}", 500) from e
        except httpx.HTTPError as e:
            logger.error(f"❌ Supabase select on {table} failed: {e}")
            raise SupabaseError(f"Failed to fetch {table}", 502) from e

        return response.json()

    @staticmethod
    def _in_filter(values: Iterable[str]) -> str:
        return "in.(" + ",".join(values) + ")"

    async def get_profile(self, user_id: str, access_token: Optional[str] = None) -> Optional[dict[str, Any]]:
        rows = await self.select("profiles", {"id": f"eq.{user_id}"}, access_token, limit=1)
        return rows[0] if rows else None

    async def get_profiles(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Profiles keyed by user id"""
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return {}
        rows = await self.select("profiles", {"id": self._in_filter(ids)})
        return {row["id"]: row for row in rows if row.get("id")}

    async def get_medical_records(
        self, user_ids: Iterable[str], access_token: Optional[str] = None
    ) -> list[dict[str, Any]]:
        ids = sorted({uid for uid in user_ids if uid})
        if not ids:
            return []
        return await self.select("medical_records", {"user_id": self._in_filter(ids)}, access_token)

    async def get_app_pin_hash(self, user_id: str, access_token: Optional[str] = None) -> Optional[str]:
        rows = await self.select("app_pins", {"user_id": f"eq.{user_id}"}, access_token, limit=1)
        return rows[0].get("pin_hash") if rows else None

    async def list_profiles(self, limit: int = 5) -> list[dict[str, Any]]:
        return await self.select("profiles", limit=limit)


def profile_display_name(profile: Optional[dict], default: str = "Patient") -> str:
    if not profile:
        return default
    return profile.get("full_name") or profile.get("name") or default


def profile_address(profile: Optional[dict]) -> Optional[str]:
    if not profile:
        return None
    if profile.get("address"):
        return profile["address"]
    parts = [p for p in (profile.get("city"), profile.get("country")) if p]
    return ", ".join(parts) or None


def get_supabase_service() -> SupabaseService:
    """Dependency injection for SupabaseService"""
    return SupabaseService()
