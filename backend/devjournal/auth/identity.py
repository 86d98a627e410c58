"""
DevJournal Backend — Identity Provider Client
===============================================

What:  Verifies bearer tokens against Supabase Auth and returns the verified
       principal (subject id, email, profile metadata).
How:   GET {SUPABASE_URL}/auth/v1/user with the anon key as `apikey` and the
       caller's token as `Authorization: Bearer …`. Supabase answers 200 with
       the user JSON, or 401/403 for a bad token.
Who:   Used by the auth dependencies (devjournal.auth.dependencies).

Result mapping:
    200            → Principal
    401 / 403      → AuthenticationError (401 to the caller)
    network / 5xx  → IdentityProviderError (500, not retried)

Optional cache:
    With AUTH_CACHE_TTL > 0, verified principals are kept in memory keyed by
    sha256(token) until the TTL expires. The raw token is never stored.
    Every CACHE_SWEEP_EVERY stores, expired entries for all tokens are swept.
"""

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import httpx

from devjournal.config import settings
from devjournal.exceptions import AuthenticationError, IdentityProviderError

logger = logging.getLogger(__name__)

# Expired cache entries for other tokens are dropped every N stores
CACHE_SWEEP_EVERY = 100


@dataclass(frozen=True)
class Principal:
    """A verified external identity."""

    subject_id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """Turns a bearer token into a Principal or raises AuthenticationError."""

    @abstractmethod
    async def verify_token(self, token: str) -> Principal:
        ...


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth REST implementation with an optional verified-token cache."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        cache_ttl: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        # Injected by tests (httpx.MockTransport); None means real network
        self._transport = transport
        self._cache: Dict[str, Tuple[Principal, float]] = {}
        self._stores = 0
        self.sweep_every = CACHE_SWEEP_EVERY

    # ── Cache ─────────────────────────────────────────────────────────────

    @staticmethod
    def _token_key(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def _get_cached(self, key: str) -> Optional[Principal]:
        if key in self._cache:
            principal, expiry = self._cache[key]
            if time.time() < expiry:
                return principal
            del self._cache[key]
        return None

    def _store(self, key: str, principal: Principal) -> None:
        if self.cache_ttl <= 0:
            return
        now = time.time()
        self._cache[key] = (principal, now + self.cache_ttl)
        self._stores += 1
        if self._stores % self.sweep_every == 0:
            self._sweep_expired(now)

    def _sweep_expired(self, now: float) -> None:
        expired = [key for key, (_, expiry) in self._cache.items() if expiry <= now]
        for key in expired:
            del self._cache[key]

    def clear_token_cache(self) -> None:
        self._cache.clear()

    # ── Verification ──────────────────────────────────────────────────────

    async def verify_token(self, token: str) -> Principal:
        if not token:
            raise AuthenticationError("No authorization header provided")

        key = self._token_key(token)
        cached = self._get_cached(key)
        if cached is not None:
            return cached

        if not self.base_url:
            raise IdentityProviderError(
                message="Authentication service is not configured",
                context={"setting": "SUPABASE_URL"},
            )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    f"{self.base_url}/auth/v1/user",
                    headers={
                        "apikey": self.anon_key,
                        "Authorization": f"Bearer {token}",
                    },
                )
        except httpx.HTTPError as e:
            logger.error("Identity provider request failed: %s", str(e))
            raise IdentityProviderError(context={"error_type": type(e).__name__})

        if resp.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired token")
        if resp.status_code >= 400:
            logger.error(
                "Identity provider returned HTTP %d while verifying a token",
                resp.status_code,
            )
            raise IdentityProviderError(context={"status_code": resp.status_code})

        try:
            data = resp.json()
        except ValueError:
            raise IdentityProviderError(
                message="Authentication service returned an unreadable response",
            )

        if not isinstance(data, dict) or not data.get("id"):
            raise AuthenticationError("Invalid or expired token")

        principal = Principal(
            subject_id=str(data["id"]),
            email=data.get("email") or None,
            metadata=data.get("user_metadata") or {},
        )
        self._store(key, principal)
        return principal


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the token cache, so one instance serves every request
identity_provider = SupabaseIdentityProvider(
    base_url=settings.supabase_url,
    anon_key=settings.supabase_anon_key,
    timeout=settings.auth_timeout,
    cache_ttl=settings.auth_cache_ttl,
)
