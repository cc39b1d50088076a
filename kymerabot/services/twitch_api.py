"""Twitch API client service.

Only app access tokens (client-credentials grant) are used: the bot reads
public stream status and never acts on behalf of a user.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

HELIX_BASE = "https://api.twitch.tv/helix"
OAUTH_BASE = "https://id.twitch.tv/oauth2"

# Refresh this many seconds before Twitch says the token expires
TOKEN_REFRESH_MARGIN = 300


class TwitchAPIError(Exception):
    """Token or Helix request failed (network, non-2xx, malformed body)."""


@dataclass(frozen=True)
class StreamInfo:
    """A live stream as reported by Helix ``/streams``."""

    id: str
    title: str
    game_name: str
    viewer_count: int
    thumbnail_url: str
    user_login: str

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "StreamInfo":
        try:
            return cls(
                id=str(data["id"]),
                title=data.get("title") or "",
                game_name=data.get("game_name") or "",
                viewer_count=int(data.get("viewer_count") or 0),
                thumbnail_url=data.get("thumbnail_url") or "",
                user_login=data.get("user_login") or "",
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TwitchAPIError(f"Malformed stream payload: {e}") from e


class TwitchAPIClient:
    """Client for the Twitch Helix API.

    Manages a shared httpx client for connection reuse and caches
    the app access token to avoid redundant token requests.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        http: httpx.AsyncClient | None = None,
    ):
        if not client_id or not client_secret:
            raise ValueError("Twitch client_id and client_secret are required")

        self.client_id = client_id
        self.client_secret = client_secret

        self._http = http or httpx.AsyncClient(timeout=10.0)

        self._app_token: str | None = None
        self._app_token_expires_at: float = 0.0
        self._app_token_lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the shared HTTP client."""
        await self._http.aclose()

    def _app_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Client-Id": self.client_id}

    def invalidate_token(self) -> None:
        self._app_token = None
        self._app_token_expires_at = 0.0

    async def get_app_token(self) -> str:
        """Return a cached app access token, refreshing only when expired."""
        now = time.monotonic()
        if self._app_token and now < self._app_token_expires_at:
            return self._app_token

        async with self._app_token_lock:
            now = time.monotonic()
            if self._app_token and now < self._app_token_expires_at:
                return self._app_token

            try:
                response = await self._http.post(
                    f"{OAUTH_BASE}/token",
                    params={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "grant_type": "client_credentials",
                    },
                )
            except httpx.HTTPError as e:
                raise TwitchAPIError(f"Token request failed: {e}") from e

            if response.status_code != 200:
                raise TwitchAPIError(f"Failed to get app token: {response.status_code}")

            try:
                data = response.json()
                token = data["access_token"]
            except (ValueError, KeyError, TypeError) as e:
                raise TwitchAPIError("No access_token in token response") from e

            expires_in = int(data.get("expires_in", 0) or 0)
            self._app_token = token
            self._app_token_expires_at = now + max(expires_in - TOKEN_REFRESH_MARGIN, 0)
            return token

    async def _helix_get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        token = await self.get_app_token()
        try:
            response = await self._http.get(
                f"{HELIX_BASE}/{path}",
                params=params,
                headers=self._app_headers(token),
            )
        except httpx.HTTPError as e:
            raise TwitchAPIError(f"Helix GET /{path} failed: {e}") from e

        if response.status_code == 401:
            # Revoked or expired early; fetch a fresh one next time
            self.invalidate_token()
        if response.status_code != 200:
            raise TwitchAPIError(f"Helix GET /{path} returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise TwitchAPIError(f"Helix GET /{path} returned invalid JSON") from e
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise TwitchAPIError(f"Helix GET /{path} response has no data list")
        return body

    async def get_stream(self, user_login: str) -> StreamInfo | None:
        """Current stream of *user_login*, or None when offline."""
        body = await self._helix_get("streams", {"user_login": user_login})
        streams = body["data"]
        if not streams:
            return None
        return StreamInfo.from_payload(streams[0])
