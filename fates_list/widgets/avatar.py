"""HTTP collaborator that turns a bot id into a ``WidgetUser``.

Looks the bot up on the Fates List API, downloads its avatar and decodes
it. Built on httpx; every request is bounded by a timeout and nothing is
retried, so callers decide their own retry policy.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from fates_list.widgets.exceptions import AvatarFetchError
from fates_list.widgets.models import WidgetUser

logger = logging.getLogger(__name__)


class WidgetUserFetcher:
    """Fetches bot metadata and avatars for widget rendering.

    Usage:
        async with WidgetUserFetcher("https://api.fateslist.xyz") as fetcher:
            user = await fetcher.fetch_widget_user("123")
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the fetcher.

        Args:
            base_url: Base URL of the Fates List API
            timeout: Per-request timeout in seconds
            client: Pre-built httpx client; one is created lazily if omitted
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> WidgetUserFetcher:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": "FatesList-Widgets/1.0"},
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str) -> httpx.Response:
        client = self._ensure_client()

        try:
            response = await client.get(url, timeout=self._timeout)
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out after {self._timeout}s fetching {url}")
            raise AvatarFetchError(f"Request timeout after {self._timeout}s", url=url) from e
        except httpx.HTTPError as e:
            logger.warning(f"Request to {url} failed: {e}")
            raise AvatarFetchError(f"Request failed: {e}", url=url) from e

        if response.status_code != 200:
            logger.warning(f"Unexpected status {response.status_code} from {url}")
            raise AvatarFetchError(
                f"Invalid status code from main site: {response.status_code}",
                status_code=response.status_code,
                url=url
            )

        return response

    async def fetch_user(self, bot_id: str) -> Dict[str, Any]:
        """Fetch a bot's public profile from the API.

        Returns:
            Profile dict with at least ``id``, ``username`` and ``avatar``

        Raises:
            AvatarFetchError: On network errors, bad status or malformed JSON
        """
        url = f"{self._base_url}/blazefire/{bot_id}"
        response = await self._get(url)

        try:
            data = response.json()
        except ValueError as e:
            raise AvatarFetchError("Malformed JSON in profile response", url=url) from e

        if not isinstance(data, dict):
            raise AvatarFetchError("Profile response is not an object", url=url)

        missing = [key for key in ("id", "username", "avatar") if not data.get(key)]
        if missing:
            raise AvatarFetchError(f"Profile response missing fields: {', '.join(missing)}", url=url)

        return data

    async def fetch_avatar(self, url: str) -> bytes:
        """Download raw avatar bytes."""
        response = await self._get(url)
        logger.debug(f"Fetched avatar {url} ({len(response.content)} bytes)")
        return response.content

    async def fetch_widget_user(self, bot_id: str) -> WidgetUser:
        """Fetch a bot and its avatar and build a ``WidgetUser``.

        Raises:
            AvatarFetchError: If either request fails
            DecodeError: If the avatar is not a supported image
        """
        profile = await self.fetch_user(bot_id)
        avatar_bytes = await self.fetch_avatar(profile["avatar"])

        return WidgetUser.from_avatar_bytes(
            id=str(profile["id"]),
            username=profile["username"],
            avatar_bytes=avatar_bytes,
            avatar_url=profile["avatar"],
            discriminator=profile.get("discriminator") or profile.get("disc"),
            bot=bool(profile.get("bot", True))
        )
