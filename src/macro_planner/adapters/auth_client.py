"""Bearer token providers for the backend store."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

_logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    """Supplies the bearer token sent with backend requests."""

    async def current_token(self) -> str:
        """Return the token to use now."""

    async def refresh(self) -> str:
        """Obtain a new token after the current one was rejected."""


@dataclass
class StaticTokenProvider(TokenProvider):
    """Always returns the same token."""

    token: str

    async def current_token(self) -> str:
        """Return the configured token."""
        return self.token

    async def refresh(self) -> str:
        """Return the configured token; there is nothing to refresh."""
        return self.token


@dataclass
class HttpxRefreshTokenProvider(TokenProvider):
    """Exchanges a refresh token for access tokens on demand."""

    base_url: str
    refresh_token: str
    http_client: httpx.AsyncClient
    access_token: str | None = None
    timeout_seconds: float = 10

    @classmethod
    def create(
        cls, base_url: str, refresh_token: str, access_token: str | None = None
    ) -> "HttpxRefreshTokenProvider":
        """Create a provider with a managed httpx session."""
        return cls(
            base_url=base_url,
            refresh_token=refresh_token,
            http_client=httpx.AsyncClient(),
            access_token=access_token,
        )

    async def current_token(self) -> str:
        """Return the cached access token, refreshing if there is none."""
        if self.access_token is None:
            return await self.refresh()
        return self.access_token

    async def refresh(self) -> str:
        """Request a new access token."""
        response = await self.http_client.post(
            f"{self.base_url}/refresh-token",
            json={"refresh_token": self.refresh_token},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        self.access_token = str(response.json()["access_token"])
        _logger.info("Access token refreshed")
        return self.access_token

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
