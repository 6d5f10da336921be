"""
BaseConnector — abstract interface for an OAuth2 provider.

Nuvemshop is the only provider wired in today; a second platform would
subclass this and implement the same methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from utils.schemas import TokenGrant


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'nuvemshop'."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: Optional[str] = None) -> str:
        """
        Build the provider's authorization URL.

        Parameters
        ----------
        state : str, optional
            Opaque value echoed back on the callback.

        Returns
        -------
        The full URL to redirect the merchant to.
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange the authorization code for tokens.

        Raises ``UpstreamFailure`` on network errors and non-2xx answers.
        """
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """Trade a refresh token for a new token pair."""
        ...

    @abstractmethod
    async def get(self, path: str, access_token: str) -> httpx.Response:
        """Authenticated GET against the provider's resource API."""
        ...

    # ── Lifecycle ───────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Release network resources held by the connector."""
        return None

    def is_configured(self) -> bool:
        """Return True if client id / secret are present."""
        return True
