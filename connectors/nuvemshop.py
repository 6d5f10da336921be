"""
NuvemshopConnector — OAuth2 authorization-code flow for Nuvemshop / Tiendanube.

The token endpoint expects a form-encoded body and answers with
``access_token``, ``token_type``, ``scope`` and ``user_id`` (the store id).
Resource calls authenticate with the non-standard ``Authentication``
header and must carry a ``User-Agent`` naming the app and a contact.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings
from connectors.base import BaseConnector
from connectors.errors import InvalidProviderResponse, UpstreamFailure
from utils.schemas import TokenGrant

logger = logging.getLogger(__name__)


class NuvemshopConnector(BaseConnector):
    """OAuth2 connector for Nuvemshop."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout)

    @property
    def provider_name(self) -> str:
        return "nuvemshop"

    @property
    def display_name(self) -> str:
        return "Nuvemshop"

    def is_configured(self) -> bool:
        return bool(self._settings.client_id and self._settings.client_secret)

    def get_auth_url(self, state: Optional[str] = None) -> str:
        url = self._settings.authorize_url()
        if state:
            url = f"{url}?{urlencode({'state': state})}"
        return url

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange auth code for tokens."""
        return await self._request_token(
            {
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "grant_type": "authorization_code",
                "code": code,
            }
        )

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """Use refresh token to get a new access token."""
        return await self._request_token(
            {
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )

    async def get(self, path: str, access_token: str) -> httpx.Response:
        url = f"{self._settings.api_base_url}/{path.lstrip('/')}"
        headers = {
            "Authentication": f"bearer {access_token}",
            "User-Agent": self._settings.user_agent,
        }
        try:
            resp = await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("GET %s failed: %s", url, exc)
            raise UpstreamFailure(f"Request to {url} failed: {exc}") from exc
        if resp.is_error:
            logger.error("GET %s answered %s: %s", url, resp.status_code, resp.text)
            raise UpstreamFailure(
                f"Nuvemshop API answered {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )
        return resp

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ── internals ───────────────────────────────────────────────────────

    async def _request_token(self, form: Dict[str, Any]) -> TokenGrant:
        grant_type = form["grant_type"]
        try:
            resp = await self._client.post(self._settings.token_url, data=form)
        except httpx.HTTPError as exc:
            logger.error("Token request (%s) failed: %s", grant_type, exc)
            raise UpstreamFailure(f"Token request failed: {exc}") from exc

        if resp.is_error:
            logger.error(
                "Token endpoint answered %s (%s): %s",
                resp.status_code, grant_type, resp.text,
            )
            raise UpstreamFailure(
                f"Token endpoint answered {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )

        try:
            payload = resp.json()
            grant = TokenGrant.model_validate(payload)
        except ValueError as exc:
            # ValidationError and JSONDecodeError are both ValueErrors
            logger.error("Unreadable token response (%s): %s", grant_type, resp.text)
            raise InvalidProviderResponse() from exc

        if not grant.access_token:
            # Nuvemshop reports a bad or reused code as 200 + {"error": ...}
            logger.error(
                "Token response without access_token (%s): %s",
                grant_type, payload.get("error_description") or payload.get("error") or payload,
            )
            raise InvalidProviderResponse()
        return grant
