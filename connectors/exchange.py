"""
OAuth exchange handler — code → token pair → store, plus refresh and the
sample product call.

Routes stay thin; every decision about which store a token belongs to is
made here.  The store id always comes from the provider's token answer
(``user_id``); ids sent by the browser are display hints at most.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from connectors.base import BaseConnector
from connectors.errors import (
    InvalidProviderResponse,
    InvalidState,
    MissingInput,
    NotFound,
)
from connectors.token_manager import TokenStore
from utils.schemas import StoredToken

logger = logging.getLogger(__name__)


async def exchange_code(
    code: Optional[str],
    *,
    connector: BaseConnector,
    store: TokenStore,
) -> StoredToken:
    """
    Exchange an authorization code and persist the resulting credential.

    Nothing is written unless the provider returned both an access token
    and the store id.
    """
    if not code:
        raise MissingInput("Missing authorization code")

    grant = await connector.exchange_code(code)
    if not grant.access_token or grant.user_id is None:
        logger.error("Token response missing access_token or user_id")
        raise InvalidProviderResponse()

    saved = await store.save(grant.user_id, grant)
    logger.info("Store %s authorized (%s)", grant.user_id, connector.display_name)
    return saved


async def refresh_store_token(
    store_id: int,
    *,
    connector: BaseConnector,
    store: TokenStore,
) -> StoredToken:
    """Trade the stored refresh token for a new pair and overwrite the record."""
    current = await store.get(store_id)
    if current is None:
        raise NotFound()
    if not current.refresh_token:
        raise InvalidState()

    grant = await connector.refresh_access_token(current.refresh_token)
    if not grant.access_token:
        raise InvalidProviderResponse()
    if not grant.refresh_token:
        # provider kept the same refresh token
        grant = grant.model_copy(update={"refresh_token": current.refresh_token})

    saved = await store.save(store_id, grant)
    logger.info("Refreshed token for store %s", store_id)
    return saved


async def fetch_store_products(
    store_id: int,
    *,
    connector: BaseConnector,
    store: TokenStore,
) -> httpx.Response:
    """GET ``/{store_id}/products`` with the stored access token."""
    current = await store.get(store_id)
    if current is None:
        raise NotFound()
    return await connector.get(f"{store_id}/products", current.access_token)
