"""
Connector API routes — install redirect, OAuth callback, dashboard,
token listing, sample API call and refresh.
"""

from __future__ import annotations

import logging
import pathlib
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import FileResponse, RedirectResponse

from api.dependencies import get_connector, get_token_store
from connectors.base import BaseConnector
from connectors.exchange import exchange_code, fetch_store_products, refresh_store_token
from connectors.token_manager import TokenStore
from utils.schemas import RefreshResult, StoredToken

logger = logging.getLogger(__name__)

router = APIRouter(tags=["connectors"])

_DASHBOARD_HTML = pathlib.Path(__file__).resolve().parent.parent / "frontend" / "dashboard.html"


@router.get("/")
async def install(connector: BaseConnector = Depends(get_connector)) -> RedirectResponse:
    """Send the merchant to the provider's app authorization page."""
    return RedirectResponse(connector.get_auth_url())


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/oauth/callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    store_id: Optional[str] = Query(None),
    connector: BaseConnector = Depends(get_connector),
    store: TokenStore = Depends(get_token_store),
) -> RedirectResponse:
    """
    Provider redirects here after consent.

    Exchanges the code, stores the credential under the store id from the
    token answer and redirects to the dashboard.  A ``store_id`` query
    parameter is never used as the key.
    """
    saved = await exchange_code(code, connector=connector, store=store)
    if store_id is not None and store_id != str(saved.store_id):
        logger.warning(
            "Callback store_id=%s ignored; provider says %s", store_id, saved.store_id,
        )
    return RedirectResponse(
        f"/dashboard?store_id={saved.store_id}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/dashboard")
async def dashboard() -> FileResponse:
    return FileResponse(_DASHBOARD_HTML, media_type="text/html")


@router.get("/tokens", response_model=List[StoredToken])
async def list_tokens(store: TokenStore = Depends(get_token_store)) -> List[StoredToken]:
    """Every stored credential, newest first."""
    return await store.list()


@router.get("/test-api/{store_id}")
async def test_api(
    store_id: int,
    connector: BaseConnector = Depends(get_connector),
    store: TokenStore = Depends(get_token_store),
) -> Response:
    """Fetch the store's products and pass the answer through untouched."""
    resp = await fetch_store_products(store_id, connector=connector, store=store)
    return Response(
        content=resp.content,
        status_code=resp.status_code,
        media_type=resp.headers.get("content-type"),
    )


@router.post("/refresh/{store_id}", response_model=RefreshResult)
async def refresh(
    store_id: int,
    connector: BaseConnector = Depends(get_connector),
    store: TokenStore = Depends(get_token_store),
) -> RefreshResult:
    saved = await refresh_store_token(store_id, connector=connector, store=store)
    return RefreshResult(store_id=saved.store_id)
