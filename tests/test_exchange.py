"""
Tests for the exchange handler — store identity, refresh rules, and that
failed exchanges never write.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from connectors.errors import (
    InvalidProviderResponse,
    InvalidState,
    MissingInput,
    NotFound,
    UpstreamFailure,
)
from connectors.exchange import exchange_code, fetch_store_products, refresh_store_token
from utils.schemas import StoredToken, TokenGrant


# ── helpers ────────────────────────────────────────────────────────────────────

def _mock_connector(**methods) -> MagicMock:
    connector = MagicMock()
    connector.display_name = "Nuvemshop"
    connector.exchange_code = methods.get("exchange_code", AsyncMock())
    connector.refresh_access_token = methods.get("refresh_access_token", AsyncMock())
    connector.get = methods.get("get", AsyncMock())
    return connector


def _stored(store_id: int = 123, refresh: str | None = "R") -> StoredToken:
    return StoredToken(
        store_id=store_id,
        access_token="A",
        refresh_token=refresh,
        created_at=datetime.now(timezone.utc),
    )


def _mock_store(current: StoredToken | None = None) -> MagicMock:
    store = MagicMock()
    store.get = AsyncMock(return_value=current)
    store.save = AsyncMock(side_effect=lambda store_id, grant: _stored(store_id, grant.refresh_token))
    return store


# ── exchange ───────────────────────────────────────────────────────────────────


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_store_id_comes_from_token_response(self):
        grant = TokenGrant(access_token="A", refresh_token="R", user_id=123)
        connector = _mock_connector(exchange_code=AsyncMock(return_value=grant))
        store = _mock_store()

        saved = await exchange_code("code", connector=connector, store=store)

        assert saved.store_id == 123
        store.save.assert_awaited_once_with(123, grant)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [None, ""])
    async def test_missing_code(self, code):
        connector = _mock_connector()
        store = _mock_store()

        with pytest.raises(MissingInput):
            await exchange_code(code, connector=connector, store=store)

        connector.exchange_code.assert_not_awaited()
        store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_user_id_is_not_saved(self):
        connector = _mock_connector(
            exchange_code=AsyncMock(return_value=TokenGrant(access_token="A"))
        )
        store = _mock_store()

        with pytest.raises(InvalidProviderResponse):
            await exchange_code("code", connector=connector, store=store)
        store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_failure_is_not_saved(self):
        connector = _mock_connector(
            exchange_code=AsyncMock(side_effect=UpstreamFailure(status=401, body="nope"))
        )
        store = _mock_store()

        with pytest.raises(UpstreamFailure):
            await exchange_code("code", connector=connector, store=store)
        store.save.assert_not_awaited()


# ── refresh ────────────────────────────────────────────────────────────────────


class TestRefresh:
    @pytest.mark.asyncio
    async def test_no_refresh_token_makes_no_call(self):
        connector = _mock_connector()
        store = _mock_store(_stored(refresh=None))

        with pytest.raises(InvalidState):
            await refresh_store_token(123, connector=connector, store=store)

        connector.refresh_access_token.assert_not_awaited()
        store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_store(self):
        connector = _mock_connector()

        with pytest.raises(NotFound):
            await refresh_store_token(5, connector=connector, store=_mock_store(None))
        connector.refresh_access_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rotated_refresh_token_is_saved(self):
        connector = _mock_connector(
            refresh_access_token=AsyncMock(
                return_value=TokenGrant(access_token="B", refresh_token="R2")
            )
        )
        store = _mock_store(_stored(refresh="R"))

        await refresh_store_token(123, connector=connector, store=store)

        connector.refresh_access_token.assert_awaited_once_with("R")
        store_id, grant = store.save.await_args.args
        assert store_id == 123
        assert (grant.access_token, grant.refresh_token) == ("B", "R2")

    @pytest.mark.asyncio
    async def test_unrotated_refresh_token_is_kept(self):
        connector = _mock_connector(
            refresh_access_token=AsyncMock(return_value=TokenGrant(access_token="B"))
        )
        store = _mock_store(_stored(refresh="R"))

        await refresh_store_token(123, connector=connector, store=store)

        _, grant = store.save.await_args.args
        assert grant.refresh_token == "R"


# ── product proxy ──────────────────────────────────────────────────────────────


class TestFetchProducts:
    @pytest.mark.asyncio
    async def test_uses_stored_token(self):
        connector = _mock_connector(get=AsyncMock(return_value="response"))
        store = _mock_store(_stored(store_id=77))

        result = await fetch_store_products(77, connector=connector, store=store)

        assert result == "response"
        connector.get.assert_awaited_once_with("77/products", "A")

    @pytest.mark.asyncio
    async def test_unknown_store(self):
        connector = _mock_connector()
        with pytest.raises(NotFound):
            await fetch_store_products(77, connector=connector, store=_mock_store(None))
        connector.get.assert_not_awaited()
