"""Shared fixtures: a throwaway SQLite token database and settings."""

import pytest
import pytest_asyncio

from config.settings import Settings
from connectors.token_manager import TokenStore
from database.session import build_engine, init_schema


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tokens.db'}",
        client_id="4321",
        client_secret="shh",
        token_url="https://provider.test/apps/authorize/token",
        api_base_url="https://api.provider.test/v1",
        auth_base_url="https://provider.test",
        user_agent="TestApp (dev@example.com)",
        token_encryption_key="",
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(settings)
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine) -> TokenStore:
    return TokenStore(engine)
