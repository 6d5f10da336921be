"""
Print the stored tokens and check for duplicate store rows.
Usage: python check_tokens.py
"""
import asyncio
import logging
import sys

from config.settings import config
from connectors.encryption import TokenCipher
from connectors.errors import StorageError
from connectors.token_manager import TokenStore
from database.session import build_engine


async def check(store: TokenStore) -> int:
    tokens = await store.list()
    if not tokens:
        print("⚠️  No tokens stored yet.")
    else:
        print("🔍 Tokens found:")
        for token in tokens:
            print(f"   store {token.store_id} | token {token.access_token[:10]}...")

    print("\n📊 Checking for duplicates...")
    duplicates = await store.find_duplicates()
    if duplicates:
        for store_id, count in duplicates:
            print(f"⚠️  store {store_id} has {count} rows")
        return 1
    print("✅ No duplicates found.")
    return 0


async def main() -> int:
    engine = build_engine(config)
    try:
        store = TokenStore(engine, TokenCipher(config.token_encryption_key))
        return await check(store)
    except StorageError as exc:
        print(f"❌ Could not read the token database: {exc}")
        return 2
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    sys.exit(asyncio.run(main()))
