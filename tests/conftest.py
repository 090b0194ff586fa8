"""Shared test fixtures for the ledger-indexer test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ledger_indexer.config.settings import AppConfig, DatabaseConfig
from ledger_indexer.engine.records import AssetDescriptor, AssetRecord, ParcelRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ledger_indexer.engine.client import IndexerEngine

# Well-formed testnet addresses (bech32 alphabet, >= 38 data chars)
ASSET_ADDRESS = "tca" + "qpzry9x8gf2tvdw0s3jn54khce6mua7l" + "qqqqqqqq"
OTHER_ASSET_ADDRESS = "tca" + "qpzry9x8gf2tvdw0s3jn54khce6mua7l" + "pppppppp"
PLATFORM_ADDRESS = "tcc" + "qpzry9x8gf2tvdw0s3jn54khce6mua7l" + "qqqqqqqq"
OTHER_PLATFORM_ADDRESS = "tcc" + "qpzry9x8gf2tvdw0s3jn54khce6mua7l" + "zzzzzzzz"

ASSET_TYPE = "5300" + "a" * 36
OTHER_ASSET_TYPE = "5300" + "b" * 36
THIRD_ASSET_TYPE = "5300" + "c" * 36


def make_asset(
    *,
    address: str = ASSET_ADDRESS,
    asset_type: str = ASSET_TYPE,
    tx_hash: str = "a" * 64,
    output_index: int = 0,
    amount: int = 100,
    block_number: int = 1,
    parcel_index: int = 0,
    transaction_index: int = 0,
) -> AssetRecord:
    """Build an asset record with sensible defaults."""
    return AssetRecord(
        address=address,
        asset=AssetDescriptor(
            asset_type=asset_type,
            transaction_hash=tx_hash,
            transaction_output_index=output_index,
            amount=amount,
            lock_script_hash="f" * 40,
            parameters=("ab" * 20,),
        ),
        block_number=block_number,
        parcel_index=parcel_index,
        transaction_index=transaction_index,
    )


def make_parcel(
    parcel_hash: str,
    *,
    block_number: int = 1,
    parcel_index: int = 0,
    signer: str = PLATFORM_ADDRESS,
    receiver: str | None = None,
) -> ParcelRecord:
    """Build a parcel record; a receiver turns the action into a payment."""
    action: dict[str, object] = {"action": "setRegularKey"}
    if receiver is not None:
        action = {"action": "payment", "receiver": receiver, "amount": 10}
    return ParcelRecord(
        hash=parcel_hash,
        block_number=block_number,
        parcel_index=parcel_index,
        signer=signer,
        action=action,
        block_hash="b" * 64,
        seq=block_number,
        fee=10,
        network_id="tc",
        sig="c" * 130,
        timestamp=1_700_000_000 + block_number,
    )


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig backed by in-memory SQLite."""
    return AppConfig(
        db=DatabaseConfig(
            dsn="sqlite+aiosqlite:///:memory:",
        ),
    )


@pytest.fixture
async def engine(app_config: AppConfig) -> AsyncIterator[IndexerEngine]:
    """Provide an initialized engine with empty collections."""
    from ledger_indexer.engine.client import IndexerEngine

    eng = IndexerEngine(app_config)
    await eng.initialize()
    yield eng
    await eng.close()
