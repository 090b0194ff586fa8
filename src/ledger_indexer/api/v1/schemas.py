"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas: they define the HTTP contract in
camelCase and map to and from the engine's frozen records.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ledger_indexer.engine.records import (
    MAX_AMOUNT,
    AssetDescriptor,
    AssetIdentity,
    AssetRecord,
    BalanceBucket,
    ParcelRecord,
)

_CAMEL = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


class AssetDescriptorSchema(BaseModel):
    """The asset held by an output."""

    model_config = _CAMEL

    asset_type: str = Field(alias="assetType")
    transaction_hash: str = Field(alias="transactionHash")
    transaction_output_index: int = Field(alias="transactionOutputIndex", ge=0)
    amount: int = Field(ge=0, le=MAX_AMOUNT)
    lock_script_hash: str = Field(alias="lockScriptHash")
    parameters: list[str] = Field(default_factory=list)
    approver: str | None = None
    administrator: str | None = None

    def to_descriptor(self) -> AssetDescriptor:
        return AssetDescriptor(
            asset_type=self.asset_type,
            transaction_hash=self.transaction_hash,
            transaction_output_index=self.transaction_output_index,
            amount=self.amount,
            lock_script_hash=self.lock_script_hash,
            parameters=tuple(self.parameters),
            approver=self.approver,
            administrator=self.administrator,
        )


class AssetRecordSchema(BaseModel):
    """PUT /api/v1/asset body and list item."""

    model_config = _CAMEL

    address: str
    asset: AssetDescriptorSchema
    block_number: int = Field(alias="blockNumber", ge=0)
    parcel_index: int = Field(alias="parcelIndex", ge=0)
    transaction_index: int = Field(alias="transactionIndex", ge=0)

    def to_record(self) -> AssetRecord:
        return AssetRecord(
            address=self.address,
            asset=self.asset.to_descriptor(),
            block_number=self.block_number,
            parcel_index=self.parcel_index,
            transaction_index=self.transaction_index,
        )

    @classmethod
    def from_record(cls, record: AssetRecord) -> dict[str, Any]:
        a = record.asset
        return cls(
            address=record.address,
            asset=AssetDescriptorSchema(
                asset_type=a.asset_type,
                transaction_hash=a.transaction_hash,
                transaction_output_index=a.transaction_output_index,
                amount=a.amount,
                lock_script_hash=a.lock_script_hash,
                parameters=list(a.parameters),
                approver=a.approver,
                administrator=a.administrator,
            ),
            block_number=record.block_number,
            parcel_index=record.parcel_index,
            transaction_index=record.transaction_index,
        ).model_dump(mode="json", by_alias=True)


class AssetIdentitySchema(BaseModel):
    """POST /api/v1/asset/remove and /asset/revival body."""

    model_config = _CAMEL

    address: str
    asset_type: str = Field(alias="assetType")
    transaction_hash: str = Field(alias="transactionHash")
    transaction_output_index: int = Field(alias="transactionOutputIndex", ge=0)

    def to_identity(self) -> AssetIdentity:
        return AssetIdentity(
            address=self.address,
            asset_type=self.asset_type,
            transaction_hash=self.transaction_hash,
            transaction_output_index=self.transaction_output_index,
        )


class UTXOPageResponse(BaseModel):
    """One page of outputs plus the token for the next page."""

    model_config = _CAMEL

    items: list[dict[str, Any]] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")


class BalanceBucketSchema(BaseModel):
    """Aggregated balance of one asset type."""

    model_config = _CAMEL

    asset_type: str = Field(alias="assetType")
    total_asset_quantity: int = Field(alias="totalAssetQuantity")
    utxo_quantity: int = Field(alias="utxoQuantity")

    @classmethod
    def from_bucket(cls, bucket: BalanceBucket) -> dict[str, Any]:
        return cls(
            asset_type=bucket.asset_type,
            total_asset_quantity=bucket.total_asset_quantity,
            utxo_quantity=bucket.utxo_quantity,
        ).model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Parcels
# ---------------------------------------------------------------------------


class ParcelSchema(BaseModel):
    """PUT /api/v1/parcel body and parcel responses."""

    model_config = _CAMEL

    hash: str
    block_number: int = Field(alias="blockNumber", ge=0)
    block_hash: str = Field(default="", alias="blockHash")
    parcel_index: int = Field(alias="parcelIndex", ge=0)
    seq: int = 0
    fee: int = 0
    network_id: str = Field(default="", alias="networkId")
    signer: str
    sig: str = ""
    action: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = 0
    is_retracted: bool = Field(default=False, alias="isRetracted")

    def to_record(self) -> ParcelRecord:
        return ParcelRecord(
            hash=self.hash,
            block_number=self.block_number,
            block_hash=self.block_hash,
            parcel_index=self.parcel_index,
            seq=self.seq,
            fee=self.fee,
            network_id=self.network_id,
            signer=self.signer,
            sig=self.sig,
            action=self.action,
            timestamp=self.timestamp,
            is_retracted=self.is_retracted,
        )

    @classmethod
    def from_record(cls, record: ParcelRecord) -> dict[str, Any]:
        return cls(
            hash=record.hash,
            block_number=record.block_number,
            block_hash=record.block_hash,
            parcel_index=record.parcel_index,
            seq=record.seq,
            fee=record.fee,
            network_id=record.network_id,
            signer=record.signer,
            sig=record.sig,
            action=record.action,
            timestamp=record.timestamp,
            is_retracted=record.is_retracted,
        ).model_dump(mode="json", by_alias=True)


class ParcelPageResponse(BaseModel):
    """One page of parcels plus the token for the next page."""

    model_config = _CAMEL

    items: list[dict[str, Any]] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")
