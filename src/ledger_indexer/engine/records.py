"""Domain records exchanged between the indexing core and its callers.

These are plain frozen dataclasses; the services map them to and from the
flat document dicts the store works with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ledger_indexer.errors.store_errors import InvalidQueryError

ASSET_COLLECTION = "asset"
PARCEL_COLLECTION = "parcel"

# Asset quantities are unsigned 64-bit
MAX_AMOUNT = 2**64 - 1


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetIdentity:
    """Stable key of an asset output: owner, type and originating outpoint."""

    address: str
    asset_type: str
    transaction_hash: str
    transaction_output_index: int

    @property
    def document_id(self) -> str:
        return (
            f"{self.address}-{self.asset_type}-"
            f"{self.transaction_hash}-{self.transaction_output_index}"
        )


@dataclass(frozen=True)
class AssetDescriptor:
    """What the output holds and how it is locked."""

    asset_type: str
    transaction_hash: str
    transaction_output_index: int
    amount: int
    lock_script_hash: str
    parameters: tuple[str, ...] = ()
    approver: str | None = None
    administrator: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            msg = f"amount must be an integer, got {self.amount!r}"
            raise InvalidQueryError(msg)
        if not 0 <= self.amount <= MAX_AMOUNT:
            msg = f"amount {self.amount} is outside 0..{MAX_AMOUNT}"
            raise InvalidQueryError(msg)


@dataclass(frozen=True)
class AssetRecord:
    """An indexed asset output together with its chain position."""

    address: str
    asset: AssetDescriptor
    block_number: int
    parcel_index: int
    transaction_index: int
    is_removed: bool = False

    @property
    def identity(self) -> AssetIdentity:
        return AssetIdentity(
            address=self.address,
            asset_type=self.asset.asset_type,
            transaction_hash=self.asset.transaction_hash,
            transaction_output_index=self.asset.transaction_output_index,
        )

    @property
    def sort_position(self) -> tuple[int, int, int, int]:
        return (
            self.block_number,
            self.parcel_index,
            self.transaction_index,
            self.asset.transaction_output_index,
        )

    def to_document(self) -> dict[str, Any]:
        """Flatten into the column layout of the ``asset`` collection."""
        return {
            "address": self.address,
            "asset_type": self.asset.asset_type,
            "transaction_hash": self.asset.transaction_hash,
            "transaction_output_index": self.asset.transaction_output_index,
            "amount": self.asset.amount,
            "lock_script_hash": self.asset.lock_script_hash,
            "parameters": list(self.asset.parameters),
            "approver": self.asset.approver,
            "administrator": self.asset.administrator,
            "block_number": self.block_number,
            "parcel_index": self.parcel_index,
            "transaction_index": self.transaction_index,
            "is_removed": self.is_removed,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> AssetRecord:
        return cls(
            address=doc["address"],
            asset=AssetDescriptor(
                asset_type=doc["asset_type"],
                transaction_hash=doc["transaction_hash"],
                transaction_output_index=doc["transaction_output_index"],
                amount=doc["amount"],
                lock_script_hash=doc["lock_script_hash"],
                parameters=tuple(doc.get("parameters") or ()),
                approver=doc.get("approver"),
                administrator=doc.get("administrator"),
            ),
            block_number=doc["block_number"],
            parcel_index=doc["parcel_index"],
            transaction_index=doc["transaction_index"],
            is_removed=bool(doc["is_removed"]),
        )


@dataclass(frozen=True)
class BalanceBucket:
    """Summed quantity and output count of one asset type for an address."""

    asset_type: str
    total_asset_quantity: int
    utxo_quantity: int


# ---------------------------------------------------------------------------
# Parcels
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParcelRecord:
    """A ledger parcel and where it was included."""

    hash: str
    block_number: int
    parcel_index: int
    signer: str
    action: dict[str, Any] = field(default_factory=dict)
    block_hash: str = ""
    seq: int = 0
    fee: int = 0
    network_id: str = ""
    sig: str = ""
    timestamp: int = 0
    is_retracted: bool = False

    @property
    def receiver(self) -> str | None:
        receiver = self.action.get("receiver")
        return receiver if isinstance(receiver, str) else None

    @property
    def sort_position(self) -> tuple[int, int]:
        return (self.block_number, self.parcel_index)

    def to_document(self) -> dict[str, Any]:
        return {
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "parcel_index": self.parcel_index,
            "seq": self.seq,
            "fee": self.fee,
            "network_id": self.network_id,
            "signer": self.signer,
            "sig": self.sig,
            "action": dict(self.action),
            "receiver": self.receiver,
            "timestamp": self.timestamp,
            "is_retracted": self.is_retracted,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> ParcelRecord:
        return cls(
            hash=doc["id"],
            block_number=doc["block_number"],
            parcel_index=doc["parcel_index"],
            signer=doc["signer"],
            action=dict(doc.get("action") or {}),
            block_hash=doc.get("block_hash") or "",
            seq=doc.get("seq") or 0,
            fee=doc.get("fee") or 0,
            network_id=doc.get("network_id") or "",
            sig=doc.get("sig") or "",
            timestamp=doc.get("timestamp") or 0,
            is_retracted=bool(doc["is_retracted"]),
        )
