"""Request and response contracts for the HTTP API.

Byte strings (hashes, secrets, proofs) travel as hex, with or without 0x.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fusionswap.ledger.models import DutchAuction, Escrow, FusionOrder
from fusionswap.services.escrow_service import EscrowResolution

HEX_RE = re.compile(r"^(0x)?([a-fA-F0-9]{2})*$")


def from_hex(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _validate_hex(value: str) -> str:
    value = value.strip()
    if not HEX_RE.match(value):
        raise ValueError(f"Invalid hex string: {value}")
    return value


class DepositRequest(BaseModel):
    """Credit an account from outside the ledger."""

    asset: str = Field(..., min_length=1, max_length=66)
    amount: int = Field(..., gt=0)


class BalanceResponse(BaseModel):
    holder: str
    asset: str
    amount: int


class CreateAuctionRequest(BaseModel):
    maker: str = Field(..., min_length=1, max_length=66)
    order_hash: str = Field(..., min_length=1, max_length=130)
    hashes: list[str] = Field(..., description="Hex-encoded 32-byte secret hashes")
    asset: str = Field(..., min_length=1, max_length=66)
    starting_amount: int = Field(..., ge=0)
    ending_amount: int = Field(..., ge=0)
    start_time: int = Field(..., ge=0)
    end_time: int = Field(..., ge=0)
    decay_duration: int = Field(..., ge=0)
    safety_deposit: int = Field(..., ge=0)
    resolver_whitelist: list[str]

    @field_validator("hashes")
    @classmethod
    def validate_hashes(cls, v: list[str]) -> list[str]:
        return [_validate_hex(h) for h in v]


class CreateOrderRequest(BaseModel):
    maker: str = Field(..., min_length=1, max_length=66)
    order_hash: str = Field(..., min_length=1, max_length=130)
    hashes: list[str] = Field(..., description="Hex-encoded 32-byte secret hashes")
    asset: str = Field(..., min_length=1, max_length=66)
    amount: int = Field(..., ge=0)
    safety_deposit: int = Field(..., ge=0)
    resolver_whitelist: list[str]
    stale_timestamp: Optional[int] = Field(None, ge=0)

    @field_validator("hashes")
    @classmethod
    def validate_hashes(cls, v: list[str]) -> list[str]:
        return [_validate_hex(h) for h in v]


class FillRequest(BaseModel):
    taker: str = Field(..., min_length=1, max_length=66)
    upto_segment: Optional[int] = Field(None, description="Omit for single-fill orders")
    now: Optional[int] = Field(None, ge=0, description="Override the ledger clock")


class CancelRequest(BaseModel):
    caller: str = Field(..., min_length=1, max_length=66)
    now: Optional[int] = Field(None, ge=0)


class WithdrawRequest(BaseModel):
    caller: str = Field(..., min_length=1, max_length=66)
    secret: str
    proof: Optional[list[str]] = None
    now: Optional[int] = Field(None, ge=0)

    @field_validator("secret")
    @classmethod
    def validate_secret(cls, v: str) -> str:
        return _validate_hex(v)

    @field_validator("proof")
    @classmethod
    def validate_proof(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is None:
            return v
        return [_validate_hex(p) for p in v]


class RecoveryRequest(BaseModel):
    caller: str = Field(..., min_length=1, max_length=66)
    now: Optional[int] = Field(None, ge=0)


class AuctionResponse(BaseModel):
    address: str
    order_hash: str
    maker: str
    hashlock: str
    hash_count: int
    asset: str
    starting_amount: int
    ending_amount: int
    start_time: int
    end_time: int
    decay_duration: int
    safety_deposit_asset: str
    safety_deposit: int
    resolver_whitelist: list[str]
    fill_watermark: Optional[int]

    @classmethod
    def from_model(cls, auction: DutchAuction) -> "AuctionResponse":
        return cls(
            address=auction.address,
            order_hash=auction.order_hash,
            maker=auction.maker,
            hashlock=auction.hashlock_commitment.hex(),
            hash_count=auction.hashlock_leaf_count,
            asset=auction.asset,
            starting_amount=auction.starting_amount,
            ending_amount=auction.ending_amount,
            start_time=auction.start_time,
            end_time=auction.end_time,
            decay_duration=auction.decay_duration,
            safety_deposit_asset=auction.safety_deposit_asset,
            safety_deposit=auction.safety_deposit,
            resolver_whitelist=list(auction.resolver_whitelist),
            fill_watermark=auction.fill_watermark,
        )


class PriceResponse(BaseModel):
    address: str
    now: int
    current_amount: int


class OrderResponse(BaseModel):
    address: str
    order_hash: str
    maker: str
    hashlock: str
    hash_count: int
    asset: str
    amount: int
    safety_deposit_asset: str
    safety_deposit: int
    resolver_whitelist: list[str]
    fill_watermark: Optional[int]
    stale_timestamp: Optional[int]

    @classmethod
    def from_model(cls, order: FusionOrder) -> "OrderResponse":
        return cls(
            address=order.address,
            order_hash=order.order_hash,
            maker=order.maker,
            hashlock=order.hashlock_commitment.hex(),
            hash_count=order.hashlock_leaf_count,
            asset=order.asset,
            amount=order.amount,
            safety_deposit_asset=order.safety_deposit_asset,
            safety_deposit=order.safety_deposit,
            resolver_whitelist=list(order.resolver_whitelist),
            fill_watermark=order.fill_watermark,
            stale_timestamp=order.stale_timestamp,
        )


class EscrowResponse(BaseModel):
    address: str
    order_hash: str
    maker: str
    taker: str
    is_source_chain: bool
    asset: str
    amount: int
    safety_deposit_asset: str
    safety_deposit: int
    hashlock: str
    hash_count: int
    segment_index: Optional[int]
    timelock_created_at: int
    durations: list[int]
    phase: Optional[str] = None

    @classmethod
    def from_model(cls, escrow: Escrow, phase: Optional[str] = None) -> "EscrowResponse":
        return cls(
            address=escrow.address,
            order_hash=escrow.order_hash,
            maker=escrow.maker,
            taker=escrow.taker,
            is_source_chain=escrow.is_source_chain,
            asset=escrow.asset,
            amount=escrow.amount,
            safety_deposit_asset=escrow.safety_deposit_asset,
            safety_deposit=escrow.safety_deposit,
            hashlock=escrow.hashlock_commitment.hex(),
            hash_count=escrow.hashlock_leaf_count,
            segment_index=escrow.segment_index,
            timelock_created_at=escrow.timelock_created_at,
            durations=list(escrow.timelock.get_durations()),
            phase=phase,
        )


class ResolutionResponse(BaseModel):
    escrow_address: str
    order_hash: str
    phase: str
    asset: str
    amount: int
    asset_recipient: str
    safety_deposit_asset: str
    safety_deposit: int
    safety_deposit_recipient: str

    @classmethod
    def from_resolution(cls, resolution: EscrowResolution) -> "ResolutionResponse":
        return cls(
            escrow_address=resolution.escrow_address,
            order_hash=resolution.order_hash,
            phase=resolution.phase.value,
            asset=resolution.asset,
            amount=resolution.amount,
            asset_recipient=resolution.asset_recipient,
            safety_deposit_asset=resolution.safety_deposit_asset,
            safety_deposit=resolution.safety_deposit,
            safety_deposit_recipient=resolution.safety_deposit_recipient,
        )


class CancelResponse(BaseModel):
    address: str
    refunded: int


class ErrorResponse(BaseModel):
    code: str
    detail: str
