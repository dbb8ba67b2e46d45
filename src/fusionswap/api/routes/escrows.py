"""Escrow endpoints."""

from typing import Optional

from fastapi import APIRouter

from fusionswap.api.schemas import (
    EscrowResponse,
    RecoveryRequest,
    ResolutionResponse,
    WithdrawRequest,
    from_hex,
)
from fusionswap.ledger.database import get_db
from fusionswap.router import SwapRouter
from fusionswap.utils.clock import resolve_now

router = APIRouter()


@router.get("/escrows/{address}", response_model=EscrowResponse)
async def get_escrow(address: str, now: Optional[int] = None):
    async with get_db() as session:
        escrow = await SwapRouter(session).escrows.get_escrow(address)
        phase = escrow.timelock.current_phase(resolve_now(now))
        return EscrowResponse.from_model(escrow, phase=phase.value)


@router.post("/escrows/{address}/withdraw", response_model=ResolutionResponse)
async def withdraw(address: str, request: WithdrawRequest):
    proof = [from_hex(p) for p in request.proof] if request.proof is not None else None
    async with get_db() as session:
        resolution = await SwapRouter(session).escrow_withdraw(
            request.caller, address, from_hex(request.secret), proof, request.now
        )
        return ResolutionResponse.from_resolution(resolution)


@router.post("/escrows/{address}/recovery", response_model=ResolutionResponse)
async def recovery(address: str, request: RecoveryRequest):
    async with get_db() as session:
        resolution = await SwapRouter(session).escrow_recovery(
            request.caller, address, request.now
        )
        return ResolutionResponse.from_resolution(resolution)
