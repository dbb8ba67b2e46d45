"""Fusion order endpoints."""

from fastapi import APIRouter, status

from fusionswap.api.schemas import (
    CancelRequest,
    CancelResponse,
    CreateOrderRequest,
    EscrowResponse,
    FillRequest,
    OrderResponse,
    from_hex,
)
from fusionswap.ledger.database import get_db
from fusionswap.router import SwapRouter

router = APIRouter()


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(request: CreateOrderRequest):
    async with get_db() as session:
        order = await SwapRouter(session).create_fusion_order(
            maker=request.maker,
            order_hash=request.order_hash,
            hashes=[from_hex(h) for h in request.hashes],
            asset=request.asset,
            amount=request.amount,
            safety_deposit=request.safety_deposit,
            resolver_whitelist=request.resolver_whitelist,
            stale_timestamp=request.stale_timestamp,
        )
        return OrderResponse.from_model(order)


@router.get("/orders/{address}", response_model=OrderResponse)
async def get_order(address: str):
    async with get_db() as session:
        order = await SwapRouter(session).orders.get_order(address)
        return OrderResponse.from_model(order)


@router.post(
    "/orders/{address}/fill",
    response_model=EscrowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fill_order(address: str, request: FillRequest):
    async with get_db() as session:
        swap_router = SwapRouter(session)
        if request.upto_segment is None:
            escrow = await swap_router.deploy_source_single_fill(
                request.taker, address, request.now
            )
        else:
            escrow = await swap_router.deploy_source_partial_fill(
                request.taker, address, request.upto_segment, request.now
            )
        return EscrowResponse.from_model(escrow)


@router.post("/orders/{address}/cancel", response_model=CancelResponse)
async def cancel_order(address: str, request: CancelRequest):
    async with get_db() as session:
        refunded = await SwapRouter(session).cancel_fusion_order(
            request.caller, address, request.now
        )
        return CancelResponse(address=address, refunded=refunded)
