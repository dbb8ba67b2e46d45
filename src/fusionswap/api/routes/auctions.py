"""Dutch auction endpoints."""

from typing import Optional

from fastapi import APIRouter, status

from fusionswap.api.schemas import (
    AuctionResponse,
    CancelRequest,
    CancelResponse,
    CreateAuctionRequest,
    EscrowResponse,
    FillRequest,
    PriceResponse,
    from_hex,
)
from fusionswap.ledger.database import get_db
from fusionswap.router import SwapRouter
from fusionswap.utils.clock import resolve_now

router = APIRouter()


@router.post("/auctions", response_model=AuctionResponse, status_code=status.HTTP_201_CREATED)
async def create_auction(request: CreateAuctionRequest):
    async with get_db() as session:
        auction = await SwapRouter(session).create_auction(
            maker=request.maker,
            order_hash=request.order_hash,
            hashes=[from_hex(h) for h in request.hashes],
            asset=request.asset,
            starting_amount=request.starting_amount,
            ending_amount=request.ending_amount,
            start_time=request.start_time,
            end_time=request.end_time,
            decay_duration=request.decay_duration,
            safety_deposit=request.safety_deposit,
            resolver_whitelist=request.resolver_whitelist,
        )
        return AuctionResponse.from_model(auction)


@router.get("/auctions/{address}", response_model=AuctionResponse)
async def get_auction(address: str):
    async with get_db() as session:
        auction = await SwapRouter(session).auctions.get_auction(address)
        return AuctionResponse.from_model(auction)


@router.get("/auctions/{address}/price", response_model=PriceResponse)
async def get_auction_price(address: str, now: Optional[int] = None):
    now = resolve_now(now)
    async with get_db() as session:
        amount = await SwapRouter(session).auctions.get_current_amount(address, now)
        return PriceResponse(address=address, now=now, current_amount=amount)


@router.post(
    "/auctions/{address}/fill",
    response_model=EscrowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fill_auction(address: str, request: FillRequest):
    async with get_db() as session:
        swap_router = SwapRouter(session)
        if request.upto_segment is None:
            escrow = await swap_router.deploy_destination_single_fill(
                request.taker, address, request.now
            )
        else:
            escrow = await swap_router.deploy_destination_partial_fill(
                request.taker, address, request.upto_segment, request.now
            )
        return EscrowResponse.from_model(escrow)


@router.post("/auctions/{address}/cancel", response_model=CancelResponse)
async def cancel_auction(address: str, request: CancelRequest):
    async with get_db() as session:
        refunded = await SwapRouter(session).cancel_auction(request.caller, address)
        return CancelResponse(address=address, refunded=refunded)
