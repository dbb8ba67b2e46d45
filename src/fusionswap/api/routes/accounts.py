"""Asset store endpoints."""

from fastapi import APIRouter

from fusionswap.api.schemas import BalanceResponse, DepositRequest
from fusionswap.ledger.database import get_db
from fusionswap.router import SwapRouter

router = APIRouter()


@router.post("/accounts/{address}/deposits", response_model=BalanceResponse)
async def deposit(address: str, request: DepositRequest):
    """Credit an account. Stands in for funds arriving from the underlying ledger."""
    async with get_db() as session:
        amount = await SwapRouter(session).deposit(address, request.asset, request.amount)
        return BalanceResponse(holder=address, asset=request.asset, amount=amount)


@router.get("/accounts/{address}/balances/{asset}", response_model=BalanceResponse)
async def get_balance(address: str, asset: str):
    async with get_db() as session:
        amount = await SwapRouter(session).balance(address, asset)
        return BalanceResponse(holder=address, asset=asset, amount=amount)
