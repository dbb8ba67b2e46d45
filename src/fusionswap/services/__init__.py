"""Swap services: auctions, fusion orders and escrows."""

from fusionswap.services.auction_service import AuctionService
from fusionswap.services.escrow_service import EscrowResolution, EscrowService
from fusionswap.services.fusion_order_service import FusionOrderService

__all__ = [
    "AuctionService",
    "EscrowResolution",
    "EscrowService",
    "FusionOrderService",
]
