"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fusionswap import __version__
from fusionswap.config import get_settings
from fusionswap.errors import AUTHORIZATION_CODES, ObjectDoesNotExistError, SwapError
from fusionswap.ledger.database import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    await init_db()
    yield
    await close_db()


def error_status(exc: SwapError) -> int:
    if isinstance(exc, ObjectDoesNotExistError):
        return status.HTTP_404_NOT_FOUND
    if exc.code in AUTHORIZATION_CODES:
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_400_BAD_REQUEST


async def swap_error_handler(request: Request, exc: SwapError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=error_status(exc),
        content={"code": exc.code, "detail": exc.message},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FusionSwap API",
        description="Hashlock/timelock atomic swap ledger",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SwapError, swap_error_handler)

    from fusionswap.api.routes import accounts, auctions, escrows, health, orders

    app.include_router(health.router, tags=["Health"])
    app.include_router(accounts.router, prefix="/api/v1", tags=["Accounts"])
    app.include_router(auctions.router, prefix="/api/v1", tags=["Auctions"])
    app.include_router(orders.router, prefix="/api/v1", tags=["Orders"])
    app.include_router(escrows.router, prefix="/api/v1", tags=["Escrows"])

    return app


# Default app instance
app = create_app()
