"""Main entry point - serves the swap ledger API."""

import asyncio
import logging
from pathlib import Path

import uvicorn

from fusionswap.api.app import create_app
from fusionswap.config import Settings, get_settings
from fusionswap.ledger.database import async_database_url

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def ensure_database_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed sqlite database."""
    url = async_database_url(database_url)
    if not url.startswith("sqlite+aiosqlite:///") or ":memory:" in url:
        return
    path = Path(url[len("sqlite+aiosqlite:///"):])
    path.parent.mkdir(parents=True, exist_ok=True)


async def serve(settings: Settings) -> None:
    """Run uvicorn until interrupted. Tables are created by the app lifespan."""
    config = uvicorn.Config(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )
    logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")
    await uvicorn.Server(config).serve()


def main():
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings)

    logger.info("Starting FusionSwap...")
    logger.info(f"Environment: {settings.environment}")

    ensure_database_dir(settings.database_url)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
