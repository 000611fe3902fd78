"""Main entry point - runs the bridge API for one domain."""

import asyncio
import logging
import signal

import uvicorn

from lpbridge.api.app import create_app
from lpbridge.config import get_settings
from lpbridge.factory import build_domain
from lpbridge.ledger.database import close_db, init_db

logger = logging.getLogger(__name__)


class Application:
    """Serves one bridge domain over HTTP."""

    def __init__(self):
        self.settings = get_settings()
        self._shutdown_event = asyncio.Event()

    async def start(self):
        """Start all services."""
        # Configure logging
        log_level = logging.DEBUG if self.settings.debug else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        logger.info("Starting lpbridge...")
        logger.info(f"Environment: {self.settings.environment}")
        logger.info(f"Domain: {self.settings.domain_id} ({self.settings.liquidity_source} source)")
        if self.settings.dry_run:
            logger.warning("DRY_RUN enabled - transport, custody and swaps are simulated")

        # Initialize database
        await init_db()
        logger.info("Database initialized")

        domain = build_domain(self.settings)
        task = asyncio.create_task(self._run_api(domain))
        logger.info("API task created")

        # Wait for shutdown signal
        await self._shutdown_event.wait()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        await self._cleanup()

    async def _run_api(self, domain):
        """Run the FastAPI server."""
        try:
            app = create_app(domain)
            config = uvicorn.Config(
                app,
                host=self.settings.api_host,
                port=self.settings.api_port,
                log_level="debug" if self.settings.debug else "info",
            )
            server = uvicorn.Server(config)
            logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
            await server.serve()
        except asyncio.CancelledError:
            logger.info("API server cancelled")
        except Exception as e:
            logger.error(f"API error: {e}")
            raise
        finally:
            self._shutdown_event.set()

    async def _cleanup(self):
        """Cleanup resources."""
        logger.info("Cleaning up...")
        await close_db()
        logger.info("Cleanup complete")

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = Application()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
