"""Graceful shutdown handling for the application."""

import asyncio
from typing import List, Callable, Awaitable
import structlog


logger = structlog.get_logger(__name__)


class GracefulShutdownHandler:
    """Handler for graceful application shutdown."""

    def __init__(self, callback_timeout: float = 10.0):
        """Initialize shutdown handler."""
        self._shutdown_callbacks: List[Callable[[], Awaitable[None]]] = []
        self._is_shutting_down = False
        self._shutdown_lock = asyncio.Lock()
        self.callback_timeout = callback_timeout

    @property
    def is_shutting_down(self) -> bool:
        return self._is_shutting_down

    def add_shutdown_callback(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Add a callback to be executed during shutdown."""
        self._shutdown_callbacks.append(callback)

    async def shutdown(self) -> None:
        """Perform graceful shutdown."""
        async with self._shutdown_lock:
            if self._is_shutting_down:
                return

            self._is_shutting_down = True
            logger.info("Starting graceful shutdown")

            # Execute shutdown callbacks in reverse order with timeout
            for callback in reversed(self._shutdown_callbacks):
                callback_name = getattr(callback, "__name__", str(callback))
                try:
                    await asyncio.wait_for(callback(), timeout=self.callback_timeout)
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Shutdown callback {callback_name} timed out after "
                        f"{self.callback_timeout} seconds"
                    )
                except Exception as e:
                    logger.error(
                        f"Error in shutdown callback {callback_name}", error=str(e)
                    )

            logger.info("Graceful shutdown completed")


# Global shutdown handler instance
shutdown_handler = GracefulShutdownHandler()


async def close_readiness_waiter() -> None:
    """Close the HTTP client used for readiness probes."""
    from ..dependencies.services import get_readiness_waiter

    await asyncio.wait_for(get_readiness_waiter().close(), timeout=3.0)
    logger.info("Readiness waiter closed")


async def close_runtime_gateway() -> None:
    """Close the Docker client connection."""
    from ..dependencies.services import get_runtime_gateway

    loop = asyncio.get_event_loop()
    await asyncio.wait_for(
        loop.run_in_executor(None, get_runtime_gateway().close), timeout=5.0
    )
    logger.info("Runtime gateway closed")


async def flush_logs() -> None:
    """Give pending log writes a moment to complete."""
    logger.info("Flushing logs")
    await asyncio.sleep(0.1)


def setup_graceful_shutdown() -> None:
    """Setup graceful shutdown handling."""
    # Add shutdown callbacks in order of execution (reversed during shutdown)
    shutdown_handler.add_shutdown_callback(flush_logs)
    shutdown_handler.add_shutdown_callback(close_runtime_gateway)
    shutdown_handler.add_shutdown_callback(close_readiness_waiter)

    logger.info("Graceful shutdown handling configured")
