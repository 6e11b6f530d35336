"""Main FastAPI application for the Enclave Deployer API."""

# Standard library imports
import asyncio
import sys
from contextlib import asynccontextmanager

# Third-party imports
import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

# Local application imports
from ._version import __version__
from .api import enclaves, health, admin
from .config import settings
from .middleware import RequestLoggingMiddleware
from .models.errors import EnclaveDeployerException
from .services.health import health_service
from .utils.config_validator import validate_configuration, get_configuration_summary
from .utils.error_handlers import (
    enclave_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from .utils.logging import setup_logging
from .utils.shutdown import setup_graceful_shutdown, shutdown_handler


# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Enclave Deployer API", version=__version__)

    # Setup graceful shutdown callbacks (uvicorn handles signals)
    setup_graceful_shutdown()

    # Validate configuration on startup (the runtime checks block, so run them off the loop)
    loop = asyncio.get_event_loop()
    if not await loop.run_in_executor(None, validate_configuration):
        logger.error("Configuration validation failed - shutting down")
        sys.exit(1)

    enclave_config = settings.enclave
    logger.info(
        "Enclave provisioning configuration",
        image=enclave_config.image,
        first_host_port=enclave_config.first_host_port,
        public_host=enclave_config.public_host,
        readiness_failure_policy=enclave_config.readiness_failure_policy,
    )

    # Probe the container runtime once
    try:
        logger.info("Performing initial health checks...")
        health_results = await health_service.check_all_services(use_cache=False)

        for service_name, result in health_results.items():
            if result.status.value == "healthy":
                logger.info(
                    f"{service_name} health check passed",
                    response_time_ms=result.response_time_ms,
                )
            else:
                logger.warning(
                    f"{service_name} health check failed",
                    status=result.status.value,
                    error=result.error,
                )

        overall_status = health_service.get_overall_status(health_results)
        logger.info(
            "Initial health checks completed", overall_status=overall_status.value
        )

    except Exception as e:
        logger.error("Initial health checks failed", error=str(e))
        # Don't fail startup if health checks fail

    logger.info("Enclave Deployer API startup completed")

    yield

    # Shutdown
    logger.info("Shutting down Enclave Deployer API")

    try:
        await shutdown_handler.shutdown()
    except Exception as e:
        logger.error("Error during graceful shutdown", error=str(e))

    logger.info("Enclave Deployer API shutdown completed")


app = FastAPI(
    title="Enclave Deployer API",
    description="Provisions isolated per-tenant enclave containers on a Docker host",
    version=__version__,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    debug=settings.api_debug,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Register global error handlers
app.add_exception_handler(EnclaveDeployerException, enclave_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/config", tags=["admin"])
async def config_info():
    """Configuration information endpoint (debug mode only)."""
    if not settings.api_debug:
        raise HTTPException(status_code=404, detail="Not found")

    return get_configuration_summary()


app.include_router(enclaves.router, tags=["enclaves"])

app.include_router(health.router, tags=["health", "monitoring"])

app.include_router(admin.router, tags=["admin"])


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "src.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
        timeout_keep_alive=settings.api_keep_alive_timeout,
        timeout_graceful_shutdown=settings.api_shutdown_timeout,
    )


if __name__ == "__main__":
    run_server()
