"""Unit tests for the request logging middleware."""

from unittest.mock import AsyncMock, patch

import pytest

from src.config import LoggingConfig
from src.middleware import RequestLoggingMiddleware


def http_scope(path="/enclaves", method="POST"):
    return {
        "type": "http",
        "method": method,
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": [],
        "scheme": "http",
        "server": ("testserver", 80),
    }


async def ok_app(scope, receive, send):
    await send({"type": "http.response.start", "status": 201, "headers": []})
    await send({"type": "http.response.body", "body": b"{}"})


class TestRequestLoggingMiddleware:
    """Tests for RequestLoggingMiddleware."""

    @pytest.mark.asyncio
    async def test_logs_status_and_duration(self):
        """Test that one line per request carries status and duration."""
        middleware = RequestLoggingMiddleware(ok_app)
        send = AsyncMock()

        with patch("src.middleware.logging.logger") as mock_logger:
            await middleware(http_scope(), AsyncMock(), send)

        assert send.await_count == 2
        kwargs = mock_logger.info.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "/enclaves"
        assert kwargs["status"] == 201
        assert "duration_ms" in kwargs

    @pytest.mark.asyncio
    async def test_health_logged_once(self):
        """Test that repeated health checks are only logged the first time."""
        middleware = RequestLoggingMiddleware(ok_app)

        with patch("src.middleware.logging.logger") as mock_logger:
            await middleware(http_scope("/health", "GET"), AsyncMock(), AsyncMock())
            await middleware(http_scope("/health", "GET"), AsyncMock(), AsyncMock())

        assert mock_logger.info.call_count == 1

    @pytest.mark.asyncio
    async def test_errors_are_logged_and_reraised(self):
        """Test that application errors propagate after logging."""

        async def failing_app(scope, receive, send):
            raise RuntimeError("boom")

        middleware = RequestLoggingMiddleware(failing_app)

        with patch("src.middleware.logging.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware(http_scope(), AsyncMock(), AsyncMock())

        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_non_http_scopes_pass_through(self):
        """Test that lifespan scopes are not logged."""
        app = AsyncMock()
        middleware = RequestLoggingMiddleware(app)

        with patch("src.middleware.logging.logger") as mock_logger:
            await middleware({"type": "lifespan"}, AsyncMock(), AsyncMock())

        app.assert_awaited_once()
        mock_logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_access_logs_skip_logging(self):
        """Test that requests are passed through silently when access logs are off."""
        middleware = RequestLoggingMiddleware(ok_app, logging_config=LoggingConfig(enable_access_logs=False))
        send = AsyncMock()

        with patch("src.middleware.logging.logger") as mock_logger:
            await middleware(http_scope(), AsyncMock(), send)

        assert send.await_count == 2
        mock_logger.info.assert_not_called()
