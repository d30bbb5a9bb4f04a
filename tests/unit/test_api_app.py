"""
Unit Tests for API Application Module

Tests the FastAPI application factory and lifespan.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import FastAPI
from fastapi.testclient import TestClient


def configure(mock_settings, debug=True, backend="memory"):
    mock_settings.debug = debug
    mock_settings.api_version = "v1"
    mock_settings.app_env = "development"
    mock_settings.clients_backend = backend
    mock_settings.log_level = "INFO"


# ============================================================
# Application Factory Tests
# ============================================================


class TestCreateApp:
    """Test create_app factory function."""

    def test_create_app_returns_fastapi(self):
        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings)

            from billhook.api.app import create_app

            app = create_app()

            assert isinstance(app, FastAPI)
            assert app.title == "billhook API"

    def test_create_app_debug_docs_enabled(self):
        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings, debug=True)

            from billhook.api.app import create_app

            app = create_app()

            assert app.docs_url == "/docs"
            assert app.openapi_url == "/openapi.json"

    def test_create_app_prod_docs_disabled(self):
        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings, debug=False)

            from billhook.api.app import create_app

            app = create_app()

            assert app.docs_url is None
            assert app.redoc_url is None
            assert app.openapi_url is None

    def test_webhook_route_registered(self):
        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings)

            from billhook.api.app import create_app

            app = create_app()

        assert app.url_path_for("stripe_webhook") == "/api/v1/webhooks/stripe"
        assert app.url_path_for("health_check") == "/health"

    def test_create_app_explicit_settings(self, test_settings):
        from billhook.api.app import create_app

        test_settings.api_version = "v2"
        app = create_app(test_settings)

        assert app.state.settings is test_settings
        assert app.url_path_for("stripe_webhook") == "/api/v2/webhooks/stripe"

    def test_lifespan_with_memory_backend(self, test_settings):
        """Test a real dispatcher is built and serves deliveries."""
        from billhook.api.app import create_app

        with TestClient(create_app(test_settings)) as client:
            response = client.post("/api/v1/webhooks/stripe", content=b"{}")

        assert response.status_code == 400
        assert response.json()["received"] is False


# ============================================================
# Lifespan Tests
# ============================================================


class TestLifespan:
    """Test startup and shutdown wiring."""

    def test_lifespan_builds_and_closes_dispatcher(self):
        mock_dispatcher = MagicMock()
        mock_dispatcher.close = AsyncMock()

        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings, backend="memory")
            with patch(
                "billhook.webhooks.build_dispatcher",
                AsyncMock(return_value=mock_dispatcher),
            ):
                from billhook.api.app import create_app

                app = create_app()
                with TestClient(app) as client:
                    assert client.app.state.dispatcher is mock_dispatcher
                    assert client.get("/health/live").status_code == 200

        mock_dispatcher.close.assert_awaited_once()

    def test_lifespan_redis_backend(self):
        mock_dispatcher = MagicMock()
        mock_dispatcher.close = AsyncMock()

        with patch("billhook.api.app.settings") as mock_settings:
            configure(mock_settings, backend="redis")
            with patch("billhook.db.redis.init_redis", AsyncMock()) as mock_init, \
                    patch("billhook.db.redis.close_redis", AsyncMock()) as mock_close, \
                    patch(
                        "billhook.webhooks.build_dispatcher",
                        AsyncMock(return_value=mock_dispatcher),
                    ):
                from billhook.api.app import create_app

                with TestClient(create_app()):
                    mock_init.assert_awaited_once()

            mock_close.assert_awaited_once()


# ============================================================
# Logging Tests
# ============================================================


class TestConfigureLogging:
    """Test structlog level filtering."""

    def test_configures_level(self):
        from billhook.api.app import configure_logging

        with patch("billhook.api.app.structlog.configure") as mock_configure, \
                patch("billhook.api.app.structlog.make_filtering_bound_logger") as mock_filter:
            configure_logging("warning")

        mock_filter.assert_called_once_with(30)
        mock_configure.assert_called_once()

    def test_unknown_level_falls_back_to_info(self):
        from billhook.api.app import configure_logging

        with patch("billhook.api.app.structlog.configure"), \
                patch("billhook.api.app.structlog.make_filtering_bound_logger") as mock_filter:
            configure_logging("chatty")

        mock_filter.assert_called_once_with(20)
