"""Tests for FastAPI Application Factory."""

import pytest
from fastapi.testclient import TestClient

from concierge_api import create_app
from concierge_api.app import AppState, app_state, get_app_state
from concierge_config import ConciergeConfig, ConfigurationError


@pytest.fixture
def reset_app_state():
    """Reset application state before and after tests."""
    app_state.pipeline = None
    app_state.notifier = None
    app_state.conversation_log = None
    app_state.ticket_repository = None
    app_state.config = None
    yield
    app_state.pipeline = None
    app_state.notifier = None
    app_state.conversation_log = None
    app_state.ticket_repository = None
    app_state.config = None


class TestCreateApp:
    """Tests for create_app factory function."""

    def test_create_app_without_config(self, reset_app_state):
        """Test creating app with default configuration."""
        app = create_app()

        assert app.title == "Concierge Guest Reply Service"
        assert app.version == "0.1.0"
        assert app_state.config == ConciergeConfig()
        assert app_state.pipeline is not None
        assert app_state.notifier is not None

    def test_create_app_with_config(self, reset_app_state):
        """Test creating app with a pre-loaded configuration."""
        config = ConciergeConfig(language="english")

        create_app(config=config)

        assert app_state.config is config
        assert app_state.pipeline.config is config

    def test_create_app_from_yaml(self, tmp_path, reset_app_state):
        """Test creating app from a configuration file."""
        config_file = tmp_path / "concierge.yaml"
        config_file.write_text("confidence:\n  escalation_threshold: 0.8\n", encoding="utf-8")

        create_app(config_path=str(config_file))

        assert app_state.config.confidence.escalation_threshold == 0.8

    def test_create_app_with_invalid_yaml(self, tmp_path, reset_app_state):
        """Test an invalid configuration file fails fast."""
        config_file = tmp_path / "concierge.yaml"
        config_file.write_text("confidence:\n  escalation_threshold: 5\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            create_app(config_path=str(config_file))

    def test_create_app_with_cors_origins(self, reset_app_state):
        """Test creating app with custom CORS origins."""
        app = create_app(cors_origins=["http://localhost:3000"])

        middleware_classes = [m.cls.__name__ for m in app.user_middleware]
        assert "CORSMiddleware" in middleware_classes

    def test_get_app_state(self, reset_app_state):
        """Test the shared state container is returned."""
        assert get_app_state() is app_state


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, reset_app_state):
        """Test health check when the pipeline is configured."""
        client = TestClient(create_app())

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["pipeline_configured"] is True

    def test_health_check_without_pipeline(self, reset_app_state):
        """Test health check after the pipeline was torn down."""
        client = TestClient(create_app())
        app_state.pipeline = None

        response = client.get("/health")

        assert response.json()["pipeline_configured"] is False


class TestMetricsEndpoint:
    """Tests for the Prometheus metrics endpoint."""

    def test_metrics_exposed(self, reset_app_state):
        """Test metrics are exported in the Prometheus text format."""
        client = TestClient(create_app())
        client.get("/conversations/nobody")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "concierge_http_requests_total" in response.text


class TestRootEndpoint:
    """Tests for root endpoint."""

    def test_root_endpoint(self, reset_app_state):
        """Test root endpoint returns welcome message."""
        client = TestClient(create_app())

        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "Concierge" in data["message"]
        assert data["version"] == "0.1.0"
        assert data["docs_url"] == "/docs"


class TestAppState:
    """Tests for AppState class."""

    def test_app_state_initialization(self):
        """Test AppState initializes with None values."""
        state = AppState()

        assert state.config is None
        assert state.pipeline is None
        assert state.notifier is None
        assert state.conversation_log is None
