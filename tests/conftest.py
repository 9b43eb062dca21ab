"""Shared fixtures."""
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app


@pytest.fixture
def settings():
    return Settings(_env_file=None, WEBHOOK_URL=None, EMAIL_USER=None, EMAIL_PASS=None, LOG_JSON=False)


@pytest.fixture
def make_client(settings):
    """Build a TestClient around an app wired with the given sinks."""

    def _make(*sinks, **overrides):
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        return TestClient(create_app(app_settings, sinks=list(sinks)))

    return _make
