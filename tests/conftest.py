"""Pytest fixtures for NETCAP tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from netcap import create_app
from netcap.services.capture_api import PacketCaptureApi
from netcap.services.thread_manager import reset_thread_manager


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def app():
    """Create application for testing.

    Returns:
        Flask: Application configured for testing
    """
    reset_thread_manager()
    app = create_app('testing')
    yield app
    app.extensions['capture_manager'].shutdown()
    reset_thread_manager()


@pytest.fixture
def client(app):
    """Create test client.

    Args:
        app: Flask application fixture

    Returns:
        FlaskClient: Test client for making requests
    """
    return app.test_client()


@pytest.fixture
def clock():
    """Controllable clock starting at 2024-01-15 10:00:00 UTC."""
    return FakeClock()


@pytest.fixture
def mock_api():
    """PacketCaptureApi mock with an idle controller.

    Returns:
        MagicMock: API with empty active and file lists
    """
    api = MagicMock(spec=PacketCaptureApi)
    api.start_capture.return_value = {"id": "cap-1"}
    api.stop_capture.return_value = None
    api.stop_all_captures.return_value = None
    api.list_active_captures.return_value = []
    api.list_capture_files.return_value = []
    api.list_access_points.return_value = [
        {"serialNumber": "AP-001", "displayName": "Lobby"},
        {"serialNumber": "AP-002", "displayName": "Warehouse"},
    ]
    return api
