"""Unit tests for PacketCaptureManager."""

import pytest

from netcap.core.capture.capture_manager import PROGRESS_THREAD_NAME, PacketCaptureManager
from netcap.core.capture.status_poller import POLLER_THREAD_NAME
from netcap.models.capture import (
    CaptureConfig,
    CaptureLocation,
    RemoteRequestError,
    REMOTE_REQUEST_FAILED,
)
from netcap.services.thread_manager import get_thread_manager, reset_thread_manager


@pytest.fixture
def manager(mock_api, clock):
    """Manager with long intervals so timers never fire during a test."""
    reset_thread_manager()
    manager = PacketCaptureManager(mock_api, poll_interval=60, progress_interval=60, clock=clock)
    manager.refresh_access_points()
    yield manager
    manager.shutdown()
    reset_thread_manager()


def _wired(**kwargs):
    return CaptureConfig(location=CaptureLocation.WIRED, **kwargs)


class TestManagerLifecycle:
    """Tests for timer ownership."""

    def test_start_runs_both_timers(self, manager):
        """Test that a start runs the poller and the progress ticker."""
        manager.start_capture(_wired())

        assert manager.poller.is_running is True
        assert manager.progress_ticker_running is True

    def test_shutdown_clears_timers(self, manager):
        """Test that shutdown leaves no timer behind."""
        manager.start_capture(_wired())

        manager.shutdown()

        threads = get_thread_manager()
        assert threads.get_active_thread_count(POLLER_THREAD_NAME) == 0
        assert threads.get_active_thread_count(PROGRESS_THREAD_NAME) == 0

    def test_shutdown_closes_controller_connection(self, manager, mock_api):
        """Test that shutdown releases the controller session."""
        manager.shutdown()

        mock_api.close.assert_called()

    def test_shutdown_twice(self, manager):
        """Test that shutdown is safe to repeat."""
        manager.shutdown()
        manager.shutdown()
        assert manager.poller.is_running is False

    def test_stop_all_stops_timers(self, manager, mock_api):
        """Test that clearing every session stops both timers."""
        mock_api.start_capture.side_effect = [{"id": "a"}, {"id": "b"}]
        manager.start_capture(_wired())
        manager.start_capture(_wired())

        assert manager.stop_all_captures() == 2

        assert manager.poller.is_running is False
        assert manager.progress_ticker_running is False

    def test_refresh_with_remote_sessions_starts_timers(self, manager, mock_api):
        """Test that sessions found on refresh are polled."""
        mock_api.list_active_captures.return_value = [{"id": "remote", "duration": 60}]

        manager.refresh()

        assert manager.poller.is_running is True
        assert manager.progress_ticker_running is True


class TestManagerProgress:
    """Tests for progress snapshots."""

    def test_active_captures_include_progress(self, manager, clock):
        """Test progress reported with each session."""
        manager.start_capture(_wired(duration_minutes=1))
        clock.advance(15)
        manager.update_progress()

        captures = manager.get_active_captures()

        assert len(captures) == 1
        assert captures[0]["capture_id"] == "cap-1"
        assert captures[0]["progress"]["progress_percent"] == 25.0
        assert captures[0]["progress"]["remaining_seconds"] == 45.0


class TestManagerDelegation:
    """Tests for pass-through operations."""

    def test_validate_uses_known_access_points(self, manager):
        """Test wireless validation against loaded access points."""
        assert manager.validate(CaptureConfig(location=CaptureLocation.WIRELESS)).valid is True

    def test_estimate_uses_configured_rate(self, mock_api, clock):
        """Test that the manager's packet rate feeds estimates."""
        manager = PacketCaptureManager(mock_api, packets_per_second=200, clock=clock)
        assert manager.estimate(60, 0).estimated_size_mb == 1046

    def test_stop_failure_propagates(self, manager, mock_api):
        """Test that stop failures reach the caller."""
        manager.start_capture(_wired())
        mock_api.stop_capture.side_effect = RemoteRequestError(REMOTE_REQUEST_FAILED, "no")

        with pytest.raises(RemoteRequestError):
            manager.stop_capture("cap-1")

        assert manager.get_active_captures()[0]["status"] == "running"

    def test_files(self, manager, mock_api):
        """Test listing, downloading and deleting files."""
        mock_api.list_capture_files.return_value = [{"id": "f1", "filename": "a.pcap"}]
        mock_api.download_capture_file.return_value = b"data"

        assert [f.id for f in manager.list_files()] == ["f1"]
        assert manager.download_file("f1", "a.pcap") == b"data"
        manager.delete_file("f1", "a.pcap")
        assert manager.get_files() == []
