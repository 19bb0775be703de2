"""Unit tests for logging_config module."""

import logging

from netcap.logging_config import NetCapFormatter


class TestNetCapFormatterShortName:
    """Tests for _get_short_name transformation."""

    def setup_method(self):
        """Create formatter instance for each test."""
        self.formatter = NetCapFormatter()

    def test_removes_package_prefix(self):
        """Test that 'netcap.' prefix is removed."""
        assert self.formatter._get_short_name('netcap.services.interval_timer') == 'services.interval_timer'

    def test_collapses_blueprints(self):
        """Test that 'netcap.blueprints.' is collapsed to the blueprint name."""
        assert self.formatter._get_short_name('netcap.blueprints.api.captures') == 'api.captures'
        assert self.formatter._get_short_name('netcap.blueprints.api.access_points') == 'api.access_points'

    def test_removes_core_prefix(self):
        """Test that 'core.' prefix is removed."""
        assert self.formatter._get_short_name('netcap.core.capture.status_poller') == 'capture.status_poller'
        assert self.formatter._get_short_name('netcap.core.capture.validation') == 'capture.validation'

    def test_strips_known_suffixes(self):
        """Test that component suffixes are stripped."""
        assert self.formatter._get_short_name('netcap.core.capture.session_orchestrator') == 'capture.session'
        assert self.formatter._get_short_name('netcap.core.capture.file_registry') == 'capture.file'
        assert self.formatter._get_short_name('netcap.services.controller_client') == 'services.controller'
        assert self.formatter._get_short_name('netcap.services.thread_manager') == 'services.thread'

    def test_preserves_external_names(self):
        """Test that names outside the package are left alone."""
        assert self.formatter._get_short_name('werkzeug.serving') == 'werkzeug.serving'
        assert self.formatter._get_short_name('netcap') == 'netcap'


class TestNetCapFormatterFormat:
    """Tests for log record formatting."""

    def test_format_includes_short_name(self):
        """Test that formatted output includes level, short name and message."""
        record = logging.LogRecord(
            name='netcap.core.capture.capture_manager',
            level=logging.INFO,
            pathname='',
            lineno=0,
            msg='Capture started (capture_id=c1)',
            args=(),
            exc_info=None,
        )

        formatted = NetCapFormatter().format(record)

        assert '[capture.capture]' in formatted
        assert '[INFO]' in formatted
        assert 'Capture started (capture_id=c1)' in formatted
        assert formatted.startswith('[20')
