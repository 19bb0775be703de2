"""NETCAP logging configuration with custom formatter.

Provides a custom formatter that transforms Python module paths
to short module names:
[YYYY-MM-DD HH:MM:SS][LEVEL][module.submodule] Message (key=value)

Examples:
    netcap.services.controller_client -> services.controller
    netcap.blueprints.api.captures -> api.captures
    netcap.core.capture.session_orchestrator -> capture.session
"""

import logging


class NetCapFormatter(logging.Formatter):
    """Custom formatter that produces short module names."""

    PACKAGE_PREFIX = 'netcap.'

    # Suffixes to remove for cleaner module names
    SUFFIXES_TO_STRIP = ('_manager', '_orchestrator', '_registry', '_client', '_service')

    def __init__(
        self,
        fmt: str = '[%(asctime)s][%(levelname)s][%(shortname)s] %(message)s',
        datefmt: str = '%Y-%m-%d %H:%M:%S',
    ):
        """Initialize the formatter.

        Args:
            fmt: Log format string. Use %(shortname)s for the short module name.
            datefmt: Date format string.
        """
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with short module name."""
        record.shortname = self._get_short_name(record.name)
        return super().format(record)

    def _get_short_name(self, name: str) -> str:
        """Transform full module path to short name.

        Args:
            name: Full Python module path (e.g., 'netcap.core.capture.status_poller')

        Returns:
            Short module name (e.g., 'capture.status_poller')
        """
        if not name.startswith(self.PACKAGE_PREFIX):
            return name

        name = name[len(self.PACKAGE_PREFIX):]

        # netcap.blueprints.api.captures -> api.captures
        if name.startswith('blueprints.'):
            name = name[11:]

        # core.capture.file_registry -> core.capture.file
        for suffix in self.SUFFIXES_TO_STRIP:
            if name.endswith(suffix):
                name = name[:-len(suffix)]
                break

        # core.capture.file -> capture.file
        if name.startswith('core.'):
            name = name[5:]

        return name


def configure_logging(app, config_name: str = 'default') -> None:
    """Configure application logging with NETCAP formatter.

    Args:
        app: Flask application instance.
        config_name: Configuration name for determining log level.
    """
    log_level = logging.DEBUG if app.config.get('DEBUG') else logging.INFO

    formatter = NetCapFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from external libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
