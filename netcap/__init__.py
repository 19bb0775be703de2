"""NETCAP Application Factory.

This module provides the application factory pattern for creating Flask
application instances with the appropriate configuration.
"""

import atexit
import logging
from pathlib import Path

from flask import Flask

from netcap.config import config, parse_flag

logger = logging.getLogger(__name__)


def create_app(config_name='default'):
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name ('development', 'testing', 'production', 'default')

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Configure logging
    _configure_logging(app, config_name)

    # Load YAML overrides for controller and capture settings
    _load_yaml_config(app)

    # Build the controller client and packet capture manager
    _configure_capture_manager(app)

    # Register blueprints
    _register_blueprints(app)

    # Register error handlers
    _register_error_handlers(app)

    app.logger.info(f'Application created (config={config_name})')

    return app


def _configure_logging(app, config_name):
    """Configure application logging with NETCAP structured format.

    Args:
        app: Flask application instance
        config_name: Current configuration name
    """
    from netcap.logging_config import configure_logging
    configure_logging(app, config_name)


def _load_yaml_config(app):
    """Apply the optional YAML configuration file.

    The file may contain a 'controller' section (base_url, timeout_seconds,
    verify_tls) and a 'capture' section (poll_interval_seconds,
    progress_interval_seconds, packets_per_second). Environment variables
    set at startup keep precedence over the file.

    Args:
        app: Flask application instance
    """
    import os
    import yaml

    config_path = Path(app.config['NETCAP_CONFIG_PATH'])
    if not config_path.is_absolute():
        config_path = Path(app.root_path).parent / config_path

    if not config_path.exists():
        logger.debug(f'Config file not found, using defaults (path={config_path})')
        return

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f'Failed to load config file (path={config_path}, error={str(e)})')
        return

    controller = config_data.get('controller') or {}
    capture = config_data.get('capture') or {}

    mapping = [
        (controller, 'base_url', 'NETCAP_CONTROLLER_URL', 'NETCAP_CONTROLLER_URL'),
        (controller, 'timeout_seconds', 'NETCAP_CONTROLLER_TIMEOUT', None),
        (controller, 'verify_tls', 'NETCAP_VERIFY_TLS', 'NETCAP_VERIFY_TLS'),
        (capture, 'poll_interval_seconds', 'NETCAP_POLL_INTERVAL', None),
        (capture, 'progress_interval_seconds', 'NETCAP_PROGRESS_INTERVAL', None),
        (capture, 'packets_per_second', 'NETCAP_PACKETS_PER_SECOND', None),
    ]
    for section, key, config_key, env_name in mapping:
        if key not in section:
            continue
        if env_name and env_name in os.environ:
            continue
        app.config[config_key] = section[key]

    logger.info(f'Config file loaded (path={config_path})')


def _configure_capture_manager(app):
    """Create the packet capture manager for this application.

    The manager is stored in app.extensions['capture_manager'] and its
    timers are cleared at interpreter exit.

    Args:
        app: Flask application instance
    """
    from netcap.core.capture import PacketCaptureManager
    from netcap.services import ControllerClient, PacketCaptureApi

    client = ControllerClient(
        base_url=app.config['NETCAP_CONTROLLER_URL'],
        access_token=app.config.get('NETCAP_CONTROLLER_TOKEN'),
        username=app.config.get('NETCAP_CONTROLLER_USER'),
        password=app.config.get('NETCAP_CONTROLLER_PASSWORD'),
        timeout=float(app.config['NETCAP_CONTROLLER_TIMEOUT']),
        verify_tls=parse_flag(app.config['NETCAP_VERIFY_TLS'], True),
    )

    manager = PacketCaptureManager(
        PacketCaptureApi(client),
        poll_interval=float(app.config['NETCAP_POLL_INTERVAL']),
        progress_interval=float(app.config['NETCAP_PROGRESS_INTERVAL']),
        packets_per_second=int(app.config['NETCAP_PACKETS_PER_SECOND']),
    )

    app.extensions['controller_client'] = client
    app.extensions['capture_manager'] = manager
    atexit.register(manager.shutdown)

    if app.config.get('NETCAP_LOAD_ACCESS_POINTS'):
        access_points = manager.refresh_access_points()
        app.logger.info(f'Capture manager configured (access_points={len(access_points)})')


def _register_blueprints(app):
    """Register all application blueprints.

    Args:
        app: Flask application instance
    """
    from netcap.blueprints.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')


def _register_error_handlers(app):
    """Register custom error handlers.

    Args:
        app: Flask application instance
    """
    from flask import jsonify

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({
            'success': False,
            'error': {
                'code': 'SYSTEM_NOT_FOUND',
                'message': 'The requested resource was not found',
                'details': {}
            }
        }), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({
            'success': False,
            'error': {
                'code': 'SYSTEM_METHOD_NOT_ALLOWED',
                'message': 'The method is not allowed for the requested URL',
                'details': {}
            }
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'success': False,
            'error': {
                'code': 'SYSTEM_INTERNAL_ERROR',
                'message': 'An internal server error occurred',
                'details': {}
            }
        }), 500
