"""Configuration classes for NETCAP application."""

import os


def parse_flag(value, default=False):
    """Read a boolean from an environment string, a YAML scalar or a bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_flag(name, default):
    return parse_flag(os.environ.get(name), default)


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key'
    NETCAP_CONFIG_PATH = 'data/config/netcap.yaml'

    # Controller access (overridden by the YAML file, then by the environment)
    NETCAP_CONTROLLER_URL = os.environ.get('NETCAP_CONTROLLER_URL', 'https://localhost:443/management')
    NETCAP_CONTROLLER_TOKEN = os.environ.get('NETCAP_CONTROLLER_TOKEN')
    NETCAP_CONTROLLER_USER = os.environ.get('NETCAP_CONTROLLER_USER')
    NETCAP_CONTROLLER_PASSWORD = os.environ.get('NETCAP_CONTROLLER_PASSWORD')
    NETCAP_CONTROLLER_TIMEOUT = 10.0
    NETCAP_VERIFY_TLS = _env_flag('NETCAP_VERIFY_TLS', True)

    # Capture manager
    NETCAP_POLL_INTERVAL = 3.0
    NETCAP_PROGRESS_INTERVAL = 1.0
    NETCAP_PACKETS_PER_SECOND = 100
    NETCAP_LOAD_ACCESS_POINTS = True


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""

    DEBUG = False
    TESTING = True
    NETCAP_CONTROLLER_URL = 'http://controller.test/management'
    NETCAP_CONTROLLER_TOKEN = 'test-token'
    NETCAP_LOAD_ACCESS_POINTS = False


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
