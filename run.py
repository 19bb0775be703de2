"""WSGI entry point for NETCAP application."""

import os
from netcap import create_app

# Use NETCAP_CONFIG for configuration selection (FLASK_ENV is deprecated in Flask 3.x)
config_name = os.environ.get('NETCAP_CONFIG', 'development')
app = create_app(config_name)

if __name__ == '__main__':
    # Development server - use gunicorn in production
    debug = os.environ.get('FLASK_DEBUG', '0') == '1'
    # The reloader would start a second capture manager with its own timers
    app.run(host='0.0.0.0', port=5000, debug=debug, use_reloader=False)
