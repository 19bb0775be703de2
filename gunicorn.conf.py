"""Gunicorn configuration for NETCAP production deployment."""

# Server socket
bind = '0.0.0.0:8080'

# Capture sessions live in process memory: one worker, several threads
workers = 1
worker_class = 'gthread'
threads = 4

# Timeout (start requests may wait up to 30s on the controller)
timeout = 60

# Logging
accesslog = '-'
errorlog = '-'
loglevel = 'info'

raw_env = ['NETCAP_CONFIG=production']
