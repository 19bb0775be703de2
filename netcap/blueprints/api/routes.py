"""API routes for NETCAP."""

import logging
from flask import jsonify

from . import api_bp

logger = logging.getLogger(__name__)


@api_bp.route('/health')
def health_check():
    """Health check endpoint.

    Returns:
        JSON response with status and version
    """
    return jsonify({
        'status': 'ok',
        'version': '0.1.0'
    }), 200
