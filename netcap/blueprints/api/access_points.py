"""Access point API endpoints for NETCAP.

Exposes the access points known to the capture manager, used by the
dashboard to pick a wireless capture point.
"""

import logging

from flask import jsonify

from . import api_bp
from netcap.blueprints.api.captures import get_capture_manager

logger = logging.getLogger(__name__)


@api_bp.route('/access-points', methods=['GET'])
def list_access_points():
    """List locally known access points.

    Returns:
        JSON response with access points
    """
    access_points = get_capture_manager().get_access_points()
    return jsonify({
        "success": True,
        "access_points": [ap.to_dict() for ap in access_points],
    }), 200


@api_bp.route('/access-points/refresh', methods=['POST'])
def refresh_access_points():
    """Reload access points from the controller.

    A controller failure keeps the previous list.

    Returns:
        JSON response with access points
    """
    logger.info("POST /api/access-points/refresh called")

    access_points = get_capture_manager().refresh_access_points()
    return jsonify({
        "success": True,
        "access_points": [ap.to_dict() for ap in access_points],
    }), 200
