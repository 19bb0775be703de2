"""API Blueprint for NETCAP REST endpoints."""

from flask import Blueprint

api_bp = Blueprint('api', __name__)

from netcap.blueprints.api import routes  # noqa: E402, F401
from netcap.blueprints.api import captures  # noqa: E402, F401
from netcap.blueprints.api import access_points  # noqa: E402, F401
