"""
API blueprint for the local webhook receiver.
The blueprint is mounted under /<LEMON_SQUEEZY_PATH> by create_app(); this
module creates it and imports route modules so they register.
"""

from flask import Blueprint

api_bp = Blueprint('api', __name__)


# Import route modules so they register routes on api_bp.
from api import routes_webhook  # noqa: E402, F401
