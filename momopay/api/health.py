"""
Health Check Endpoint
"""

from flask import Blueprint, current_app, jsonify
from datetime import datetime, timezone

from momopay.providers import EXTENSION_KEY

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Basic health check endpoint

    Does not call the operator; it reports whether a collection
    client is configured.

    Returns:
        200 if the service is configured
        503 otherwise
    """
    client = current_app.extensions.get(EXTENSION_KEY)

    health_status = {
        'status': 'healthy' if client is not None else 'unhealthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'service': 'momopay',
        'version': '1.0.0',
        'checks': {
            'collection_client': {
                'status': 'healthy' if client is not None else 'unhealthy',
                'target_environment': client.target_environment if client is not None else None,
            }
        }
    }

    return jsonify(health_status), 200 if client is not None else 503
