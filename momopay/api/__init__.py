"""
API Blueprints Package
Registers all API blueprints
"""

from momopay.api.collections import collections_bp
from momopay.api.health import health_bp

# Export blueprints
__all__ = [
    'collections_bp',
    'health_bp'
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app

    Args:
        app: Flask application instance
    """

    url_base : str = '/api/v1'

    app.register_blueprint(collections_bp, url_prefix=f'{url_base}/collections')
    app.register_blueprint(health_bp, url_prefix=url_base)
