import os

from flask import Flask, jsonify

from momopay.config import config
from momopay.errors import AppError
from momopay.extensions import celery_app, init_celery


def create_app(config_name=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    app.config.from_object(config[config_name])

    # Logging
    from momopay.utils.logger import configure_app_logging, RequestLogger
    configure_app_logging(app)
    RequestLogger(app)

    # Initialize extensions
    init_celery(celery_app, app)

    from momopay.providers import init_collection_client
    init_collection_client(app)

    # Register blueprints
    from momopay.api import register_blueprints
    register_blueprints(app)

    # CLI
    from momopay.cli import sandbox_user
    app.cli.add_command(sandbox_user)

    # Error handlers
    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """Register error handlers"""

    @app.errorhandler(AppError)
    def app_error(error):
        if error.status_code >= 500:
            app.logger.error('%s: %s', error.error, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({'success': False, 'error': 'Bad request', 'message': str(error)}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Not found', 'message': str(error)}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed', 'message': str(error)}), 405

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({'success': False, 'error': 'Internal server error', 'message': str(error)}), 500
