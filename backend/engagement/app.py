"""
Engagement Engine - Scoring API
===============================
Main application entry point that configures Flask and registers blueprints.

This module:
- Creates the Flask application factory
- Wires the EngagementService into the app
- Registers all API blueprints
- Defines core routes (/health) and JSON error handlers

Route Organization:
- /health         -> Health check
- /api/score      -> Engagement prediction and suggestions
- /api/ml/*       -> Model retraining and lifecycle
"""

from flask import Flask, jsonify
from dotenv import load_dotenv
from flask_cors import CORS

from engagement import __version__
from engagement.routes.score_routes import score_bp
from engagement.routes.ml_routes import ml_bp
from engagement.config import get_config, apply_environment_overrides
from engagement.errors import EngagementError
from engagement.logging_config import get_research_logger
from engagement.services import EngagementService, get_service

# Load environment variables
load_dotenv()

logger = get_research_logger("app", log_to_file=False)


def create_app(config_override=None, service=None):
    """
    Application factory function.

    Args:
        config_override: Optional AppConfig instance to use instead of global config
        service: Optional EngagementService (built from the config if omitted)

    Returns:
        Configured Flask application instance
    """
    if config_override is not None:
        app_config = config_override
    else:
        app_config = apply_environment_overrides(get_config())

    if service is None:
        service = EngagementService(config=app_config) if config_override else get_service()

    app = Flask(__name__)
    CORS(app, origins=app_config.flask.cors_origins)

    # Store config and service in app for access in routes
    app.app_config = app_config
    app.engagement_service = service
    app.config['SECRET_KEY'] = app_config.flask.secret_key

    # ==========================================================================
    # REGISTER BLUEPRINTS
    # ==========================================================================

    app.register_blueprint(score_bp, url_prefix='/api/score')
    app.register_blueprint(ml_bp, url_prefix='/api/ml')

    logger.info(
        "Initialized Flask app",
        extra={
            'experiment': app_config.research.experiment_name,
            'model_name': app_config.predictor.model_name,
            'store_backend': app_config.store.backend
        }
    )

    # ==========================================================================
    # CORE ROUTES
    # ==========================================================================

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring."""
        return {
            'status': 'healthy',
            'experiment': app_config.research.experiment_name,
            'model_version': service.active.version or 'default',
            'version': __version__
        }, 200

    # ==========================================================================
    # ERROR HANDLERS
    # ==========================================================================

    @app.errorhandler(EngagementError)
    def engagement_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    flask_config = get_config().flask
    app.run(
        debug=flask_config.debug,
        host=flask_config.host,
        port=flask_config.port
    )
