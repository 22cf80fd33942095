"""
Content Translator Application
==============================
Flask application factory and main entry point.
"""
from flask import Flask, jsonify
from flask_cors import CORS

from content_translator.config import config
from content_translator.database.connection import Database, get_database
from content_translator.services.ai_client import AIGatewayClient, get_ai_client
from content_translator.api.context import AppServices, EXTENSION_NAME
from content_translator.api.jobs import JobManager
from content_translator.api.routes import (
    create_translation_blueprint,
    create_health_check_blueprint,
    create_evaluation_blueprint,
    create_system_blueprint,
    create_logs_blueprint
)
from content_translator.api.middleware import add_rate_limit_headers
from content_translator.utils.exceptions import (
    ExternalServiceError,
    NotFoundError,
    StaleJobError,
    TranslatorError,
    ValidationError
)
from content_translator.utils.logging import get_logger, debug_print


def create_app(
    testing: bool = False,
    database: Database = None,
    client: AIGatewayClient = None,
    sleep=None
) -> Flask:
    """
    Application factory for Flask app.

    Args:
        testing: If True, configure for testing and run jobs inline
        database: Database to serve (default: the global database)
        client: AI gateway client (default: the global client)
        sleep: Replacement for time.sleep in rate limit backoff

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    app.config.update(
        SECRET_KEY=config.server.secret_key,
        JSON_SORT_KEYS=False,
        TESTING=testing
    )

    cors_origins = config.server.cors_origins
    if testing:
        cors_origins = ['*']

    CORS(
        app,
        resources={r"/api/*": {"origins": cors_origins}},
        supports_credentials=True
    )

    services = AppServices(
        database=database or get_database(),
        client=client or get_ai_client(),
        jobs=JobManager(run_inline=testing)
    )
    if sleep is not None:
        services.sleep = sleep
    app.extensions[EXTENSION_NAME] = services

    app.register_blueprint(create_translation_blueprint())
    app.register_blueprint(create_health_check_blueprint())
    app.register_blueprint(create_evaluation_blueprint())
    app.register_blueprint(create_system_blueprint())
    app.register_blueprint(create_logs_blueprint())

    app.after_request(add_rate_limit_headers)

    logger = get_logger().api_logger

    @app.errorhandler(ValidationError)
    def validation_failed(e):
        logger.warning(f"Validation failed: {e.errors}")
        return jsonify({'error': 'Validation failed', 'details': e.errors}), 400

    @app.errorhandler(StaleJobError)
    def stale_job(e):
        return jsonify({
            'error': str(e),
            'language_code': e.language_code,
            'minutes_stale': e.minutes_stale
        }), 409

    @app.errorhandler(NotFoundError)
    def missing_resource(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(ExternalServiceError)
    def upstream_failed(e):
        logger.error(f"AI gateway error: {e}")
        return jsonify({
            'error': str(e),
            'status_code': e.status_code,
            'rate_limited': e.rate_limited
        }), 429 if e.rate_limited else 502

    @app.errorhandler(TranslatorError)
    def translator_error(e):
        logger.error(f"Pipeline error: {e}")
        return jsonify({'error': str(e)}), 500

    @app.errorhandler(400)
    def bad_request(e):
        return {'error': 'Bad request', 'details': str(e)}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Resource not found'}, 404

    @app.errorhandler(429)
    def rate_limited(e):
        return {'error': 'Rate limit exceeded'}, 429

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(f"Internal error: {e}")
        return {'error': 'Internal server error'}, 500

    logger.info(f"Content Translator started on {config.server.host}:{config.server.port}")

    if config.logging.verbose_debug:
        debug_print("🚀 Application initialized", 'INFO', 'APP')

    return app


def run_server():
    """Run the Flask development server."""
    app = create_app()

    print(f"""
Content Translator
  Server: http://{config.server.host}:{config.server.port}
  Source: {config.pipeline.source_language}
  Model:  {config.ai.model}
  Debug:  {'Enabled' if config.logging.verbose_debug else 'Disabled'}
    """)

    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
        threaded=True
    )


if __name__ == '__main__':
    run_server()
