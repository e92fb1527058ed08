"""Flask application factory."""
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect
from order_desk.database import init_db
import logging
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # CSRF protection for any browser form posts; the JSON API is exempt
    csrf = CSRFProtect(app)

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=app.config.get('ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize Redis Cache
    from order_desk.services.cache_service import init_cache
    init_cache(app)

    # Setup Prometheus metrics instrumentation
    from order_desk.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Error Handlers
    from order_desk.exceptions import OrderDeskError

    @app.errorhandler(OrderDeskError)
    def handle_order_desk_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"OrderDeskError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"OrderDeskError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        import traceback
        from werkzeug.exceptions import HTTPException
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code
        app.logger.error(f"Unhandled Exception on {request.path}: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from order_desk.blueprints.sales_orders import sales_orders_bp
    from order_desk.blueprints.metrics import metrics_bp

    app.register_blueprint(sales_orders_bp)
    app.register_blueprint(metrics_bp)
    csrf.exempt(sales_orders_bp)

    # Register CLI commands
    from order_desk.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
