"""Flask application factory."""
from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from taqueria.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    
    # CSRF protection (JSON clients send the token in X-CSRFToken)
    CSRFProtect(app)
    
    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'La sesión ha expirado. Recarga la página.'}), 400
    
    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        
        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )
    
    # Prometheus request metrics
    from taqueria.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)
    
    # HTTPS behind Nginx
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)
    
    # Initialize database
    init_db(app)
    
    # Load the logged-in user before each request
    from taqueria.middleware import load_current_user
    
    @app.before_request
    def before_request_handler():
        load_current_user()
    
    # Error Handlers
    from taqueria.exceptions import PosError
    
    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"PosError [{error.status_code}] {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code
    
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Recurso no encontrado'}), 404
    
    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code
    
    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'message': 'Error interno del servidor'}), 500
    
    # Register blueprints
    from taqueria.blueprints.auth import auth_bp
    from taqueria.blueprints.pos import pos_bp
    from taqueria.blueprints.kitchen import kitchen_bp
    from taqueria.blueprints.orders import orders_bp
    from taqueria.blueprints.cash import cash_bp
    from taqueria.blueprints.inventory import inventory_bp
    from taqueria.blueprints.reports import reports_bp
    from taqueria.blueprints.users import users_bp
    from taqueria.blueprints.metrics import metrics_bp
    
    app.register_blueprint(auth_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(kitchen_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(cash_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(metrics_bp)
    
    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})
    
    # CLI commands
    from taqueria.cli_commands import init_cli_commands
    init_cli_commands(app)
    
    return app
