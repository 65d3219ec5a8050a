import logging
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError, UserLookupError
from flask_cors import CORS
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_restx import Api
from jwt.exceptions import PyJWTError
from werkzeug.exceptions import HTTPException
from agrilink.config import Config
from agrilink.errors import ApiError

migrate = Migrate()
db = SQLAlchemy()
jwt = JWTManager()
bcrypt = Bcrypt()

logger = logging.getLogger(__name__)


def handle_api_error(error):
    return error.to_dict(), error.status_code


def handle_missing_token(error):
    return {'success': False, 'message': 'Access denied. No token provided.'}, 401


def handle_unknown_user(error):
    return {'success': False, 'message': 'User not found'}, 401


def handle_invalid_token(error):
    return {'success': False, 'message': 'Invalid or expired token.'}, 403


def handle_http_error(error):
    return {'success': False, 'message': error.description or error.name}, error.code or 500


def handle_unexpected_error(error):
    db.session.rollback()
    logger.exception(f'Unhandled error: {error}')
    return {'success': False, 'message': 'Internal server error'}, 500


def create_api():
    api = Api(
        title='Agrilink Ethiopia API',
        version='2.0',
        description='Marketplace API connecting farmers, buyers and delivery personnel',
        doc='/docs',
        ui_config={
            'displayOperationId': True,
            'docExpansion': 'none',
            'filter': True,
            'defaultModelsExpandDepth': 1,
            'defaultModelExpandDepth': 1
        },
        security=[{'BearerAuth': []}],  # Define JWT security
        authorizations={
            'BearerAuth': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'Authorization',
                'description': 'Enter your JWT token as "Bearer <token>"'
            }
        }
    )

    # Matched in registration order, so the catch-all goes last
    api.errorhandler(ApiError)(handle_api_error)
    api.errorhandler(NoAuthorizationError)(handle_missing_token)
    api.errorhandler(UserLookupError)(handle_unknown_user)
    api.errorhandler(JWTExtendedException)(handle_invalid_token)
    api.errorhandler(PyJWTError)(handle_invalid_token)
    api.errorhandler(HTTPException)(handle_http_error)
    api.errorhandler(Exception)(handle_unexpected_error)

    from .routes.system_routes import system_ns
    from .routes.auth_routes import auth_ns
    from .routes.product_routes import product_ns
    from .routes.order_routes import order_ns
    from .routes.users_routes import users_ns
    from .routes.delivery_routes import delivery_ns
    from .routes.admin_routes import admin_ns

    api.add_namespace(system_ns, path='/api')
    api.add_namespace(auth_ns, path='/api/auth')
    api.add_namespace(product_ns, path='/api/products')
    api.add_namespace(order_ns, path='/api/orders')
    api.add_namespace(users_ns, path='/api/users')
    api.add_namespace(delivery_ns, path='/api/delivery')
    api.add_namespace(admin_ns, path='/api/admin')
    return api


def _engine_options(app):
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        return {}
    return {'pool_size': app.config.get('DB_POOL_SIZE', 10), 'pool_pre_ping': True}


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', _engine_options(app))
    logging.getLogger('agrilink').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    bcrypt.init_app(app)
    create_api().init_app(app)

    # Enable CORS
    CORS(app, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', '*')}},
         supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
         allow_headers=app.config.get('CORS_ALLOW_HEADERS', ["Content-Type", "Authorization"]),
         methods=app.config.get('CORS_METHODS', ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]))

    # Token -> user resolution for flask_jwt_extended.current_user
    from .utils.auth_middleware import setup_auth_middleware
    setup_auth_middleware(app)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'message': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'message': 'Method not allowed'}), 405

    @app.cli.command('init-db')
    def init_db():
        """Create tables and seed default settings."""
        from .services.settings_service import seed_default_settings
        db.create_all()
        seed_default_settings()
        print('Database initialized.')

    with app.app_context():
        from . import models  # noqa: F401  register tables before create_all
        db.create_all()  # Create all tables

    logger.info(f"Agrilink API created (auto-assign delivery: {app.config.get('AUTO_ASSIGN_DELIVERY')})")
    return app
