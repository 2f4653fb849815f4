from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///logiflow.db')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES_HOURS', '12')))
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(logging.getLevelName(str(app.config['LOG_LEVEL']).upper()))

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.permissions import perms_bp
    from .routes.tasks import tasks_bp
    from .routes.dlc import dlc_bp
    from .routes.admin import admin_bp
    from .routes.dashboard import dashboard_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(perms_bp, url_prefix='/permissions')
    app.register_blueprint(tasks_bp, url_prefix='/tasks')
    app.register_blueprint(dlc_bp, url_prefix='/dlc-products')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.teardown_appcontext
    def remove_session(exc=None):
        SessionLocal.remove()

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        app.logger.exception('Unhandled exception')
        # a failed flush leaves the session unusable until rolled back
        SessionLocal.rollback()
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return {'error': {'status': 401, 'title': 'Unauthorized', 'detail': reason}}, 401

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return {'error': {'status': 401, 'title': 'Unauthorized', 'detail': reason}}, 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return {'error': {'status': 401, 'title': 'Unauthorized', 'detail': 'Token has expired'}}, 401

    # Role and stores are re-read from the user record on every request,
    # so demotion or deactivation applies to tokens already issued.
    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_payload):
        from logiflow.models.authz import User
        try:
            user_id = int(jwt_payload['sub'])
        except (KeyError, TypeError, ValueError):
            return None
        user = get_db().get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user

    @jwt.user_lookup_error_loader
    def unknown_user(jwt_header, jwt_payload):
        return {'error': {'status': 401, 'title': 'Unauthorized', 'detail': 'User inactive or unknown'}}, 401

    return app


def get_db():
    return SessionLocal()
