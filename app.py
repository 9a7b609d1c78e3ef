"""
app.py — Flask entry point for the farm management API.

Initializes the Flask app from environment defaults (overridable with
test_config), builds the record store / repositories once, registers the
JSON blueprints and maps application errors to HTTP statuses.

Run: python app.py → localhost:5000
"""

import logging
import os

from flask import Flask
from flask_wtf.csrf import CSRFProtect

from routes.common import register_error_handlers
from routes.crops import crops_bp
from routes.expenses import expenses_bp
from routes.farms import farms_bp
from routes.main import main_bp
from routes.tasks import tasks_bp
from services import build_services
from store import get_db_path


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


def _env_float(name):
    value = os.environ.get(name)
    return float(value) if value else None


def configure_logging(level):
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.secret_key = os.environ.get('SECRET_KEY', 'farmlog-local-app-secret-key')
    app.config['WTF_CSRF_CHECK_DEFAULT'] = True
    app.config['WTF_CSRF_ENABLED'] = _env_flag('WTF_CSRF_ENABLED', True)

    app.config.update(
        FARMLOG_BACKEND=os.environ.get('FARMLOG_BACKEND', 'local'),
        FARMLOG_DB_PATH=get_db_path(),
        FARMLOG_SIMULATE_LATENCY=_env_flag('FARMLOG_SIMULATE_LATENCY', False),
        FARMLOG_SEED=True,
        FARMLOG_API_BASE_URL=os.environ.get('FARMLOG_API_BASE_URL', ''),
        FARMLOG_API_KEY=os.environ.get('FARMLOG_API_KEY'),
        FARMLOG_API_TIMEOUT=float(os.environ.get('FARMLOG_API_TIMEOUT', '20')),
        FARMLOG_WEATHER_MODE=os.environ.get('FARMLOG_WEATHER_MODE', 'mock'),
        FARMLOG_WEATHER_LAT=_env_float('FARMLOG_WEATHER_LAT'),
        FARMLOG_WEATHER_LON=_env_float('FARMLOG_WEATHER_LON'),
        FARMLOG_WEATHER_LOCATION=os.environ.get('FARMLOG_WEATHER_LOCATION'),
        LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
    )

    if test_config:
        app.config.update(test_config)

    configure_logging(app.config['LOG_LEVEL'])
    CSRFProtect(app)

    # Ensure the local store directory exists
    db_dir = os.path.dirname(os.path.abspath(app.config['FARMLOG_DB_PATH']))
    os.makedirs(db_dir, exist_ok=True)

    app.extensions['farmlog'] = build_services(app.config)
    app.logger.info("Record store backend: %s", app.config['FARMLOG_BACKEND'])

    register_error_handlers(app)

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(farms_bp)
    app.register_blueprint(crops_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(expenses_bp)

    return app


if __name__ == '__main__':
    app = create_app()
    # Set FLASK_DEBUG=0 to disable auto-reload
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
