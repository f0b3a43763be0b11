"""
LetterPortal Application Factory
Campus letter request service as a Flask JSON API
"""

import os
from flask import Flask, jsonify
from flask_cors import CORS
from letterportal.models import db
from letterportal.routes import auth_bp, student_bp, admin_bp, function_bp
from letterportal.services.realtime import ChangeFeed
from letterportal.services.storage_service import StorageService
from letterportal.utils import setup_logging, log_info, log_warning


def create_app(config_name: str = None) -> Flask:
    """
    Application factory

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    from config import config
    config_class = config.get(config_name, config['default'])
    app.config.from_object(config_class)
    config_class.init_app(app)

    # Initialize extensions
    db.init_app(app)
    CORS(app, supports_credentials=True)
    app.extensions['storage'] = StorageService.from_config(app.config)
    app.extensions['change_feed'] = ChangeFeed()

    # Setup logging
    with app.app_context():
        setup_logging()
        log_info("Application initialized")

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(student_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(function_bp, url_prefix='/functions')

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    # Create database tables
    with app.app_context():
        try:
            db.create_all()
            log_info("Database tables created successfully")
        except Exception as e:
            log_warning(f"Database initialization warning: {e}")

    return app
