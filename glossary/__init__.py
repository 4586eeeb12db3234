import logging
import os
from datetime import UTC
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate, upgrade

from .config import config_by_name
from .models import db

# In-memory storage; counters reset on process restart. Acceptable for
# single-worker deployments. For multi-worker setups use Redis storage.
limiter = Limiter(key_func=get_remote_address)
migrate = Migrate()

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def create_app(config_name=None):
    # Load .env so gunicorn (production) picks up env vars too
    from dotenv import load_dotenv

    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    config_cls = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_cls)
    if hasattr(config_cls, "init_app"):
        config_cls.init_app(app)

    if app.config.get("TRUST_PROXY"):
        from werkzeug.middleware.proxy_fix import ProxyFix

        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Configure logging
    _configure_logging(app)

    # Init extensions
    db.init_app(app)
    limiter.init_app(app)
    migrate.init_app(app, db, directory=str(MIGRATIONS_DIR))

    # Register blueprints
    from .tags.routes import tags_bp
    from .terms.routes import terms_bp

    app.register_blueprint(terms_bp, url_prefix="/api/terms")
    app.register_blueprint(tags_bp, url_prefix="/api/tags")

    # Register error handlers
    from .errors import register_error_handlers

    register_error_handlers(app)

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        return response

    # Health check endpoints
    @app.route("/ping")
    def ping():
        from datetime import datetime

        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
        }, 200

    @app.route("/health")
    def health():
        from datetime import datetime

        result = {"timestamp": datetime.now(UTC).isoformat()}

        # Check database connectivity
        try:
            db.session.execute(db.text("SELECT 1"))
            result["database"] = {"status": "ok"}
        except Exception:
            app.logger.exception("Health check database probe failed.")
            result["database"] = {"status": "error", "error": "unavailable"}

        db_ok = result["database"]["status"] == "ok"
        result["status"] = "ok" if db_ok else "degraded"
        return result, 200 if db_ok else 503

    # Apply pending Alembic migrations on startup
    with app.app_context():
        upgrade(directory=str(MIGRATIONS_DIR))

    return app


def _configure_logging(app):
    """Set up file-based logging with rotation for production."""
    if app.debug or app.testing:
        return

    log_dir = Path(app.root_path).parent / "logs"
    log_dir.mkdir(exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / "glossary.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=5,
    )
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    file_handler.setLevel(logging.INFO)
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
