import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or os.urandom(32).hex()
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'glossary.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB request bodies

    # Terms
    TERMS_PER_PAGE = int(os.environ.get("TERMS_PER_PAGE", "6"))
    TERM_TITLE_MAX_LENGTH = int(os.environ.get("TERM_TITLE_MAX_LENGTH", "255"))
    TERM_CONTENT_MAX_LENGTH = int(os.environ.get("TERM_CONTENT_MAX_LENGTH", "10000"))
    TAG_NAME_MAX_LENGTH = int(os.environ.get("TAG_NAME_MAX_LENGTH", "100"))

    TRUST_PROXY = os.environ.get("TRUST_PROXY", "false").lower() == "true"

    # Rate limiting
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "200 per hour")
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")


class DevelopmentConfig(Config):
    DEBUG = True

    @classmethod
    def init_app(cls, app):
        if not os.environ.get("SECRET_KEY"):
            app.logger.warning("SECRET_KEY not set, using an ephemeral key.")


class ProductionConfig(Config):
    DEBUG = False
    TRUST_PROXY = os.environ.get("TRUST_PROXY", "true").lower() == "true"

    @classmethod
    def init_app(cls, app):
        secret_key = os.environ.get("SECRET_KEY", "").strip()
        if not secret_key:
            raise RuntimeError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise RuntimeError(
                "SECRET_KEY is too short for production (minimum 32 characters). "
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        lowered_secret = secret_key.lower()
        weak_markers = ("changeme", "change-this", "replace", "secret", "example", "default")
        if any(marker in lowered_secret for marker in weak_markers):
            raise RuntimeError(
                "SECRET_KEY appears to be a placeholder and is not allowed in production. "
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )

        # Rate-limit counters live in process memory; more than one worker
        # would split them.
        web_concurrency = os.environ.get("WEB_CONCURRENCY")
        if web_concurrency:
            try:
                worker_count = int(web_concurrency)
            except ValueError as exc:
                raise RuntimeError("WEB_CONCURRENCY must be an integer when set.") from exc
            if worker_count <= 0:
                raise RuntimeError("WEB_CONCURRENCY must be at least 1 when set.")
        else:
            worker_count = 1

        if worker_count > 1 and cls.RATELIMIT_STORAGE_URI.startswith("memory://"):
            raise RuntimeError(
                f"WEB_CONCURRENCY is set to {web_concurrency} but rate limiting uses in-memory storage. "
                "Set WEB_CONCURRENCY=1 or point RATELIMIT_STORAGE_URI at a shared backend."
            )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    SERVER_NAME = "localhost"
    SECRET_KEY = "testing-secret-key"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
