"""
Configuration management for the loyalty service.

FLASK_ENV picks one of the classes below; values come from the environment
(a local .env file is loaded first).
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Substrings that mark a placeholder secret
WEAK_SECRET_MARKERS = ('dev', 'change', 'default', 'test', 'secret', 'password')
MIN_SECRET_LENGTH = 32


def _env_flag(name: str, default: str = 'true') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(',') if item.strip()]


def normalize_database_url(url: str) -> str:
    """Heroku-style postgres:// URLs are rejected by SQLAlchemy 1.4+."""
    if url.startswith('postgres://'):
        return 'postgresql://' + url[len('postgres://'):]
    return url


class BaseConfig:
    """Settings shared by every environment."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')  # text or json

    # Browser origins allowed to call the API
    CORS_ORIGINS = _env_list('CORS_ORIGINS', '*')

    # Loyalty rules applied by the service layer
    ENFORCE_DAILY_STAMP_LIMIT = _env_flag('ENFORCE_DAILY_STAMP_LIMIT')
    APPLY_ENROLLMENT_BONUS = _env_flag('APPLY_ENROLLMENT_BONUS')


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = normalize_database_url(os.getenv('DATABASE_URL', 'sqlite:///loyalty_dev.db'))


class ProductionConfig(BaseConfig):
    DEBUG = False
    SECRET_KEY = os.getenv('SECRET_KEY', '')
    SQLALCHEMY_DATABASE_URI = normalize_database_url(os.getenv('DATABASE_URL', ''))

    # Card writes are short; a small pool with health checks is enough
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': int(os.getenv('DB_POOL_SIZE', '5')),
        'pool_recycle': 300,
        'pool_pre_ping': True,
    }


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOG_LEVEL = 'WARNING'
    ENFORCE_DAILY_STAMP_LIMIT = True
    APPLY_ENROLLMENT_BONUS = True


CONFIGS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}


def get_config(config_name: str = 'development'):
    """Config class for ``config_name``; unknown names fall back to development."""
    return CONFIGS.get(config_name, DevelopmentConfig)


def check_secret_key(secret_key: str) -> None:
    """
    Refuse to run production with a missing, short or placeholder SECRET_KEY.

    Raises:
        RuntimeError: Describing what is wrong with the key
    """
    if not secret_key:
        raise RuntimeError('SECRET_KEY must be set in production')
    lowered = secret_key.lower()
    marker = next((m for m in WEAK_SECRET_MARKERS if m in lowered), None)
    if marker:
        raise RuntimeError(f"SECRET_KEY looks like a placeholder (contains '{marker}')")
    if len(secret_key) < MIN_SECRET_LENGTH:
        raise RuntimeError(f'SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters')


def validate_config(config_name: str = 'development') -> None:
    """
    Fail fast on unsafe production settings. Other environments are not checked.

    Raises:
        RuntimeError: If the production SECRET_KEY or DATABASE_URL is unusable
    """
    if config_name != 'production':
        return
    check_secret_key(ProductionConfig.SECRET_KEY)
    if not ProductionConfig.SQLALCHEMY_DATABASE_URI:
        raise RuntimeError('DATABASE_URL must be set in production')
