import os
import datetime as dt

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///expenses.db')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    JWT_SECRET_KEY = os.environ.get('AUTH_SECRET', 'change-me-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = dt.timedelta(
        minutes=int(os.environ.get('AUTH_SECRET_EXPIRES_MINUTES', '15')))
    JWT_REFRESH_TOKEN_EXPIRES = dt.timedelta(
        days=int(os.environ.get('AUTH_REFRESH_EXPIRES_DAYS', '1')))
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_COOKIE_SAMESITE = 'Lax'
    JWT_COOKIE_SECURE = os.environ.get('APP_ENV', os.environ.get('FLASK_ENV')) == 'production'
    JWT_COOKIE_CSRF_PROTECT = _env_flag('AUTH_COOKIE_CSRF', True)
