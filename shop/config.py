"""Runtime configuration for the shop (read from the environment on every call)."""
import os
from typing import NamedTuple

# Used whenever JWT_SECRET is missing from the environment.
FALLBACK_JWT_SECRET = "super-secret-key-123"


class Settings(NamedTuple):
    database_url: str
    jwt_secret: str
    jwt_expires_in: str
    app_env: str
    upload_path: str
    config_dir: str
    log_level: str
    max_file_size: str


def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./shop.db"),
        jwt_secret=os.getenv("JWT_SECRET") or FALLBACK_JWT_SECRET,
        jwt_expires_in=os.getenv("JWT_EXPIRES_IN", "7d"),
        app_env=os.getenv("APP_ENV", "development"),
        upload_path=os.getenv("UPLOAD_PATH", "./uploads"),
        config_dir=os.getenv("CONFIG_DIR", "./config"),
        log_level=os.getenv("LOG_LEVEL", "DEBUG"),
        max_file_size=os.getenv("MAX_FILE_SIZE", "10MB"),
    )


def is_development() -> bool:
    return get_settings().app_env == "development"


def env(name: str):
    return os.environ.get(name)


def set_env(name: str, value) -> None:
    """Overwrite a process environment variable; falsy values leave it untouched."""
    if value:
        os.environ[name] = str(value)
