import os
from dataclasses import dataclass

from dotenv import load_dotenv

# A local .env (if any) fills in variables the environment leaves unset.
load_dotenv()


def _default_token_path() -> str:
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "studymate", "session.json")


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set STUDYMATE_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: STUDYMATE_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("STUDYMATE_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("STUDYMATE_DB_PATH", "./studymate.sqlite")
    )

    # Bump when the schema changes (recorded in app_config by scripts/init_db.py).
    SCHEMA_VERSION: str = os.environ.get("STUDYMATE_SCHEMA_VERSION", "studymate_v2")

    # -----------------
    # Auth (JWT)
    # -----------------
    # NOTE: In dev, this defaults to a fixed string so you can get started.
    # In production, you MUST set AUTH_JWT_SECRET to a strong random value.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours

    # Registration policy
    USERNAME_MIN_LENGTH: int = int(os.environ.get("USERNAME_MIN_LENGTH", "3"))
    PASSWORD_MIN_LENGTH: int = int(os.environ.get("PASSWORD_MIN_LENGTH", "5"))

    # -----------------
    # CORS
    # -----------------
    # The browser front end is served as static files; during development it
    # usually lives on another origin than the API.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5500,http://127.0.0.1:5500,http://localhost:8080",
    )

    # -----------------
    # Client sync layer
    # -----------------
    API_URL: str = os.environ.get("STUDYMATE_API_URL", "http://localhost:8000")
    TOKEN_PATH: str = os.environ.get("STUDYMATE_TOKEN_PATH") or _default_token_path()
    HTTP_TIMEOUT_SECONDS: float = float(os.environ.get("STUDYMATE_HTTP_TIMEOUT", "30"))


def load_config() -> Config:
    return Config()
