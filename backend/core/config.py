import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


DEFAULT_JWT_SECRET = "change-me"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Startup configuration, read once and shared read-only by every request."""

    app_env: str = "development"
    database_url: str = "sqlite:///./db.sqlite"
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    session_cookie_name: str = "token"
    session_cookie_secure: bool = False
    upload_root: str = "./uploads"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @property
    def document_upload_dir(self) -> str:
        return os.path.join(self.upload_root, "documents")

    @property
    def submission_upload_dir(self) -> str:
        return os.path.join(self.upload_root, "submissions")


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./db.sqlite"),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "token"),
        session_cookie_secure=_get_bool(os.getenv("SESSION_COOKIE_SECURE"), default=False),
        upload_root=os.getenv("UPLOAD_ROOT", "./uploads"),
        cors_origins=_get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"]),
    )


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.lower() == "production" and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
