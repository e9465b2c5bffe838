import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SECRET_KEY = "your-secret-key"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 5000
    database_url: str = "sqlite:///./taskmanager.db"
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    admin_username: str = "admin"
    admin_email: str = "admin@example.com"
    admin_password: str = "admin123"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    expose_errors: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 5000)),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./taskmanager.db"),
            secret_key=os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)),
            admin_username=os.getenv("ADMIN_USERNAME", "admin"),
            admin_email=os.getenv("ADMIN_EMAIL", "admin@example.com"),
            admin_password=os.getenv("ADMIN_PASSWORD", "admin123"),
            cors_origins=_env_list("CORS_ORIGINS", ["*"]),
            expose_errors=_env_bool("EXPOSE_ERRORS", False),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
