import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./finance_tracker.db"
    jwt_secret: str = "dev-only-secret-change-me-in-production-0000"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7
    bcrypt_rounds: int = 12
    password_reset_minutes: int = 15
    api_prefix: str = "/api"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )
    frontend_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_auth: str = "5 per 15 minutes"
    rate_limit_mutation: str = "20 per 15 minutes"
    rate_limit_default: str = "100 per 15 minutes"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
            jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", defaults.jwt_expires_minutes)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", defaults.bcrypt_rounds)),
            password_reset_minutes=int(
                os.getenv("PASSWORD_RESET_MINUTES", defaults.password_reset_minutes)
            ),
            api_prefix=os.getenv("API_PREFIX", defaults.api_prefix),
            cors_origins=_as_list(os.getenv("CORS_ORIGINS", ",".join(defaults.cors_origins))),
            frontend_url=os.getenv("FRONTEND_URL", defaults.frontend_url),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            rate_limit_enabled=_as_bool(os.getenv("RATE_LIMIT_ENABLED", "true")),
            rate_limit_auth=os.getenv("RATE_LIMIT_AUTH", defaults.rate_limit_auth),
            rate_limit_mutation=os.getenv("RATE_LIMIT_MUTATION", defaults.rate_limit_mutation),
            rate_limit_default=os.getenv("RATE_LIMIT_DEFAULT", defaults.rate_limit_default),
        )


@lru_cache
def get_settings() -> Settings:
    """Settings read from the environment, with a local .env file filling any gaps."""
    load_dotenv()
    return Settings.from_env()
