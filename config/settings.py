"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Environment ───────────────────────────────────────────────────────
    environment: str = "development"   # "production" hides stack traces

    # ── Security Secrets ──────────────────────────────────────────────────
    jwt_secret: str = "change-me-jwt-secret-key"       # HMAC secret for auth tokens
    jwt_algorithm: str = "HS256"
    jwt_expiry_seconds: int = 86400                     # 1 day
    bcrypt_rounds: int = 12                             # password hash cost factor

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./auth.db"

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: list = ["*"]
    log_format: str = "text"   # "text" | "json"

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "frozen": True,
    }

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")


config = Settings()
