from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os


class Settings(BaseSettings):
    APP_NAME: str = "SafeTap Pricing"
    DEBUG: bool = False

    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/safetap.db")

    @property
    def DATABASE_URL(self) -> str:
        # Resolve relative paths against the backend directory, not the cwd
        db_path = self.DATABASE_PATH
        if db_path == ":memory:":
            return "sqlite:///:memory:"
        if not os.path.isabs(db_path):
            backend_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
            db_path = os.path.join(backend_dir, db_path)
        return f"sqlite:///{os.path.abspath(db_path)}"

    SECRET_KEY: str = os.getenv("SECRET_KEY", "safetap-dev-secret-change-me")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:3001"]

    HOST: str = "127.0.0.1"
    PORT: int = 8765

    # Backoffice endpoints require this in the X-Admin-API-Key header
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    # Fall back to the built-in quantity tiers when the store has no active promotions
    USE_DEFAULT_PROMOTIONS: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
