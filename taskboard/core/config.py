from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # Ignore extra fields in .env
    )

    database_url: str = "sqlite:///./taskboard.db"

    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8010

    frontend_url: Optional[List[str]] = None

    upload_dir: str = "uploads"
    max_file_size: int = 5 * 1024 * 1024

    demo_email: str = "demo@example.com"
    demo_password: str = "demo123456"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


settings = Settings()
