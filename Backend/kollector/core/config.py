import os
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root from this file's location so the .env file is found
# no matter which directory the app is started from.
_config_dir = os.path.dirname(os.path.abspath(__file__))
_backend_dir = os.path.dirname(os.path.dirname(_config_dir))
_project_root = os.path.dirname(_backend_dir)
_dotenv_path = os.path.join(_project_root, '.env')


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["*"]

    # Discogs settings
    DISCOGS_BASE_URL: str = "https://api.discogs.com"
    DISCOGS_TOKEN: Optional[str] = None
    DISCOGS_USER_AGENT: str = "KollectorScum/1.0"
    DISCOGS_TIMEOUT_SECONDS: float = 30.0

    # Seed files and cover art
    DATA_PATH: str = os.path.join(_project_root, "data")
    IMAGES_PATH: str = os.path.join(_project_root, "images")
    IMAGES_BASE_URL: Optional[str] = None
    IMAGE_STORAGE: str = "local"

    # Cloudflare R2 (S3 compatible) settings
    R2_ENDPOINT: Optional[str] = None
    R2_ACCESS_KEY_ID: Optional[str] = None
    R2_SECRET_ACCESS_KEY: Optional[str] = None
    R2_BUCKET_NAME: str = "cover-art"

    model_config = SettingsConfigDict(
        env_file=_dotenv_path,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, value: str) -> str:
        # Hosting providers hand out plain postgres URLs; the engine needs asyncpg.
        if value.startswith("postgres://"):
            return value.replace("postgres://", "postgresql+asyncpg://", 1)
        if value.startswith("postgresql://"):
            return value.replace("postgresql://", "postgresql+asyncpg://", 1)
        return value

    @field_validator("IMAGE_STORAGE")
    @classmethod
    def known_storage(cls, value: str) -> str:
        value = value.lower()
        if value not in ("local", "r2"):
            raise ValueError("IMAGE_STORAGE must be 'local' or 'r2'")
        return value


settings = Settings()
