from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    PROJECT_NAME: str = "VideoTube"
    DATABASE_URL: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_SECRET: str
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    ALLOWED_ORIGINS: list[str] = []

    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    UPLOAD_TEMP_DIR: str = "./public/temp"
    UPLOAD_TEMP_MAX_AGE_HOURS: int = 24

    MAX_JSON_BODY_BYTES: int = 16 * 1024

    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "lax"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


@lru_cache
def get_settings():
    return Settings()
