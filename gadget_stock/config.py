from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # fields that may appear in .env
    app_title: str = "Gadget Stock Tracker"
    database_url: str = "sqlite:///./gadgets.db"
    secret_key: str = "dev_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 120
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
