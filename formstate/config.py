from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Validation
    DEBOUNCE_SECONDS: float = 0.3  # Default trailing-edge wait for debounced validation
    WARN_ON_UNREGISTERED: bool = True  # Emit a warning when writing to an unknown field

    model_config = SettingsConfigDict(env_prefix="FORMSTATE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
