from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Quota-Activator"
    debug: bool = False
    log_level: str = "INFO"
    config_path: str = "config.yaml"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    run_scheduler_in_api: bool = False
    preview_count: int = 5

    model_config = SettingsConfigDict(env_file=".env", env_prefix="QA_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
