from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    cache_backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_seconds: int = 30
    cache_ttl_overrides: str = ""
    cache_trusted_packages: str = "erp_backend.workflow"
    cache_ignore_errors: bool = True
    cors_allow_origins: str = "http://127.0.0.1:5173"


def get_settings() -> Settings:
    return Settings()
