from pydantic_settings import BaseSettings
from functools import lru_cache

from jobrank.exceptions import ConfigurationError


class Settings(BaseSettings):
    # Data store (PostgREST endpoint + service role credential)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # OpenAI
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-4.1-mini"

    # Profile scraping provider
    brightdata_api_key: str = ""
    brightdata_dataset_id: str = "gd_l1viktl72bvl7bjuj0"

    # Celery configuration
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/0"

    # Execution budget for one enrichment run
    pipeline_timeout_seconds: int = 600
    http_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def require_gateway_config(settings: Settings) -> tuple[str, str]:
    """Return (url, service key) or raise if either is missing."""
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    return settings.supabase_url.rstrip("/"), settings.supabase_service_role_key


def require_openai_key(settings: Settings) -> str:
    if not settings.openai_api_key:
        raise ConfigurationError("Missing OPENAI_API_KEY")
    return settings.openai_api_key


def require_brightdata_key(settings: Settings) -> str:
    if not settings.brightdata_api_key:
        raise ConfigurationError("Missing BRIGHTDATA_API_KEY")
    return settings.brightdata_api_key
