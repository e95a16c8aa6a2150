from pydantic_settings import BaseSettings, SettingsConfigDict

from onboarding.submission import DEFAULT_COLLECTION
from schemas.firestore_models import FIRESTORE_BASE_URL


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ONBOARDING_", env_file=".env", extra="ignore")

    firestore_project_id: str | None = None
    firestore_api_key: str | None = None
    firestore_base_url: str = FIRESTORE_BASE_URL
    firestore_database: str = "(default)"
    collection: str = DEFAULT_COLLECTION
    store_timeout_seconds: float = 10.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


settings = ServiceSettings()
