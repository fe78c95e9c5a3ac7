from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Local store (source of truth)
    database_url: str = "sqlite:///./local_storage/gardenbook.db"
    local_storage_quota_bytes: Optional[int] = 50 * 1024 * 1024  # None disables the quota check

    # Remote replica (PostgreSQL in production). Sync is disabled when unset.
    remote_database_url: Optional[str] = None

    # Sync Configuration
    sync_debounce_seconds: float = 3.0

    # Numbering
    estimate_number_prefix: str = "NL"
    invoice_number_prefix: str = "NL"
    contract_number_prefix: str = "NL-C"

    # Catalog search
    catalog_max_results: int = 20
    catalog_min_query_length: int = 2

    # Logging
    log_level: str = "INFO"

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields in .env file


settings = Settings()
