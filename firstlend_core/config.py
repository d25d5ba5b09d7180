"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="FIRSTLEND_", extra="ignore"
    )

    # Backend
    api_base_url: str = "http://localhost:5128/api"

    # Credential store (SQLAlchemy URL)
    credential_store_url: str = "sqlite:///./firstlend_session.db"

    # Service
    service_name: str = "firstlend-core"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    coalesce_refresh: bool = True  # Concurrent 401s share one refresh call

    # Eligibility
    min_credit_score: float = 50.0

    # Paging defaults
    loan_types_page_size: int = 50
    my_loans_page_size: int = 10


settings = Settings()
