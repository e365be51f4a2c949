from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("fleet-invoice-match", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Azure Document Intelligence
    az_di_endpoint: str | None = Field(default=None, alias="AZ_DI_ENDPOINT")
    az_di_api_key: str | None = Field(default=None, alias="AZ_DI_API_KEY")

    # Shared secret the mail forwarder sends as "Authorization: Bearer <secret>"
    invoice_webhook_secret: str | None = Field(default=None, alias="INVOICE_WEBHOOK_SECRET")

    # Teams
    teams_webhook_url: str | None = Field(default=None, alias="TEAMS_WEBHOOK_URL")

    # API Base URL (for review links in Teams cards)
    api_base_url: str = Field("http://127.0.0.1:8000", alias="API_BASE_URL")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Rate limiting (per client IP, fixed window)
    rate_limit_window_seconds: float = Field(60.0, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(30, alias="RATE_LIMIT_MAX_REQUESTS")

    # Storage
    invoice_store_backend: str = Field("memory", alias="INVOICE_STORE_BACKEND")  # memory | sqlite
    invoice_db_path: str = Field("invoices.db", alias="INVOICE_DB_PATH")

    # Service Bus (optional)
    service_bus_connection_string: str | None = Field(default=None, alias="SERVICE_BUS_CONNECTION_STRING")
    service_bus_queue_name: str = Field("invoice-events", alias="SERVICE_BUS_QUEUE_NAME")

    # Invoice-to-job matching
    match_min_score: int = Field(50, alias="MATCH_MIN_SCORE")
    match_high_confidence_score: int = Field(70, alias="MATCH_HIGH_CONFIDENCE_SCORE")
    match_prior_match_penalty: int = Field(50, alias="MATCH_PRIOR_MATCH_PENALTY")
    match_prior_lookup_fail_open: bool = Field(True, alias="MATCH_PRIOR_LOOKUP_FAIL_OPEN")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

settings = Settings()
