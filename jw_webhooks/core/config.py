"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Local registry of webhook records
    database_url: str = "sqlite:///./jw_webhooks.db"

    # JW Platform Management API v2
    jw_api_base: str = "https://api.jwplayer.com/v2"
    jw_api_secret: str = ""
    jw_site_id: str = ""
    jw_request_timeout: float = 10.0

    # Where JW should publish webhook requests
    public_base_url: str = "https://localhost"
    receive_path: str = "jw_webhooks/receive"
    webhook_name: str = "jw-webhooks"

    # Publish requests larger than this are rejected unread
    max_body_bytes: int = 64 * 1024

    # Re-register with JW for all subscribed events at startup
    sync_on_startup: bool = False

    # Authentication
    admin_secret: str = "changeme-admin-secret"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
