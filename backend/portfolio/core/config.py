"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
No hardcoded URLs, ports, or credentials.
"""

from functools import lru_cache

from typing import Any

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Portfolio CMS")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    frontend_url: str | None = Field(
        default=None,
        description="Public frontend origin allowed by CORS (all origins when unset)",
    )

    # Database
    database_url: PostgresDsn = Field(
        ...,
        description="PostgreSQL connection string",
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    db_slow_query_threshold_ms: int = Field(
        default=100, description="Threshold for slow query warnings (ms)"
    )
    db_connect_timeout: int = Field(
        default=60, description="Connection timeout in seconds"
    )
    db_command_timeout: int = Field(
        default=60, description="Command timeout in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Admin auth
    auth_required: bool = Field(
        default=True,
        description="Require an admin session for admin endpoints (false returns a dev admin)",
    )
    session_cookie_name: str = Field(
        default="portfolio_session", description="Name of the admin session cookie"
    )
    session_ttl_hours: int = Field(
        default=168, description="Admin session lifetime in hours"
    )
    session_cookie_secure: bool = Field(
        default=False, description="Mark the session cookie Secure (HTTPS only)"
    )
    bootstrap_admin_email: str | None = Field(
        default=None,
        description="Admin created at startup when the admins table is empty",
    )
    bootstrap_admin_password: str | None = Field(
        default=None,
        description="Password for the bootstrap admin",
    )

    # Public site
    site_url: str = Field(
        default="http://localhost:3000",
        description="Public site origin used for canonical URLs and the sitemap",
    )
    site_name: str = Field(default="Parnish | AI Portfolio")
    site_locale: str = Field(default="en-US")

    # robots.txt
    robots_indexing: bool = Field(
        default=True, description="Allow crawlers to index the site"
    )
    robots_sitemap_path: str = Field(
        default="/sitemap.xml", description="Sitemap path advertised in robots.txt"
    )
    admin_robots_disallow: str = Field(
        default="",
        description="Comma-separated extra paths to disallow in robots.txt",
    )
    block_ai_bots: bool = Field(
        default=False, description="Disallow known AI training crawlers"
    )

    # OpenAI-compatible LLM
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the chat/embeddings provider",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible API",
    )
    openai_model: str = Field(
        default="gpt-4o-mini", description="Chat completion model"
    )
    openai_embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model"
    )
    llm_timeout: float = Field(
        default=60.0, description="LLM request timeout in seconds"
    )
    llm_max_retries: int = Field(
        default=3, description="Maximum retry attempts for LLM requests"
    )
    llm_retry_delay: float = Field(
        default=1.0, description="Base delay between retries in seconds"
    )
    llm_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    llm_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # SMTP (contact notifications)
    smtp_host: str | None = Field(default=None, description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_username: str | None = Field(default=None, description="SMTP username")
    smtp_password: str | None = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="Upgrade with STARTTLS")
    smtp_use_ssl: bool = Field(default=False, description="Connect with implicit TLS")
    smtp_timeout: float = Field(default=30.0, description="SMTP timeout in seconds")
    smtp_from_email: str | None = Field(default=None, description="Sender address")
    smtp_from_name: str = Field(default="Portfolio", description="Sender display name")
    contact_recipient: str | None = Field(
        default=None,
        description="Where contact form notifications go (falls back to site contactEmail)",
    )
    email_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    email_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # S3-compatible media storage
    s3_bucket: str | None = Field(default=None, description="Media bucket name")
    s3_endpoint_url: str | None = Field(
        default=None, description="Custom endpoint for S3-compatible storage"
    )
    s3_access_key: str | None = Field(default=None, description="S3 access key")
    s3_secret_key: str | None = Field(default=None, description="S3 secret key")
    s3_region: str = Field(default="us-east-1", description="S3 region")
    s3_public_base_url: str | None = Field(
        default=None,
        description="Public base URL for stored media (CDN or bucket website)",
    )
    s3_timeout: float = Field(default=30.0, description="S3 operation timeout")
    s3_max_retries: int = Field(default=3, description="Maximum S3 retry attempts")
    s3_retry_delay: float = Field(default=1.0, description="Base delay between retries")
    s3_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    s3_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )
    media_max_upload_bytes: int = Field(
        default=10 * 1024 * 1024, description="Largest accepted media upload"
    )

    # Live chat
    livechat_agent_secret: str | None = Field(
        default=None,
        description="Shared secret required to post agent/system live chat messages",
    )
    livechat_heartbeat_interval: float = Field(
        default=30.0, description="WebSocket heartbeat interval in seconds"
    )
    livechat_presence_ttl: float = Field(
        default=60.0, description="Seconds an agent stays online after a heartbeat"
    )

    # Analytics
    analytics_dedupe_window_ms: int = Field(
        default=1500, description="Identical events within this window are not stored"
    )

    # Feature flag overrides (FEATURE_<KEY>); None keeps the default
    feature_analytics: bool | None = Field(default=None)
    feature_chatbot: bool | None = Field(default=None)
    feature_realtime_chat: bool | None = Field(default=None)
    feature_ai_blog_draft: bool | None = Field(default=None)
    feature_ai_embeddings: bool | None = Field(default=None)
    feature_ai_readme: bool | None = Field(default=None)
    feature_admin_cms: bool | None = Field(default=None)
    feature_admin_media: bool | None = Field(default=None)
    feature_rag_chatbot: bool | None = Field(default=None)
    feature_content_versioning: bool | None = Field(default=None)
    feature_experiments: bool | None = Field(default=None)
    feature_theming: bool | None = Field(default=None)
    feature_localization: bool | None = Field(default=None)

    @field_validator(
        "feature_analytics",
        "feature_chatbot",
        "feature_realtime_chat",
        "feature_ai_blog_draft",
        "feature_ai_embeddings",
        "feature_ai_readme",
        "feature_admin_cms",
        "feature_admin_media",
        "feature_rag_chatbot",
        "feature_content_versioning",
        "feature_experiments",
        "feature_theming",
        "feature_localization",
        mode="before",
    )
    @classmethod
    def parse_feature_override(cls, value: Any) -> bool | None:
        """Only "true" and "false" (any case, padded or not) override a flag."""
        if value is None or isinstance(value, bool):
            return value
        return {"true": True, "false": False}.get(str(value).strip().lower())


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
