from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # TaoStats registry API (requires key, https://taostats.io/api-docs)
    taostats_api_key: str = ""
    taostats_base_url: str = "https://api.taostats.io/api"
    taostats_timeout_sec: float = 30.0
    registry_min_interval_sec: float = 12.0  # free plan = 5 calls/min
    metagraph_page_size: int = 500

    # Default subnet shown by the dashboard
    default_subnet_id: int = 8

    # ip-api.com geolocation (free tier, 45 req/min, no key)
    ipapi_base_url: str = "http://ip-api.com"
    geo_timeout_sec: float = 5.0
    geo_batch_size: int = 20  # pause after every N lookups
    geo_batch_delay_sec: float = 1.0

    # Hosting classification: extend the built-in vendor lists (comma-separated)
    extra_cloud_providers: str = ""
    extra_vps_providers: str = ""
    extra_residential_isps: str = ""

    # Result cache
    cache_backend: str = "memory"  # "memory" | "redis"
    cache_ttl_sec: int = 300
    redis_url: str = "redis://localhost:6379/0"

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_rate_limit: str = "30/minute"  # inbound, per client address
    cors_origins: str = "http://localhost:3000"

    # Retry client (dashboard side of the API contract)
    client_base_url: str = "http://localhost:3001/api"
    client_max_retries: int = 3
    client_retry_delay_sec: float = 2.0
    client_timeout_sec: float = 600.0  # snapshot builds take minutes on big subnets

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


settings = Settings()
