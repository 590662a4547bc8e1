"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Salesforce connection
    instance_url: str = ""
    access_token: str = ""
    api_version: int | None = None  # None = latest version for today's date
    http_timeout_seconds: float = 120.0
    max_concurrent_requests: int = 15

    # Daily API request watchdog
    watchdog_warning_threshold: float = 0.70
    watchdog_fatal_threshold: float = 0.90
    watchdog_freshness_seconds: int = 60

    # Query batching
    standard_query_batch_size: int = 2000
    no_query_more_batch_size: int = 2000

    # Composite batching
    max_ids_in_dependency_request: int = 100
    max_composite_request_size: int = 5
    max_dependency_batch_size: int = 500
    max_at_scale_batch_size: int = 1000
    max_members_in_metadata_request: int = 10

    # Cache
    cache_db_path: str = "data/orgcheck_cache.db"
    cache_ttl_seconds: int = 24 * 60 * 60

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = {"env_file": ".env", "env_prefix": "ORGCHECK_"}
