"""Configuration for the API server."""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Environment-backed settings."""
    port: int = int(os.getenv('PORT', '3000'))
    redis_url: str = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    max_batch_urls: int = int(os.getenv('MAX_BATCH_URLS', '50'))
    default_device: str = os.getenv('DEFAULT_DEVICE', 'desktop')
    lighthouse_bin: str = os.getenv('LIGHTHOUSE_BIN', 'lighthouse')
    lighthouse_timeout: int = int(os.getenv('LIGHTHOUSE_TIMEOUT', '120'))
    navigation_timeout_ms: int = int(os.getenv('NAVIGATION_TIMEOUT_MS', '30000'))
    max_retries: int = int(os.getenv('MAX_RETRIES', '2'))
    retry_delay_s: float = float(os.getenv('RETRY_DELAY_S', '2'))
    log_level: str = os.getenv('LOG_LEVEL', 'INFO')


settings = Settings()
