"""Pydantic schemas for API."""

from pydantic import BaseModel, Field, field_validator

from auditor import AuditConfig, DEVICE_PROFILES, PRODUCT_SELECTORS
from .config import settings


class AuditOptions(BaseModel):
    """Per-request audit options.

    Fields mirror AuditConfig in the auditor package; anything left out
    falls back to the server settings.
    """
    headless: bool = True
    device: str = Field(default_factory=lambda: settings.default_device)
    wait_until: str = 'load'
    navigation_timeout_ms: int = Field(default_factory=lambda: settings.navigation_timeout_ms, gt=0)
    settle_ms: int = Field(default=1000, ge=0)
    max_retries: int = Field(default_factory=lambda: settings.max_retries, ge=0, le=5)
    retry_delay_s: float = Field(default_factory=lambda: settings.retry_delay_s, ge=0)
    run_lighthouse: bool = True
    product_selectors: list[str] = Field(default_factory=lambda: list(PRODUCT_SELECTORS))
    require_price: bool = True
    dismiss_popups: bool = True
    scroll_pages: bool = True

    @field_validator('device')
    @classmethod
    def known_device(cls, value: str) -> str:
        if value not in DEVICE_PROFILES:
            raise ValueError(f'unknown device profile, expected one of: {", ".join(sorted(DEVICE_PROFILES))}')
        return value

    @field_validator('wait_until')
    @classmethod
    def known_wait_until(cls, value: str) -> str:
        if value not in ('load', 'domcontentloaded', 'networkidle', 'commit'):
            raise ValueError('must be load, domcontentloaded, networkidle or commit')
        return value

    def to_config(self, **overrides) -> AuditConfig:
        """Build the AuditConfig the scanner consumes."""
        values = self.model_dump()
        values.update(
            lighthouse_bin=settings.lighthouse_bin,
            lighthouse_timeout_s=settings.lighthouse_timeout,
        )
        values.update(overrides)
        return AuditConfig(**values)


class UrlBatch(BaseModel):
    """Legacy /lighthouse payload."""
    urls: list[str]


class AuditRequest(BaseModel):
    """Audit request payload."""
    urls: list[str]
    config: AuditOptions = Field(default_factory=AuditOptions)
