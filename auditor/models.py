"""Data classes used throughout the auditor.

All structured types for page signals, configuration, and batch output
live here so they can be imported cleanly by every other module.
"""

from dataclasses import dataclass, field
from typing import Optional

from .patterns import PRODUCT_SELECTORS


@dataclass
class DeviceProfile:
    """Viewport, user agent and throttling settings for one emulated device."""
    name: str
    viewport_width: int
    viewport_height: int
    user_agent: str = ''
    device_scale_factor: float = 1
    is_mobile: bool = False
    has_touch: bool = False
    latency_ms: float = 0             # Added round-trip latency
    download_kbps: float = 0          # 0 means unthrottled
    upload_kbps: float = 0
    cpu_slowdown: float = 1

    @property
    def throttled(self) -> bool:
        return bool(self.latency_ms or self.download_kbps or self.upload_kbps or self.cpu_slowdown > 1)


@dataclass
class StructuredDataCounts:
    """Counts of structured-data blocks found on a page."""
    jsonld: int = 0
    jsonld_invalid: int = 0
    microdata: int = 0
    rdfa: int = 0
    types: dict = field(default_factory=dict)  # schema.org type -> count


@dataclass
class ProductCounts:
    """Heuristic product counts for a page."""
    candidates: int = 0         # Elements matching any product selector
    with_price: int = 0         # ... whose text also contains a price
    schema_products: int = 0    # Product entities declared in structured data
    category_count: Optional[int] = None  # "123 products" style counter
    matched_selectors: list = field(default_factory=list)


@dataclass
class ApiUsage:
    """Client-side API traffic observed while the page loaded."""
    uses_api: bool = False
    xhr_count: int = 0
    fetch_count: int = 0
    graphql: bool = False
    api_endpoints: list = field(default_factory=list)
    third_party_hosts: list = field(default_factory=list)


@dataclass
class LighthouseMetrics:
    """Performance metrics from a Lighthouse run."""
    fcp: str = ''
    lcp: str = ''
    tbt: str = ''
    cls: str = ''
    si: str = ''
    performance_score: Optional[float] = None
    numeric: dict = field(default_factory=dict)  # audit id -> numericValue


@dataclass
class AuditConfig:
    """Config for auditing a batch of URLs."""
    headless: bool = True
    device: str = 'desktop'  # desktop|mobile
    wait_until: str = 'load'
    navigation_timeout_ms: int = 30000
    settle_ms: int = 1000
    max_retries: int = 2
    retry_delay_s: float = 2.0
    collect_signals: bool = True
    run_lighthouse: bool = False
    lighthouse_timeout_s: int = 120
    lighthouse_bin: str = 'lighthouse'
    product_selectors: list = field(default_factory=lambda: list(PRODUCT_SELECTORS))
    require_price: bool = True
    dismiss_popups: bool = True
    scroll_pages: bool = True


@dataclass
class AuditResult:
    """Analysis for a single URL."""
    url: str
    final_url: str = ''
    status_code: Optional[int] = None
    load_time_ms: Optional[float] = None
    title: str = ''
    meta_description: str = ''
    structured_data: StructuredDataCounts = field(default_factory=StructuredDataCounts)
    products: ProductCounts = field(default_factory=ProductCounts)
    api_usage: ApiUsage = field(default_factory=ApiUsage)
    lighthouse: Optional[LighthouseMetrics] = None
    lighthouse_error: str = ''
    attempts: int = 0
    error: str = ''

    @property
    def ok(self) -> bool:
        return not self.error


@dataclass
class BatchResult:
    """Results for a batch run."""
    results: list  # List[AuditResult], same order as the input URLs
    config: AuditConfig
    started_at: str = ''
    finished_at: str = ''

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.error)
