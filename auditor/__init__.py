"""Page Audit – core package.

Re-exports all public symbols so consumers can do:
    from auditor import run_batch, AuditConfig
"""

# Models
from .models import (  # noqa: F401
    DeviceProfile,
    StructuredDataCounts,
    ProductCounts,
    ApiUsage,
    LighthouseMetrics,
    AuditConfig,
    AuditResult,
    BatchResult,
)

# Heuristics
from .patterns import (  # noqa: F401
    PRODUCT_SELECTORS,
    PRICE_PATTERN,
    CATEGORY_COUNT_PATTERNS,
    has_price_text,
    parse_category_count,
    is_api_request,
    is_graphql_request,
)

# Emulation
from .emulation import (  # noqa: F401
    DEVICE_PROFILES,
    get_profile,
    context_options,
    apply_network_emulation,
)

# Extraction
from .extraction import (  # noqa: F401
    extract_page_meta,
    measure_load_time,
    summarise_structured_data,
    count_structured_data,
    count_products,
    NetworkRecorder,
)

# Lighthouse
from .lighthouse import LighthouseRunner, LighthouseError, parse_report  # noqa: F401

# URL utilities
from .url_utils import normalize_url, validate_batch, get_short_url  # noqa: F401

# Reporting
from .reporting import (  # noqa: F401
    lighthouse_to_dict,
    result_to_dict,
    generate_report,
    generate_json_report,
)

# Scanner
from .scanner import audit_url, run_lighthouse_audit, run_batch  # noqa: F401
