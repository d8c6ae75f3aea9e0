"""Pre-compiled pattern tables and checkers for the page heuristics.

Product selectors, price and category-count regexes, and the keyword
tables used to recognise API traffic.
"""

import re
from urllib.parse import urlparse


# ---------------------------------------------------------------------------
# Product tile selectors – an element matching any of these is a candidate.
# ---------------------------------------------------------------------------

PRODUCT_SELECTORS = [
    '[itemtype*="schema.org/Product"]',
    '[data-product-id]',
    '[data-productid]',
    '[data-sku]',
    '.product',
    '.product-item',
    '.product-card',
    '.product-tile',
    '.productTile',
    '.product-list-item',
    'li.product',
    '.grid-product',
    '.card-product',
]


# ---------------------------------------------------------------------------
# Price text – a currency marker next to a number.
# ---------------------------------------------------------------------------

_AMOUNT = r'\d{1,3}(?:[.,\u00a0 ]\d{3})*(?:[.,]\d{1,2}|,-)?'

PRICE_PATTERN = re.compile(
    r'(?:[€$£]\s?' + _AMOUNT + r')'
    r'|(?:' + _AMOUNT + r'\s?[€$£])'
    r'|(?:\b(?:EUR|USD|GBP)\s?' + _AMOUNT + r')'
    r'|(?:' + _AMOUNT + r'\s?(?:EUR|USD|GBP)\b)'
    r'|(?:\b\d+,-)',
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Category counters such as "1.234 producten" or "Showing 56 results".
# ---------------------------------------------------------------------------

_COUNT_NOUNS = (
    'products', 'product', 'results', 'result', 'items', 'item',
    'producten', 'artikelen', 'artikel', 'resultaten', 'resultaat',
)

CATEGORY_COUNT_PATTERNS = [
    re.compile(r'(\d{1,3}(?:[.,\u00a0 ]\d{3})+|\d+)\s+(?:' + '|'.join(_COUNT_NOUNS) + r')\b', re.IGNORECASE),
    # Pagination ranges: "1 - 24 of 300", "1-24 van 1.250"
    re.compile(r'\d+\s*[-–]\s*\d+\s+(?:of|van)\s+(\d{1,3}(?:[.,]\d{3})+|\d+)\b', re.IGNORECASE),
]

MAX_CATEGORY_COUNT = 10_000_000


# ---------------------------------------------------------------------------
# API traffic
# ---------------------------------------------------------------------------

API_RESOURCE_TYPES = frozenset(['xhr', 'fetch'])

API_URL_KEYWORDS = ('/api/', '/api.', '/v1/', '/v2/', '/v3/', '/rest/', '/graphql', '_next/data', '/wp-json/', '/ajax')

GRAPHQL_KEYWORDS = ('graphql', 'gql')

# Static asset extensions never count as API calls.
_STATIC_EXTENSIONS = frozenset([
    '.js', '.mjs', '.css', '.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp',
    '.avif', '.ico', '.woff', '.woff2', '.ttf', '.eot', '.mp4', '.webm',
])


# ---------------------------------------------------------------------------
# Checkers
# ---------------------------------------------------------------------------

def has_price_text(text: str) -> bool:
    """Return True if the text contains something that reads as a price."""
    if not text:
        return False
    return PRICE_PATTERN.search(text) is not None


def _to_int(raw: str) -> int | None:
    digits = re.sub(r'[.,\s]', '', raw)
    if not digits.isdigit():
        return None
    return int(digits)


def parse_category_count(text: str) -> int | None:
    """Parse the total item count a category page advertises.

    Returns the largest plausible count found, or None.
    """
    if not text:
        return None

    best = None
    for compiled in CATEGORY_COUNT_PATTERNS:
        for match in compiled.finditer(text):
            value = _to_int(match.group(1))
            if not value or value > MAX_CATEGORY_COUNT:
                continue
            if best is None or value > best:
                best = value
    return best


def is_api_request(url: str, resource_type: str) -> bool:
    """Check if a request looks like a client-side API call."""
    if resource_type in API_RESOURCE_TYPES:
        return True
    if not url:
        return False

    path = urlparse(url).path.lower()
    for ext in _STATIC_EXTENSIONS:
        if path.endswith(ext):
            return False
    if path.endswith('.json'):
        return True

    lower = url.lower()
    return any(keyword in lower for keyword in API_URL_KEYWORDS)


def is_graphql_request(url: str) -> bool:
    """Check if a request URL targets a GraphQL endpoint."""
    path = urlparse(url).path.lower()
    return any(keyword in path for keyword in GRAPHQL_KEYWORDS)
