"""Page signal extraction: meta tags, load timing, structured data, products, API traffic.

Contains all functions that evaluate pages via Playwright's page.evaluate()
and process the resulting data in Python.
"""

import json
import logging
from collections import Counter
from typing import Optional
from urllib.parse import urlparse

from playwright.sync_api import Page, Request

from .models import StructuredDataCounts, ProductCounts, ApiUsage
from .patterns import (
    has_price_text,
    parse_category_count,
    is_api_request,
    is_graphql_request,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Title and meta description
# ---------------------------------------------------------------------------

_META_JS = '''
() => {
    const content = (sel) => {
        const el = document.querySelector(sel);
        return el ? (el.getAttribute('content') || '').trim() : '';
    };
    return {
        title: (document.title || '').trim(),
        description: content('meta[name="description" i]'),
        ogDescription: content('meta[property="og:description"]')
    };
}
'''


def extract_page_meta(page: Page) -> tuple[str, str]:
    """Return (title, meta_description) for the current page."""
    try:
        meta = page.evaluate(_META_JS)
    except Exception as exc:
        log.debug('Meta extraction failed: %s', exc)
        return '', ''

    description = meta.get('description') or meta.get('ogDescription') or ''
    return meta.get('title', ''), description


# ---------------------------------------------------------------------------
# Load time
# ---------------------------------------------------------------------------

_NAVIGATION_TIMING_JS = '''
() => {
    const entries = performance.getEntriesByType('navigation');
    if (!entries.length) return null;
    const nav = entries[0];
    return {start: nav.startTime, loadEventEnd: nav.loadEventEnd, duration: nav.duration};
}
'''


def measure_load_time(page: Page) -> Optional[float]:
    """Load time in ms from the Navigation Timing API, or None."""
    try:
        timing = page.evaluate(_NAVIGATION_TIMING_JS)
    except Exception as exc:
        log.debug('Navigation timing unavailable: %s', exc)
        return None

    if not timing:
        return None
    load_end = timing.get('loadEventEnd') or 0
    if load_end > 0:
        return round(load_end - (timing.get('start') or 0), 1)
    duration = timing.get('duration') or 0
    return round(duration, 1) if duration > 0 else None


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------

_STRUCTURED_DATA_JS = '''
() => {
    const jsonld = [];
    document.querySelectorAll('script[type="application/ld+json"]').forEach(s => {
        jsonld.push(s.textContent || '');
    });
    const microdata = [];
    document.querySelectorAll('[itemscope]').forEach(el => {
        microdata.push(el.getAttribute('itemtype') || '');
    });
    const rdfa = document.querySelectorAll('[typeof]').length;
    return {jsonld, microdata, rdfa};
}
'''


def _type_name(raw: str) -> str:
    """Reduce 'https://schema.org/Product' to 'Product'."""
    raw = raw.strip()
    if not raw:
        return ''
    return raw.rstrip('/').rsplit('/', 1)[-1]


def _collect_jsonld_types(node, types: Counter) -> None:
    if isinstance(node, list):
        for item in node:
            _collect_jsonld_types(item, types)
        return
    if not isinstance(node, dict):
        return

    node_type = node.get('@type')
    if isinstance(node_type, str):
        types[_type_name(node_type)] += 1
    elif isinstance(node_type, list):
        for t in node_type:
            if isinstance(t, str):
                types[_type_name(t)] += 1

    if '@graph' in node:
        _collect_jsonld_types(node['@graph'], types)
    # ItemList entries carry the listed products.
    for key in ('itemListElement', 'item'):
        if key in node:
            _collect_jsonld_types(node[key], types)


def summarise_structured_data(
    jsonld_texts: list,
    microdata_types: list,
    rdfa_count: int = 0,
) -> StructuredDataCounts:
    """Count structured-data blocks and the schema types they declare."""
    counts = StructuredDataCounts(microdata=len(microdata_types), rdfa=rdfa_count)
    types: Counter = Counter()

    for text in jsonld_texts:
        counts.jsonld += 1
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            counts.jsonld_invalid += 1
            continue
        _collect_jsonld_types(data, types)

    for itemtype in microdata_types:
        # itemtype may list several space-separated URLs.
        for raw in (itemtype or '').split():
            name = _type_name(raw)
            if name:
                types[name] += 1

    types.pop('', None)
    counts.types = dict(types)
    return counts


def count_structured_data(page: Page) -> StructuredDataCounts:
    """Count JSON-LD, microdata and RDFa blocks on the page."""
    try:
        data = page.evaluate(_STRUCTURED_DATA_JS)
    except Exception as exc:
        log.debug('Structured data extraction failed: %s', exc)
        return StructuredDataCounts()

    return summarise_structured_data(
        data.get('jsonld', []),
        data.get('microdata', []),
        data.get('rdfa', 0),
    )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

_PRODUCTS_JS = '''
(selectors) => {
    const matched = new Set();
    const hits = {};
    for (const sel of selectors) {
        let nodes;
        try { nodes = document.querySelectorAll(sel); } catch (e) { continue; }
        hits[sel] = nodes.length;
        nodes.forEach(el => matched.add(el));
    }
    const items = [];
    matched.forEach(el => {
        // Count the outermost match only: tiles often nest .product inside [data-product-id].
        let parent = el.parentElement;
        while (parent) {
            if (matched.has(parent)) return;
            parent = parent.parentElement;
        }
        items.push((el.innerText || el.textContent || '').substring(0, 500));
    });
    const body = document.body ? (document.body.innerText || '') : '';
    return {items, hits, bodyText: body.substring(0, 20000)};
}
'''


def count_products(page: Page, selectors: list, require_price: bool = True) -> ProductCounts:
    """Count product tiles with the selector heuristics.

    When require_price is set, a candidate only counts as a product if its
    text contains a price.
    """
    counts = ProductCounts()

    try:
        data = page.evaluate(_PRODUCTS_JS, selectors)
    except Exception as exc:
        log.debug('Product extraction failed: %s', exc)
        return counts

    items = data.get('items', [])
    counts.candidates = len(items)
    if require_price:
        counts.with_price = sum(1 for text in items if has_price_text(text))
    else:
        counts.with_price = counts.candidates
    counts.matched_selectors = [sel for sel, hits in data.get('hits', {}).items() if hits]
    counts.category_count = parse_category_count(data.get('bodyText', ''))
    return counts


# ---------------------------------------------------------------------------
# API traffic
# ---------------------------------------------------------------------------

def _site_host(netloc: str) -> str:
    """Host without a leading 'www.' so apex and www count as the same site."""
    host = netloc.lower()
    return host[4:] if host.startswith('www.') else host


class NetworkRecorder:
    """Records requests a page issues so API usage can be summarised."""

    def __init__(self, max_endpoints: int = 20):
        self.max_endpoints = max_endpoints
        self.requests: list[tuple[str, str, str]] = []  # (url, resource_type, method)

    def attach(self, page: Page) -> None:
        page.on('request', self._on_request)

    def _on_request(self, request: Request) -> None:
        self.requests.append((request.url, request.resource_type, request.method))

    def summary(self, page_url: str) -> ApiUsage:
        """Summarise recorded traffic relative to the audited page."""
        usage = ApiUsage()
        page_host = _site_host(urlparse(page_url).netloc)
        seen: set[str] = set()
        third_party: set[str] = set()

        for url, resource_type, method in self.requests:
            if resource_type == 'xhr':
                usage.xhr_count += 1
            elif resource_type == 'fetch':
                usage.fetch_count += 1

            if not is_api_request(url, resource_type):
                continue

            parsed = urlparse(url)
            if is_graphql_request(url):
                usage.graphql = True
            if parsed.netloc and _site_host(parsed.netloc) != page_host:
                third_party.add(parsed.netloc)

            endpoint = f'{method} {parsed.scheme}://{parsed.netloc}{parsed.path}'
            if endpoint not in seen:
                seen.add(endpoint)
                if len(usage.api_endpoints) < self.max_endpoints:
                    usage.api_endpoints.append(endpoint)

        usage.uses_api = bool(seen)
        usage.third_party_hosts = sorted(third_party)
        return usage
