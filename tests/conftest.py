"""Shared test fixtures and configuration."""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory structure."""
    data_dir = tmp_path / 'data'
    reports_dir = data_dir / 'reports'
    data_dir.mkdir()
    reports_dir.mkdir()
    return {
        'data_dir': data_dir,
        'reports_dir': reports_dir,
        'db_path': data_dir / 'audits.db'
    }


@pytest.fixture
def mock_storage_paths(temp_data_dir, monkeypatch):
    """Patch storage module paths to use temp directories."""
    monkeypatch.setattr('server.storage.DATA_DIR', temp_data_dir['data_dir'])
    monkeypatch.setattr('server.storage.REPORTS_DIR', temp_data_dir['reports_dir'])
    monkeypatch.setattr('server.storage.DB_PATH', temp_data_dir['db_path'])
    monkeypatch.setattr('worker.tasks.REPORTS_DIR', temp_data_dir['reports_dir'])
    return temp_data_dir


@pytest.fixture
def initialized_db(mock_storage_paths):
    """Initialize a test database with schema."""
    from server.storage import init_db
    init_db()
    return mock_storage_paths


@pytest.fixture
def sample_audit_config():
    """Return a sample audit configuration dict."""
    return {
        'headless': True,
        'device': 'mobile',
        'max_retries': 1,
        'retry_delay_s': 0,
        'run_lighthouse': False,
        'require_price': True,
    }


@pytest.fixture
def fake_page():
    """A Playwright page stand-in whose evaluate() returns canned data.

    Set ``page.evaluate.return_value`` (or ``side_effect``) in the test.
    """
    page = MagicMock()
    page.url = 'https://shop.example.com/'
    return page


@pytest.fixture
def lighthouse_report():
    """Minimal Lighthouse JSON report with the performance audits."""
    return {
        'requestedUrl': 'https://example.com/',
        'finalUrl': 'https://example.com/',
        'categories': {'performance': {'score': 0.87}},
        'audits': {
            'first-contentful-paint': {'displayValue': '1.2\xa0s', 'numericValue': 1200.5},
            'largest-contentful-paint': {'displayValue': '2.5\xa0s', 'numericValue': 2500.1},
            'total-blocking-time': {'displayValue': '150\xa0ms', 'numericValue': 150},
            'cumulative-layout-shift': {'displayValue': '0.02', 'numericValue': 0.0213},
            'speed-index': {'displayValue': '3.1\xa0s', 'numericValue': 3100},
        },
    }


@pytest.fixture
def sample_audit_result():
    """Create a sample AuditResult object."""
    from auditor import (
        AuditResult,
        StructuredDataCounts,
        ProductCounts,
        ApiUsage,
        LighthouseMetrics,
    )

    result = AuditResult(url='https://shop.example.com/shoes')
    result.final_url = 'https://shop.example.com/shoes'
    result.status_code = 200
    result.load_time_ms = 1834.2
    result.title = 'Shoes | Example Shop'
    result.meta_description = 'All our shoes in one place.'
    result.structured_data = StructuredDataCounts(
        jsonld=2, jsonld_invalid=0, microdata=1, rdfa=0,
        types={'Product': 3, 'BreadcrumbList': 1},
    )
    result.products = ProductCounts(
        candidates=24, with_price=22, schema_products=3,
        category_count=312, matched_selectors=['.product-card'],
    )
    result.api_usage = ApiUsage(
        uses_api=True, xhr_count=2, fetch_count=5, graphql=True,
        api_endpoints=['POST https://api.example.com/graphql'],
        third_party_hosts=['api.example.com'],
    )
    result.lighthouse = LighthouseMetrics(
        fcp='1.2 s', lcp='2.5 s', tbt='150 ms', cls='0.02', si='3.1 s',
        performance_score=87.0,
    )
    result.attempts = 1
    return result


@pytest.fixture
def failed_audit_result():
    """An AuditResult whose retries were exhausted."""
    from auditor import AuditResult
    return AuditResult(url='https://down.example.com', attempts=3, error='net::ERR_NAME_NOT_RESOLVED')


@pytest.fixture
def sample_batch(sample_audit_result, failed_audit_result):
    """A BatchResult holding one good and one failed result."""
    from auditor import AuditConfig, BatchResult
    return BatchResult(
        results=[sample_audit_result, failed_audit_result],
        config=AuditConfig(device='mobile'),
        started_at='2024-05-01T10:00:00+00:00',
        finished_at='2024-05-01T10:01:00+00:00',
    )
