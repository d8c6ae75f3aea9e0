"""Tests for the per-URL retry logic and the batch loop.

The browser session itself is patched out; these tests cover ordering,
retries and error capture.
"""

from unittest.mock import MagicMock, patch

import pytest
from auditor import AuditConfig, LighthouseMetrics, LighthouseError, audit_url, run_batch


@pytest.fixture
def no_sleep():
    with patch('tenacity.nap.time.sleep') as sleep:
        yield sleep


def _fill_signals(url, config, result):
    result.final_url = url
    result.status_code = 200
    result.title = f'Title of {url}'


class TestAuditUrl:
    """Tests for audit_url function."""

    def test_success_first_attempt(self, no_sleep):
        with patch('auditor.scanner._collect_signals', side_effect=_fill_signals) as collect:
            result = audit_url('example.com', AuditConfig())

        assert result.ok
        assert result.attempts == 1
        assert result.url == 'example.com'
        assert result.final_url == 'https://example.com'
        collect.assert_called_once()
        no_sleep.assert_not_called()

    def test_retries_then_succeeds(self, no_sleep):
        calls = {'n': 0}

        def flaky(url, config, result):
            calls['n'] += 1
            if calls['n'] < 3:
                raise RuntimeError('net::ERR_CONNECTION_RESET')
            _fill_signals(url, config, result)

        config = AuditConfig(max_retries=2, retry_delay_s=1.5)
        with patch('auditor.scanner._collect_signals', side_effect=flaky):
            result = audit_url('https://example.com', config)

        assert result.ok
        assert result.attempts == 3
        assert no_sleep.call_count == 2
        no_sleep.assert_called_with(1.5)

    def test_retries_exhausted(self, no_sleep):
        config = AuditConfig(max_retries=1)
        with patch('auditor.scanner._collect_signals', side_effect=RuntimeError('net::ERR_NAME_NOT_RESOLVED')):
            result = audit_url('https://down.example.com', config)

        assert not result.ok
        assert result.error == 'net::ERR_NAME_NOT_RESOLVED'
        assert result.attempts == 2
        assert no_sleep.call_count == 1

    def test_failed_attempt_leaves_no_fields(self, no_sleep):
        """Data written before an attempt failed is not reported with the error."""
        calls = {'n': 0}

        def partial(url, config, result):
            calls['n'] += 1
            if calls['n'] == 1:
                result.status_code = 200
                result.final_url = 'https://example.com/first'
                raise RuntimeError('net::ERR_ABORTED')
            raise RuntimeError('net::ERR_CONNECTION_RESET')

        with patch('auditor.scanner._collect_signals', side_effect=partial):
            result = audit_url('https://example.com', AuditConfig(max_retries=1))

        assert result.error == 'net::ERR_CONNECTION_RESET'
        assert result.status_code is None
        assert result.final_url == ''
        assert result.attempts == 2

    def test_success_after_partial_failure_is_clean(self, no_sleep):
        calls = {'n': 0}

        def partial_then_ok(url, config, result):
            calls['n'] += 1
            if calls['n'] == 1:
                result.title = 'Stale'
                result.load_time_ms = 9999.0
                raise RuntimeError('net::ERR_ABORTED')
            result.final_url = url

        with patch('auditor.scanner._collect_signals', side_effect=partial_then_ok):
            result = audit_url('https://example.com', AuditConfig(max_retries=1))

        assert result.ok
        assert result.title == ''
        assert result.load_time_ms is None
        assert result.attempts == 2

    def test_zero_retries(self, no_sleep):
        with patch('auditor.scanner._collect_signals', side_effect=RuntimeError('boom')) as collect:
            result = audit_url('https://example.com', AuditConfig(max_retries=0))

        assert collect.call_count == 1
        assert result.error == 'boom'

    def test_invalid_url_not_attempted(self, no_sleep):
        with patch('auditor.scanner._collect_signals') as collect:
            result = audit_url('ftp://example.com/file', AuditConfig())

        assert 'Unsupported URL scheme' in result.error
        assert result.attempts == 0
        collect.assert_not_called()

    def test_unknown_device_not_attempted(self, no_sleep):
        with patch('auditor.scanner._collect_signals') as collect:
            result = audit_url('https://example.com', AuditConfig(device='watch'))

        assert 'Unknown device profile' in result.error
        collect.assert_not_called()

    def test_lighthouse_attached(self, no_sleep):
        metrics = LighthouseMetrics(fcp='1 s', lcp='2 s', tbt='0 ms', cls='0', si='1 s')
        config = AuditConfig(run_lighthouse=True)
        with patch('auditor.scanner._collect_signals', side_effect=_fill_signals), \
             patch('auditor.scanner.run_lighthouse_audit', return_value=metrics) as lh:
            result = audit_url('https://example.com', config)

        assert result.lighthouse is metrics
        lh.assert_called_once_with('https://example.com', config)

    def test_lighthouse_failure_recorded_separately(self, no_sleep):
        config = AuditConfig(run_lighthouse=True)
        with patch('auditor.scanner._collect_signals', side_effect=_fill_signals), \
             patch('auditor.scanner.run_lighthouse_audit', side_effect=LighthouseError('Lighthouse timed out after 120s')):
            result = audit_url('https://example.com', config)

        assert result.ok
        assert result.lighthouse is None
        assert result.lighthouse_error == 'Lighthouse timed out after 120s'

    def test_lighthouse_only(self, no_sleep):
        """With signal collection off, only Lighthouse runs."""
        config = AuditConfig(collect_signals=False, run_lighthouse=True)
        with patch('auditor.scanner._collect_signals') as collect, \
             patch('auditor.scanner.run_lighthouse_audit', return_value=LighthouseMetrics()) as lh:
            result = audit_url('https://example.com', config)

        collect.assert_not_called()
        lh.assert_called_once()
        assert result.attempts == 0

    def test_lighthouse_skipped_when_page_failed(self, no_sleep):
        config = AuditConfig(run_lighthouse=True, max_retries=0)
        with patch('auditor.scanner._collect_signals', side_effect=RuntimeError('down')), \
             patch('auditor.scanner.run_lighthouse_audit') as lh:
            audit_url('https://example.com', config)

        lh.assert_not_called()


class TestRunBatch:
    """Tests for run_batch function."""

    def test_preserves_order_and_duplicates(self, no_sleep):
        urls = ['https://b.example.com', 'https://a.example.com', 'https://b.example.com']
        with patch('auditor.scanner._collect_signals', side_effect=_fill_signals):
            batch = run_batch(urls, AuditConfig())

        assert [r.url for r in batch.results] == urls
        assert batch.failed == 0
        assert batch.started_at and batch.finished_at

    def test_one_failure_does_not_stop_batch(self, no_sleep):
        def collect(url, config, result):
            if 'down' in url:
                raise RuntimeError('net::ERR_NAME_NOT_RESOLVED')
            _fill_signals(url, config, result)

        urls = ['https://up.example.com', 'https://down.example.com', 'https://up2.example.com']
        with patch('auditor.scanner._collect_signals', side_effect=collect):
            batch = run_batch(urls, AuditConfig(max_retries=0))

        assert [r.ok for r in batch.results] == [True, False, True]
        assert batch.failed == 1

    def test_empty_batch(self):
        batch = run_batch([], AuditConfig())
        assert batch.results == []

    def test_progress_callback(self, no_sleep):
        progress = MagicMock()
        with patch('auditor.scanner._collect_signals', side_effect=_fill_signals):
            run_batch(['https://example.com'], AuditConfig(), progress_callback=progress)

        messages = [c.args[0] for c in progress.call_args_list]
        assert messages == ['AUDITING 1/1: https://example.com', 'BATCH COMPLETE']


class TestCollectSignals:
    """Tests for the browser session in _collect_signals."""

    @pytest.fixture
    def browser_stack(self):
        """Patch Playwright so the session runs against mocks."""
        page = MagicMock()
        page.url = 'https://example.com/home'
        page.goto.return_value = MagicMock(status=200)
        context = MagicMock()
        context.new_page.return_value = page
        browser = MagicMock()
        browser.new_context.return_value = context

        with patch('auditor.scanner.sync_playwright'), \
             patch('auditor.scanner.launch_browser', return_value=browser), \
             patch('auditor.scanner.apply_network_emulation') as emulate, \
             patch('auditor.scanner.measure_load_time', return_value=1234.5), \
             patch('auditor.scanner.extract_page_meta', return_value=('Home', 'Welcome')), \
             patch('auditor.scanner.count_structured_data') as structured, \
             patch('auditor.scanner.count_products') as products:
            from auditor import StructuredDataCounts, ProductCounts
            structured.return_value = StructuredDataCounts(jsonld=1, types={'Product': 4})
            products.return_value = ProductCounts(candidates=5, with_price=4)
            yield {'page': page, 'browser': browser, 'context': context, 'emulate': emulate, 'products': products}

    def test_fills_result(self, browser_stack):
        from auditor import AuditResult
        from auditor.scanner import _collect_signals

        config = AuditConfig(device='mobile', settle_ms=0, dismiss_popups=False, scroll_pages=False)
        result = AuditResult(url='https://example.com')
        _collect_signals('https://example.com', config, result)

        assert result.status_code == 200
        assert result.final_url == 'https://example.com/home'
        assert result.load_time_ms == 1234.5
        assert (result.title, result.meta_description) == ('Home', 'Welcome')
        assert result.structured_data.jsonld == 1
        assert result.products.with_price == 4
        assert result.products.schema_products == 4
        browser_stack['emulate'].assert_called_once()
        browser_stack['browser'].close.assert_called_once()

    def test_product_options_forwarded(self, browser_stack):
        from auditor import AuditResult
        from auditor.scanner import _collect_signals

        config = AuditConfig(product_selectors=['.tile'], require_price=False, settle_ms=0,
                             dismiss_popups=False, scroll_pages=False)
        _collect_signals('https://example.com', config, AuditResult(url='https://example.com'))

        browser_stack['products'].assert_called_once_with(browser_stack['page'], ['.tile'], False)

    def test_browser_closed_on_error(self, browser_stack):
        from auditor import AuditResult
        from auditor.scanner import _collect_signals

        browser_stack['page'].goto.side_effect = RuntimeError('net::ERR_CONNECTION_REFUSED')

        with pytest.raises(RuntimeError):
            _collect_signals('https://example.com', AuditConfig(), AuditResult(url='https://example.com'))

        browser_stack['browser'].close.assert_called_once()


class TestRunLighthouseAudit:
    """Tests for run_lighthouse_audit."""

    @pytest.fixture
    def lighthouse_stack(self):
        browser = MagicMock()
        with patch('auditor.scanner.sync_playwright'), \
             patch('auditor.scanner.find_free_port', return_value=9333), \
             patch('auditor.scanner.launch_browser', return_value=browser) as launch, \
             patch('auditor.scanner.LighthouseRunner.run') as run:
            yield {'browser': browser, 'launch': launch, 'run': run}

    def test_same_port_for_browser_and_lighthouse(self, lighthouse_stack):
        from auditor import run_lighthouse_audit

        metrics = LighthouseMetrics(fcp='1.1 s')
        lighthouse_stack['run'].return_value = metrics

        assert run_lighthouse_audit('https://example.com', AuditConfig()) is metrics

        assert lighthouse_stack['launch'].call_args.kwargs['debugging_port'] == 9333
        lighthouse_stack['run'].assert_called_once_with('https://example.com', 9333)
        lighthouse_stack['browser'].close.assert_called_once()

    def test_browser_closed_when_lighthouse_fails(self, lighthouse_stack):
        from auditor import run_lighthouse_audit

        lighthouse_stack['run'].side_effect = LighthouseError('Lighthouse exited with code 1')

        with pytest.raises(LighthouseError):
            run_lighthouse_audit('https://example.com', AuditConfig())

        lighthouse_stack['browser'].close.assert_called_once()

    @pytest.mark.parametrize('device, preset', [('desktop', 'desktop'), ('mobile', '')])
    def test_preset_follows_device(self, device, preset):
        from auditor import run_lighthouse_audit

        with patch('auditor.scanner.sync_playwright'), \
             patch('auditor.scanner.find_free_port', return_value=9333), \
             patch('auditor.scanner.launch_browser'), \
             patch('auditor.scanner.LighthouseRunner') as runner_cls:
            run_lighthouse_audit('https://example.com', AuditConfig(device=device))

        assert runner_cls.call_args.kwargs['preset'] == preset
