"""Audit orchestrator: drives the per-URL browser session and the batch loop."""

import logging
import time
from datetime import datetime, timezone

from playwright.sync_api import sync_playwright, TimeoutError as PlaywrightTimeout
from tenacity import Retrying, stop_after_attempt, wait_fixed

from .models import AuditConfig, AuditResult, BatchResult, LighthouseMetrics
from .browser import launch_browser, find_free_port, scroll_page, dismiss_popups
from .emulation import get_profile, context_options, apply_network_emulation
from .extraction import (
    extract_page_meta,
    measure_load_time,
    count_structured_data,
    count_products,
    NetworkRecorder,
)
from .lighthouse import LighthouseRunner
from .url_utils import normalize_url

log = logging.getLogger(__name__)


def _collect_signals(url: str, config: AuditConfig, result: AuditResult) -> None:
    """Open url in a fresh browser and fill result with the page signals."""
    profile = get_profile(config.device)

    with sync_playwright() as p:
        browser = launch_browser(p, headless=config.headless)
        try:
            context = browser.new_context(**context_options(profile))
            page = context.new_page()
            apply_network_emulation(context, page, profile)

            recorder = NetworkRecorder()
            recorder.attach(page)

            started = time.perf_counter()
            try:
                response = page.goto(url, wait_until=config.wait_until, timeout=config.navigation_timeout_ms)
            except PlaywrightTimeout:
                # Slow pages still get analysed if the DOM is there.
                log.warning('Navigation timed out for %s – proceeding anyway', url)
                response = None
            wall_clock_ms = round((time.perf_counter() - started) * 1000, 1)

            if response is not None:
                result.status_code = response.status
            result.final_url = page.url

            if config.settle_ms:
                page.wait_for_timeout(config.settle_ms)
            if config.dismiss_popups:
                dismiss_popups(page)
            if config.scroll_pages:
                scroll_page(page)

            result.load_time_ms = measure_load_time(page) or wall_clock_ms
            result.title, result.meta_description = extract_page_meta(page)
            result.structured_data = count_structured_data(page)
            result.products = count_products(page, config.product_selectors, config.require_price)
            result.products.schema_products = result.structured_data.types.get('Product', 0)
            result.api_usage = recorder.summary(result.final_url or url)
        finally:
            browser.close()


def run_lighthouse_audit(url: str, config: AuditConfig) -> LighthouseMetrics:
    """Launch a fresh browser and run Lighthouse against it."""
    runner = LighthouseRunner(
        binary=config.lighthouse_bin,
        timeout=config.lighthouse_timeout_s,
        preset='desktop' if config.device == 'desktop' else '',
    )
    port = find_free_port()

    with sync_playwright() as p:
        browser = launch_browser(p, headless=config.headless, debugging_port=port)
        try:
            return runner.run(url, port)
        finally:
            browser.close()


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _log_retry(url: str, attempts: int):
    def before_sleep(retry_state) -> None:
        log.info('Attempt %d/%d failed for %s: %s – retrying in %ss',
                 retry_state.attempt_number, attempts, url,
                 _error_text(retry_state.outcome.exception()), retry_state.next_action.sleep)
    return before_sleep


def audit_url(url: str, config: AuditConfig) -> AuditResult:
    """Audit a single URL, retrying a fixed number of times.

    Never raises for page-level failures; the last error is recorded on the
    result instead.
    """
    result = AuditResult(url=url)
    try:
        target = normalize_url(url)
        get_profile(config.device)
    except ValueError as exc:
        result.error = str(exc)
        return result

    if config.collect_signals:
        attempts = config.max_retries + 1
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(config.retry_delay_s),
            before_sleep=_log_retry(url, attempts),
            reraise=True,
        )
        made = 0
        try:
            for attempt in retrying:
                with attempt:
                    made = attempt.retry_state.attempt_number
                    # Fresh record per attempt.
                    fresh = AuditResult(url=url)
                    _collect_signals(target, config, fresh)
            result = fresh
        except Exception as exc:
            result.error = _error_text(exc)
            log.warning('Giving up on %s after %d attempts: %s', url, made, result.error)
        result.attempts = made

    if config.run_lighthouse and not result.error:
        try:
            result.lighthouse = run_lighthouse_audit(target, config)
        except Exception as exc:
            log.error('Lighthouse audit error for %s: %s', url, exc)
            result.lighthouse_error = str(exc)

    return result


def run_batch(urls: list, config: AuditConfig, progress_callback=None) -> BatchResult:
    """Audit every URL in order and return one result per input.

    Args:
        urls: URLs to audit, duplicates included.
        config: Audit configuration shared by the whole batch.
        progress_callback: Optional callable(str) receiving progress messages.
    """
    _progress = progress_callback or (lambda msg: None)
    batch = BatchResult(results=[], config=config, started_at=_now())

    for idx, url in enumerate(urls, start=1):
        _progress(f'AUDITING {idx}/{len(urls)}: {url}')
        log.info('Auditing %d/%d: %s', idx, len(urls), url)
        batch.results.append(audit_url(url, config))

    batch.finished_at = _now()
    _progress('BATCH COMPLETE')
    return batch


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
