"""Lighthouse performance audits.

Runs the Lighthouse CLI against an already-running Chromium (attached over
its remote-debugging port) and pulls the headline metrics from the report.
"""

import json
import logging
import subprocess
from typing import Optional

from .models import LighthouseMetrics

log = logging.getLogger(__name__)


# Report field -> audit id
METRIC_AUDITS = {
    'fcp': 'first-contentful-paint',
    'lcp': 'largest-contentful-paint',
    'tbt': 'total-blocking-time',
    'cls': 'cumulative-layout-shift',
    'si': 'speed-index',
}


class LighthouseError(RuntimeError):
    """Raised when a Lighthouse run fails or produces no usable report."""


def parse_report(report: dict) -> LighthouseMetrics:
    """Extract display values and the performance score from a Lighthouse report."""
    audits = report.get('audits')
    if not isinstance(audits, dict):
        raise LighthouseError('Lighthouse report has no audits')

    metrics = LighthouseMetrics()
    for field_name, audit_id in METRIC_AUDITS.items():
        audit = audits.get(audit_id)
        if not audit:
            raise LighthouseError(f'Lighthouse report is missing the {audit_id} audit')
        setattr(metrics, field_name, audit.get('displayValue', ''))
        if audit.get('numericValue') is not None:
            metrics.numeric[audit_id] = audit['numericValue']

    performance = report.get('categories', {}).get('performance') or {}
    score = performance.get('score')
    metrics.performance_score = round(score * 100, 1) if score is not None else None
    return metrics


class LighthouseRunner:
    """Runs Lighthouse audits and parses results."""

    def __init__(
        self,
        binary: str = 'lighthouse',
        timeout: int = 120,
        only_categories: Optional[list[str]] = None,
        preset: str = '',
    ):
        """
        Args:
            binary: Lighthouse executable (must be on PATH or absolute)
            timeout: Timeout for one run in seconds
            only_categories: Categories to audit, performance by default
            preset: Lighthouse config preset, e.g. 'desktop'; empty uses the mobile default
        """
        self.binary = binary
        self.timeout = timeout
        self.only_categories = only_categories or ['performance']
        self.preset = preset

    def build_command(self, url: str, port: int) -> list[str]:
        cmd = [
            self.binary,
            url,
            f'--port={port}',
            '--output=json',
            '--output-path=stdout',
            '--quiet',
            '--only-categories=' + ','.join(self.only_categories),
        ]
        if self.preset:
            cmd.append(f'--preset={self.preset}')
        return cmd

    def run(self, url: str, port: int) -> LighthouseMetrics:
        """Audit url using the browser listening on port."""
        cmd = self.build_command(url, port)
        log.info('Running Lighthouse for: %s', url)

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise LighthouseError(f'Lighthouse executable not found: {self.binary}') from None
        except subprocess.TimeoutExpired:
            raise LighthouseError(f'Lighthouse timed out after {self.timeout}s') from None

        if result.returncode != 0:
            stderr = (result.stderr or '').strip().splitlines()
            detail = stderr[-1] if stderr else f'exit code {result.returncode}'
            raise LighthouseError(f'Lighthouse failed: {detail}')

        try:
            report = json.loads(result.stdout)
        except ValueError as exc:
            raise LighthouseError(f'Lighthouse output is not valid JSON: {exc}') from exc

        runtime_error = report.get('runtimeError')
        if runtime_error and runtime_error.get('code') not in (None, 'NO_ERROR'):
            raise LighthouseError(runtime_error.get('message') or runtime_error['code'])

        metrics = parse_report(report)
        log.info('Lighthouse completed for %s (score %s)', url, metrics.performance_score)
        return metrics
