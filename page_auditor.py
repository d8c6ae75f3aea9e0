#!/usr/bin/env python3
"""
Page Audit Service
Measures load time, meta tags, structured data, product tiles, API usage
and Lighthouse performance for a list of URLs.
Requires: pip install -e . && playwright install chromium && npm install -g lighthouse
"""

import json
import logging
import sys
from datetime import datetime

from auditor import AuditConfig, run_batch, generate_report, generate_json_report
from server.config import settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level.upper(),
    format='[%(levelname)s] %(message)s',
)
log = logging.getLogger(__name__)


def serve(port: int = settings.port) -> None:
    """Run the HTTP API."""
    import uvicorn  # noqa: lazy import, only needed in server mode

    log.info('Page audit server is running on port %d', port)
    uvicorn.run('server.app:app', host='0.0.0.0', port=port, log_level=settings.log_level.lower())


def main():
    """CLI entry point.

    No arguments   -> serves the HTTP API on $PORT.
    With URL args  -> audits the URLs and writes text and JSON reports.
    """
    if len(sys.argv) < 2:
        serve()
        return

    urls = sys.argv[1:]

    print('\nPage Audit Service')
    print(f'Targets: {len(urls)}')
    print('-' * 40)

    config = AuditConfig(
        device=settings.default_device,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        max_retries=settings.max_retries,
        retry_delay_s=settings.retry_delay_s,
        run_lighthouse=True,
        lighthouse_bin=settings.lighthouse_bin,
        lighthouse_timeout_s=settings.lighthouse_timeout,
    )
    batch = run_batch(urls, config, progress_callback=log.info)

    report_text = generate_report(batch)
    print('\n' + report_text)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    filename = f'page_audit_{timestamp}.txt'
    json_filename = f'page_audit_{timestamp}.json'

    with open(filename, 'w', encoding='utf-8') as f:
        f.write(report_text)
    with open(json_filename, 'w', encoding='utf-8') as f:
        json.dump(generate_json_report(batch), f, indent=2)

    log.info('Report saved to: %s', filename)
    log.info('JSON saved to: %s', json_filename)


if __name__ == '__main__':
    main()
