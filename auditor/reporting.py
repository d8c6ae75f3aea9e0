"""Report generation: JSON payloads for the API and a human-readable text summary.

The JSON shapes are what the HTTP endpoints return; the text report is
printed by the CLI and stored next to background job results.
"""

from dataclasses import asdict

from .models import AuditResult, BatchResult, LighthouseMetrics
from .url_utils import get_short_url


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def lighthouse_metrics_to_dict(metrics: LighthouseMetrics) -> dict:
    """The five headline display values."""
    return {
        'fcp': metrics.fcp,
        'lcp': metrics.lcp,
        'tbt': metrics.tbt,
        'cls': metrics.cls,
        'si': metrics.si,
    }


def lighthouse_to_dict(result: AuditResult) -> dict:
    """Legacy /lighthouse shape: {url, fcp, lcp, tbt, cls, si} or {url, error}."""
    if result.lighthouse is not None:
        return {'url': result.url, **lighthouse_metrics_to_dict(result.lighthouse)}
    return {'url': result.url, 'error': result.error or result.lighthouse_error or 'Lighthouse did not run'}


def result_to_dict(result: AuditResult) -> dict:
    """Full per-URL analysis."""
    data = {
        'url': result.url,
        'final_url': result.final_url,
        'status_code': result.status_code,
        'load_time_ms': result.load_time_ms,
        'title': result.title,
        'meta_description': result.meta_description,
        'structured_data': asdict(result.structured_data),
        'products': asdict(result.products),
        'api_usage': asdict(result.api_usage),
        'lighthouse': None,
        'attempts': result.attempts,
    }
    if result.lighthouse is not None:
        data['lighthouse'] = {
            **lighthouse_metrics_to_dict(result.lighthouse),
            'performance_score': result.lighthouse.performance_score,
        }
    if result.lighthouse_error:
        data['lighthouse_error'] = result.lighthouse_error
    if result.error:
        data['error'] = result.error
    return data


def generate_json_report(batch: BatchResult) -> dict:
    """Generate a JSON-serializable report for a batch."""
    return {
        'generated_at': batch.finished_at,
        'started_at': batch.started_at,
        'count': len(batch.results),
        'failed': batch.failed,
        'results': [result_to_dict(r) for r in batch.results],
    }


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def _section_result(index: int, result: AuditResult) -> list[str]:
    lines = [f'[{index}] {get_short_url(result.url)}']

    if result.error:
        lines.append(f'    ERROR: {result.error}')
        return lines

    if result.final_url and result.final_url.rstrip('/') != result.url.rstrip('/'):
        lines.append(f'    Redirected to: {result.final_url}')
    if result.status_code is not None:
        lines.append(f'    Status: {result.status_code}')
    if result.load_time_ms is not None:
        lines.append(f'    Load time: {result.load_time_ms / 1000:.2f} s')
    lines.append(f'    Title: {result.title or "(none)"}')
    lines.append(f'    Meta description: {result.meta_description or "(none)"}')

    sd = result.structured_data
    lines.append(f'    Structured data: {sd.jsonld} JSON-LD ({sd.jsonld_invalid} invalid), '
                 f'{sd.microdata} microdata, {sd.rdfa} RDFa')
    if sd.types:
        top = sorted(sd.types.items(), key=lambda kv: (-kv[1], kv[0]))[:8]
        lines.append('      Types: ' + ', '.join(f'{name} x{count}' for name, count in top))

    pc = result.products
    lines.append(f'    Products: {pc.with_price} priced of {pc.candidates} candidates, '
                 f'{pc.schema_products} in structured data')
    if pc.category_count is not None:
        lines.append(f'      Category count: {pc.category_count}')

    api = result.api_usage
    if api.uses_api:
        kind = ' (GraphQL)' if api.graphql else ''
        lines.append(f'    API usage: yes{kind} – {len(api.api_endpoints)} endpoints, '
                     f'{api.xhr_count} XHR, {api.fetch_count} fetch')
        for endpoint in api.api_endpoints[:5]:
            lines.append(f'      {endpoint}')
    else:
        lines.append('    API usage: none detected')

    if result.lighthouse is not None:
        lh = result.lighthouse
        score = f'{lh.performance_score:.0f}' if lh.performance_score is not None else 'n/a'
        lines.append(f'    Lighthouse: score {score} | FCP {lh.fcp} | LCP {lh.lcp} | '
                     f'TBT {lh.tbt} | CLS {lh.cls} | SI {lh.si}')
    elif result.lighthouse_error:
        lines.append(f'    Lighthouse: failed ({result.lighthouse_error})')

    return lines


def generate_report(batch: BatchResult) -> str:
    """Generate the text report for a batch."""
    lines = [
        '=' * 60,
        'PAGE AUDIT REPORT',
        '=' * 60,
        f'Generated: {batch.finished_at}',
        f'Device profile: {batch.config.device}',
        f'URLs audited: {len(batch.results)} ({batch.failed} failed)',
        '',
    ]
    for index, result in enumerate(batch.results, start=1):
        lines.extend(_section_result(index, result))
        lines.append('')
    return '\n'.join(lines)
