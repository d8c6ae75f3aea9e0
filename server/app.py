"""FastAPI app for running page audits."""

import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse

from auditor import run_batch, validate_batch, lighthouse_to_dict, result_to_dict
from auditor.url_utils import URLS_ERROR
from . import queue as job_queue
from .config import settings
from .schemas import AuditOptions, AuditRequest, UrlBatch
from .storage import init_db, create_job, get_job, list_jobs

log = logging.getLogger(__name__)

app = FastAPI(title='Page Audit Service')


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({'error': message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies as 400 {"error": ...}."""
    errors = exc.errors()
    for err in errors:
        loc = err.get('loc', ())
        if 'urls' in loc or tuple(loc) == ('body',):
            return _error(URLS_ERROR, 400)
    first = errors[0] if errors else {}
    field = '.'.join(str(part) for part in first.get('loc', ())[1:])
    message = first.get('msg', 'Invalid request body')
    return _error(f'{field}: {message}' if field else message, 400)


@app.on_event('startup')
def on_startup() -> None:
    """Initialize DB on startup."""
    init_db()


@app.get('/health')
def health() -> dict:
    """Health check."""
    return {'status': 'ok'}


@app.post('/lighthouse')
def lighthouse(payload: UrlBatch):
    """Run Lighthouse performance audits for a batch of URLs."""
    try:
        urls = validate_batch(payload.urls, settings.max_batch_urls)
    except ValueError as exc:
        return _error(str(exc), 400)

    try:
        # Lighthouse's own default form factor is mobile.
        config = AuditOptions(device='mobile').to_config(collect_signals=False, run_lighthouse=True)
        batch = run_batch(urls, config)
    except Exception as exc:
        log.exception('Error in /lighthouse endpoint')
        return _error(str(exc), 500)
    return {'results': [lighthouse_to_dict(r) for r in batch.results]}


@app.post('/analyze')
def analyze(payload: AuditRequest):
    """Run the full page analysis for a batch of URLs."""
    try:
        urls = validate_batch(payload.urls, settings.max_batch_urls)
        config = payload.config.to_config()
    except ValueError as exc:
        return _error(str(exc), 400)

    try:
        batch = run_batch(urls, config)
    except Exception as exc:
        log.exception('Error in /analyze endpoint')
        return _error(str(exc), 500)
    return {'results': [result_to_dict(r) for r in batch.results]}


@app.post('/api/jobs')
def create_audit_job(payload: AuditRequest):
    """Queue a batch for background auditing."""
    try:
        urls = validate_batch(payload.urls, settings.max_batch_urls)
    except ValueError as exc:
        return _error(str(exc), 400)

    job_id = create_job(urls, payload.config.model_dump())
    queue = job_queue.get_queue()
    queue.enqueue(
        'worker.tasks.run_audit_task',
        job_id,
        payload.model_dump(),
        job_timeout=60 * 30
    )
    return {'id': job_id, 'status': 'queued'}


@app.get('/api/jobs')
def jobs_list():
    """List recent jobs."""
    return list_jobs()


@app.get('/api/jobs/{job_id}')
def job_detail(job_id: str):
    """Get job status and metadata."""
    job = get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail='Job not found')
    return job


@app.get('/api/jobs/{job_id}/report')
def job_report(job_id: str):
    """Get text report."""
    job = get_job(job_id)
    if not job or not job.get('report_text_path') or not Path(job['report_text_path']).exists():
        raise HTTPException(status_code=404, detail='Report not found')
    return FileResponse(job['report_text_path'], media_type='text/plain')


@app.get('/api/jobs/{job_id}/report.json')
def job_report_json(job_id: str):
    """Get JSON report."""
    job = get_job(job_id)
    if not job or not job.get('report_json_path') or not Path(job['report_json_path']).exists():
        raise HTTPException(status_code=404, detail='Report not found')
    return FileResponse(job['report_json_path'], media_type='application/json')