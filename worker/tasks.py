"""Background tasks for running audit batches."""

import json
import logging
from typing import Any

from server.schemas import AuditOptions
from server.storage import update_status, attach_results, REPORTS_DIR
from auditor import run_batch, generate_report, generate_json_report

log = logging.getLogger(__name__)


def run_audit_task(job_id: str, payload: dict[str, Any]) -> None:
    """Run a batch and persist results."""
    update_status(job_id, 'running')
    try:
        options = AuditOptions(**payload.get('config', {}))
        batch = run_batch(payload['urls'], options.to_config())

        REPORTS_DIR.mkdir(parents=True, exist_ok=True)
        text_path = REPORTS_DIR / f'{job_id}.txt'
        json_path = REPORTS_DIR / f'{job_id}.json'

        text_path.write_text(generate_report(batch), encoding='utf-8')
        json_path.write_text(json.dumps(generate_json_report(batch), indent=2), encoding='utf-8')

        attach_results(job_id, str(text_path), str(json_path))
        update_status(job_id, 'finished')
    except Exception as exc:
        log.exception('Audit job %s failed', job_id)
        update_status(job_id, 'failed', error_message=str(exc)[:200])
