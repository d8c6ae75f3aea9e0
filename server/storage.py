"""SQLite storage for audit job metadata and results."""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4


BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / 'data'
REPORTS_DIR = DATA_DIR / 'reports'
DB_PATH = DATA_DIR / 'audits.db'


def ensure_dirs() -> None:
    """Ensure data directories exist."""
    DATA_DIR.mkdir(exist_ok=True)
    REPORTS_DIR.mkdir(exist_ok=True)


def get_connection() -> sqlite3.Connection:
    """Get a DB connection."""
    ensure_dirs()
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Initialize DB schema."""
    with get_connection() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                status TEXT NOT NULL,
                urls_json TEXT NOT NULL,
                config_json TEXT NOT NULL,
                report_text_path TEXT,
                report_json_path TEXT,
                error_message TEXT
            )
            """
        )
        conn.commit()


def _row_to_job(row: sqlite3.Row) -> dict:
    job = dict(row)
    job['urls'] = json.loads(job.pop('urls_json'))
    job['config'] = json.loads(job.pop('config_json'))
    return job


def create_job(urls: list, config: dict) -> str:
    """Insert a new job and return its ID."""
    job_id = str(uuid4())
    created_at = datetime.now(timezone.utc).isoformat()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO jobs (id, created_at, status, urls_json, config_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            (job_id, created_at, 'queued', json.dumps(urls), json.dumps(config))
        )
        conn.commit()
    return job_id


def update_status(job_id: str, status: str, error_message: str = '') -> None:
    """Update job status."""
    with get_connection() as conn:
        conn.execute(
            """
            UPDATE jobs
            SET status = ?, error_message = ?
            WHERE id = ?
            """,
            (status, error_message, job_id)
        )
        conn.commit()


def attach_results(job_id: str, report_text_path: str, report_json_path: str) -> None:
    """Attach report file paths."""
    with get_connection() as conn:
        conn.execute(
            """
            UPDATE jobs
            SET report_text_path = ?, report_json_path = ?
            WHERE id = ?
            """,
            (report_text_path, report_json_path, job_id)
        )
        conn.commit()


def get_job(job_id: str) -> dict | None:
    """Fetch job by ID."""
    with get_connection() as conn:
        row = conn.execute(
            "SELECT * FROM jobs WHERE id = ?",
            (job_id,)
        ).fetchone()
        if not row:
            return None
        return _row_to_job(row)


def list_jobs(limit: int = 50) -> list:
    """List recent jobs."""
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM jobs ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,)
        ).fetchall()
        return [_row_to_job(r) for r in rows]
