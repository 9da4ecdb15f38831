import logging
from datetime import datetime, timezone
from typing import Optional

from .backend import BackendError

logger = logging.getLogger(__name__)

WORKERS_TABLE = "workers"
EMPLOYERS_TABLE = "employers"
JOBS_TABLE = "jobs"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------

def _sign_up(backend, table: str, user_type: str, email: str, password: str, profile: dict):
    result = backend.sign_up(email, password, {"user_type": user_type, **profile})
    user = getattr(result, "user", None)
    if user is not None:
        backend.insert(table, {"id": user.id, "email": email, **profile})
        logger.info(f"{user_type.capitalize()} account created: {user.id}")
    return result


def sign_up_worker(backend, email: str, password: str, worker_data: dict):
    """Create the identity (tagged user_type=worker) and its workers row."""
    return _sign_up(backend, WORKERS_TABLE, "worker", email, password, worker_data)


def sign_up_employer(backend, email: str, password: str, employer_data: dict):
    return _sign_up(backend, EMPLOYERS_TABLE, "employer", email, password, employer_data)


def sign_in_user(backend, email: str, password: str):
    return backend.sign_in(email, password)


# ----------------------------------------------------------------------
# Profiles
# ----------------------------------------------------------------------

def _get_profile(backend, table: str, user_id: str) -> Optional[dict]:
    try:
        return backend.select_one(table, "id", user_id)
    except BackendError as e:
        logger.error(f"Error fetching {table} profile {user_id}: {e.message}", exc_info=True)
        return None


def get_worker_profile(backend, user_id: str) -> Optional[dict]:
    """Worker row, or None when missing or unreadable."""
    return _get_profile(backend, WORKERS_TABLE, user_id)


def get_employer_profile(backend, user_id: str) -> Optional[dict]:
    return _get_profile(backend, EMPLOYERS_TABLE, user_id)


def update_worker_profile(backend, user_id: str, updates: dict) -> dict:
    return backend.update(WORKERS_TABLE, user_id, {**updates, "updated_at": _now_iso()})


def update_employer_profile(backend, user_id: str, updates: dict) -> dict:
    return backend.update(EMPLOYERS_TABLE, user_id, {**updates, "updated_at": _now_iso()})


def verify_worker(backend, user_id: str, id_document_url: str, selfie_url: str) -> dict:
    """Mark the worker verified with the public URLs of both artifacts. There is no un-verify."""
    row = backend.update(WORKERS_TABLE, user_id, {
        "is_verified": True,
        "id_document_url": id_document_url,
        "selfie_url": selfie_url,
        "updated_at": _now_iso(),
    })
    logger.info(f"✓ Worker {user_id} marked verified")
    return row


# ----------------------------------------------------------------------
# Search / jobs / files
# ----------------------------------------------------------------------

def get_nearby_workers(backend, location: Optional[str] = None, category: Optional[str] = None) -> list:
    """Verified workers, best rated first. Category and location are ILIKE substring filters."""
    ilike = {}
    if category and category != "all":
        ilike["skills"] = f"%{category}%"
    if location:
        ilike["location"] = f"%{location}%"
    return backend.select_many(
        WORKERS_TABLE,
        eq={"is_verified": True},
        ilike=ilike,
        order_by="rating",
        descending=True,
    )


def upload_file(backend, data: bytes, bucket: str, path: str, content_type: str) -> str:
    return backend.upload(bucket, path, data, content_type)


def create_job(backend, job_data: dict) -> dict:
    job = backend.insert(JOBS_TABLE, job_data)
    logger.info(f"Job created for employer {job_data.get('employer_id')}: {job_data.get('title')}")
    return job


def get_jobs_by_employer(backend, employer_id: str) -> list:
    return backend.select_many(
        JOBS_TABLE,
        columns="*, worker:workers(full_name, rating)",
        eq={"employer_id": employer_id},
        order_by="created_at",
        descending=True,
    )


def get_jobs_by_worker(backend, worker_id: str) -> list:
    return backend.select_many(
        JOBS_TABLE,
        columns="*, employer:employers(full_name)",
        eq={"worker_id": worker_id},
        order_by="created_at",
        descending=True,
    )
