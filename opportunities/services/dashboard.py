"""
Figures and filters behind the worker and employer dashboards.

All of it works on rows already fetched from the backend. Earnings and
payment amounts are display proxies: there is no payment ledger.
"""
import logging
import math
from typing import List, Optional

from ..config import EARNINGS_RATE_PER_JOB, MONTHLY_SHARE
from ..db.models import (
    BookingsSummary, EarningsSummary, Job, JobCreateRequest, JobStatus, PaymentsSummary, WorkerOverview,
)

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 5


def split_skills(skills: Optional[str]) -> List[str]:
    return [s.strip() for s in (skills or "").split(",") if s.strip()]


def _status(job: dict) -> str:
    return job.get("status") or ""


def _budget(job: dict) -> float:
    return job.get("budget") or 0


# ----------------------------------------------------------------------
# Worker
# ----------------------------------------------------------------------

def total_earnings(profile: Optional[dict]) -> int:
    return ((profile or {}).get("completed_jobs") or 0) * EARNINGS_RATE_PER_JOB


def worker_overview(profile: dict) -> WorkerOverview:
    return WorkerOverview(
        full_name=profile.get("full_name") or "",
        is_verified=bool(profile.get("is_verified")),
        rating=profile.get("rating") or 0,
        completed_jobs=profile.get("completed_jobs") or 0,
        total_earnings=total_earnings(profile),
        location=profile.get("location") or "",
        skills=split_skills(profile.get("skills")),
        availability=profile.get("availability"),
    )


def worker_earnings(profile: dict) -> EarningsSummary:
    total = total_earnings(profile)
    return EarningsSummary(
        total_earnings=total,
        this_month=math.floor(total * MONTHLY_SHARE),
        pending_payment=0,
    )


def filter_worker_jobs(jobs: List[dict], job_filter: str = "all") -> List[dict]:
    """
    Sub-tabs of "My Jobs".
    active: status active or in_progress; completed: status completed or applied to.
    """
    if job_filter == "active":
        return [j for j in jobs if _status(j) in ("active", JobStatus.IN_PROGRESS.value)]
    if job_filter == "completed":
        return [j for j in jobs if _status(j) == JobStatus.COMPLETED.value or j.get("applied") is True]
    return list(jobs)


# ----------------------------------------------------------------------
# Employer
# ----------------------------------------------------------------------

def filter_workers(workers: List[dict], query: str = "") -> List[dict]:
    """Case-insensitive substring match of the query against name or skills."""
    needle = (query or "").lower()
    return [
        w for w in workers
        if needle in (w.get("full_name") or "").lower() or needle in (w.get("skills") or "").lower()
    ]


def bookings_summary(jobs: List[dict]) -> BookingsSummary:
    active_statuses = (JobStatus.ASSIGNED.value, JobStatus.IN_PROGRESS.value)
    return BookingsSummary(
        total=len(jobs),
        active=sum(1 for j in jobs if _status(j) in active_statuses),
        completed=sum(1 for j in jobs if _status(j) == JobStatus.COMPLETED.value),
        jobs=[Job(**j) for j in jobs],
    )


def payments_summary(jobs: List[dict]) -> PaymentsSummary:
    total_spent = sum(_budget(j) for j in jobs)
    in_progress = [j for j in jobs if _status(j) == JobStatus.IN_PROGRESS.value]
    completed = [j for j in jobs if _status(j) == JobStatus.COMPLETED.value]
    return PaymentsSummary(
        total_spent=total_spent,
        this_month=math.floor(total_spent * MONTHLY_SHARE),
        pending_amount=sum(_budget(j) for j in in_progress),
        pending_count=len(in_progress),
        completed_transactions=len(completed),
        recent_transactions=[Job(**j) for j in completed[:RECENT_TRANSACTIONS]],
    )


def build_job_record(request: JobCreateRequest, employer_id: str) -> dict:
    """Row for the jobs table, as the web client writes it. Category falls back to the worker type."""
    return {
        "employer_id": employer_id,
        "title": request.title,
        "description": request.description,
        "budget": request.budget,
        "location": request.location,
        "category": request.category or request.worker_type,
        "type": request.worker_type,
        "status": JobStatus.OPEN.value,
    }
