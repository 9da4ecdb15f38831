import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..db import crud
from ..db.backend import BackendError
from ..db.models import (
    BookingsSummary, Employer, EmployerProfileUpdate, JobCreateRequest, PaymentsSummary, Worker, WORKER_CATEGORIES,
)
from ..services import dashboard
from ..services.auth_context import AuthContext
from .deps import require_employer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employer", tags=["employer dashboard"])


def _employer_jobs(auth: AuthContext) -> list:
    try:
        return crud.get_jobs_by_employer(auth.backend, auth.user_id)
    except BackendError as e:
        logger.error(f"Error loading jobs for employer {auth.user_id}: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)


@router.get("/dashboard/search")
def search_workers(
        q: str = Query("", description="Matches worker name or skills"),
        category: str = Query("all"),
        location: str = Query(None),
        auth: AuthContext = Depends(require_employer),
):
    """
    Verified workers, best rated first.
    category/location narrow the backend query; q is matched locally against name and skills.
    """
    if category not in WORKER_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")

    try:
        workers = crud.get_nearby_workers(auth.backend, location=location, category=category)
    except BackendError as e:
        logger.error(f"Error loading workers: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    matches = dashboard.filter_workers(workers, q)
    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "category": category,
            "count": len(matches),
            "workers": [Worker.model_validate(w).model_dump(mode="json") for w in matches],
        }
    )


@router.get("/dashboard/jobs")
def my_jobs(auth: AuthContext = Depends(require_employer)):
    jobs = _employer_jobs(auth)
    return JSONResponse(status_code=200, content={"status": "success", "count": len(jobs), "jobs": jobs})


@router.post("/jobs", status_code=201)
def post_job(body: JobCreateRequest, auth: AuthContext = Depends(require_employer)):
    record = dashboard.build_job_record(body, auth.user_id)
    try:
        job = crud.create_job(auth.backend, record)
    except BackendError as e:
        logger.error(f"Error posting job for {auth.user_id}: {e.message}")
        raise HTTPException(status_code=502, detail="Failed to post job.")

    return JSONResponse(
        status_code=201,
        content={"status": "success", "message": "Job posted successfully!", "job": job}
    )


@router.get("/dashboard/bookings", response_model=BookingsSummary)
def bookings(auth: AuthContext = Depends(require_employer)):
    return dashboard.bookings_summary(_employer_jobs(auth))


@router.get("/dashboard/payments", response_model=PaymentsSummary)
def payments(auth: AuthContext = Depends(require_employer)):
    return dashboard.payments_summary(_employer_jobs(auth))


@router.get("/dashboard/profile")
def profile(auth: AuthContext = Depends(require_employer)):
    if not auth.profile:
        raise HTTPException(status_code=404, detail="Employer profile not found")
    employer = Employer.model_validate(auth.profile)
    return JSONResponse(status_code=200, content={"status": "success", "profile": employer.model_dump(mode="json")})


@router.put("/profile")
def update_profile(body: EmployerProfileUpdate, auth: AuthContext = Depends(require_employer)):
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No profile fields to update")

    try:
        crud.update_employer_profile(auth.backend, auth.user_id, updates)
    except BackendError as e:
        logger.error(f"Error updating employer profile for {auth.user_id}: {e.message}")
        raise HTTPException(status_code=502, detail="Failed to update profile. Please try again.")

    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "message": "Profile updated successfully!",
            "profile": auth.refresh_profile(),
        }
    )
