import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..db import crud
from ..db.backend import BackendError
from ..db.models import EarningsSummary, WizardSnapshot, Worker, WorkerOverview, WorkerProfileUpdate
from ..services import dashboard
from ..services.auth_context import AuthContext
from ..services.verification_wizard import VerificationWizard, WizardEntry, WizardRegistry, WizardState
from .deps import get_match_decider, get_match_delay, get_wizards, require_worker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/worker", tags=["worker dashboard"])


def _profile(auth: AuthContext) -> dict:
    if not auth.profile:
        raise HTTPException(status_code=404, detail="Worker profile not found")
    return auth.profile


@router.get("/dashboard/overview", response_model=WorkerOverview)
def overview(auth: AuthContext = Depends(require_worker)):
    return dashboard.worker_overview(_profile(auth))


@router.get("/dashboard/verify", response_model=WizardSnapshot)
def verify_tab(
        auth: AuthContext = Depends(require_worker),
        wizards: WizardRegistry = Depends(get_wizards),
        match_decider=Depends(get_match_decider),
        match_delay: float = Depends(get_match_delay),
):
    """
    Open (or resume) the verification wizard for the signed-in worker.
    A verified profile always shows "verified"; an unfinished wizard left from before is replaced.
    """
    wizard = wizards.get(auth.user_id)
    profile_verified = bool(auth.profile and auth.profile.get("is_verified"))
    if wizard is not None and profile_verified and wizard.state != WizardState.VERIFIED:
        logger.info(f"Profile {auth.user_id} already verified, replacing wizard at '{wizard.state.value}'")
        wizards.discard(auth.user_id)
        wizard = None
    if wizard is None:
        wizard = wizards.add(VerificationWizard(
            auth.backend,
            entry=WizardEntry.DASHBOARD,
            user_id=auth.user_id,
            profile=auth.profile,
            match_decider=match_decider,
            delay_seconds=match_delay,
            on_verified=auth.refresh_profile,
        ))
        logger.info(f"Dashboard verification opened for {auth.user_id} at '{wizard.state.value}'")
    return wizard.snapshot()


@router.get("/dashboard/jobs")
def my_jobs(
        job_filter: str = Query("all", alias="filter", pattern="^(all|active|completed)$"),
        auth: AuthContext = Depends(require_worker),
):
    try:
        jobs = crud.get_jobs_by_worker(auth.backend, auth.user_id)
    except BackendError as e:
        logger.error(f"Error loading jobs for worker {auth.user_id}: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)

    filtered = dashboard.filter_worker_jobs(jobs, job_filter)
    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "filter": job_filter,
            "count": len(filtered),
            "jobs": filtered,
        }
    )


@router.get("/dashboard/earnings", response_model=EarningsSummary)
def earnings(auth: AuthContext = Depends(require_worker)):
    return dashboard.worker_earnings(_profile(auth))


@router.get("/dashboard/profile")
def profile(auth: AuthContext = Depends(require_worker)):
    worker = Worker.model_validate(_profile(auth))
    return JSONResponse(status_code=200, content={"status": "success", "profile": worker.model_dump(mode="json")})


@router.put("/profile")
def update_profile(body: WorkerProfileUpdate, auth: AuthContext = Depends(require_worker)):
    """Partial update from the profile tab; the session profile is re-read afterwards."""
    updates = body.model_dump(exclude_none=True, mode="json")
    if not updates:
        raise HTTPException(status_code=400, detail="No profile fields to update")

    try:
        crud.update_worker_profile(auth.backend, auth.user_id, updates)
    except BackendError as e:
        logger.error(f"Error updating profile for {auth.user_id}: {e.message}")
        raise HTTPException(status_code=502, detail="Failed to update profile. Please try again.")

    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "message": "Profile updated successfully!",
            "profile": auth.refresh_profile(),
        }
    )
