import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..db.backend import BackendError
from ..db.models import (
    Employer, EmployerSignupRequest, LoginRequest, SessionResponse, UserType, WizardSnapshot, Worker,
    WorkerSignupRequest,
)
from ..services import account_service
from ..services.account_service import AccountError
from ..services.auth_context import AuthContext
from ..services.verification_wizard import VerificationWizard, WizardEntry, WizardRegistry
from .deps import get_auth_context, get_backend, get_match_decider, get_match_delay, get_wizards

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

PROFILE_MODELS = {UserType.WORKER: Worker, UserType.EMPLOYER: Employer}


def _session_response(auth: AuthContext) -> SessionResponse:
    return SessionResponse(
        status="success",
        user_id=auth.user_id,
        email=getattr(auth.user, "email", None),
        user_type=auth.user_type,
    )


@router.post(
    "/worker/signup",
    summary="Worker signup (step 1 of verification)",
    response_model=WizardSnapshot,
)
def worker_signup(
        request: WorkerSignupRequest,
        backend=Depends(get_backend),
        auth: AuthContext = Depends(get_auth_context),
        wizards: WizardRegistry = Depends(get_wizards),
        match_decider=Depends(get_match_decider),
        match_delay: float = Depends(get_match_delay),
):
    """
    Create the worker account and open a verification wizard for it.
    The returned user_id addresses the wizard under /verification/{user_id}.
    """
    wizard = VerificationWizard(
        backend,
        entry=WizardEntry.SIGNUP,
        match_decider=match_decider,
        delay_seconds=match_delay,
        on_verified=auth.refresh_profile,
    )
    try:
        wizard.submit_profile(request)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error in worker signup: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    wizards.add(wizard)
    logger.info(f"New worker signed up: {wizard.user_id}, wizard at '{wizard.state.value}'")
    return wizard.snapshot()


@router.post("/employer/signup", response_model=SessionResponse)
def employer_signup(request: EmployerSignupRequest, backend=Depends(get_backend)):
    try:
        user = account_service.register_employer(backend, request)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error(f"Error in employer signup: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return SessionResponse(status="success", user_id=user.id, email=getattr(user, "email", None),
                           user_type=UserType.EMPLOYER)


def _login(body: LoginRequest, expected: UserType, backend, auth: AuthContext) -> SessionResponse:
    try:
        user = account_service.login(backend, body.email, body.password, expected)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    auth.load_user(user)
    return _session_response(auth)


@router.post("/worker/login", response_model=SessionResponse)
def worker_login(body: LoginRequest, backend=Depends(get_backend),
                 auth: AuthContext = Depends(get_auth_context)):
    return _login(body, UserType.WORKER, backend, auth)


@router.post("/employer/login", response_model=SessionResponse)
def employer_login(body: LoginRequest, backend=Depends(get_backend),
                   auth: AuthContext = Depends(get_auth_context)):
    return _login(body, UserType.EMPLOYER, backend, auth)


@router.post("/auth/logout")
def logout(auth: AuthContext = Depends(get_auth_context), wizards: WizardRegistry = Depends(get_wizards)):
    """Sign out and drop the user's verification wizard (stops its camera)."""
    wizards.discard(auth.user_id)
    try:
        auth.sign_out()
    except BackendError as e:
        logger.error(f"Sign out error: {e.message}")
        raise HTTPException(status_code=502, detail=e.message)
    return JSONResponse(status_code=200, content={"status": "success"})


@router.get("/auth/session")
def get_session(auth: AuthContext = Depends(get_auth_context)):
    profile = auth.profile
    if profile is not None and auth.user_type is not None:
        profile = PROFILE_MODELS[auth.user_type].model_validate(profile).model_dump(mode="json")
    return JSONResponse(
        status_code=200,
        content={
            "status": "success",
            "loading": auth.loading,
            "user_id": auth.user_id,
            "user_type": auth.user_type.value if auth.user_type else None,
            "profile": profile,
        }
    )


@router.post("/auth/refresh")
def refresh_profile(auth: AuthContext = Depends(get_auth_context)):
    if auth.user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return JSONResponse(status_code=200, content={"status": "success", "profile": auth.refresh_profile()})
