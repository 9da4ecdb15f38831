from typing import Callable

from fastapi import Depends, HTTPException, Request

from .. import config
from ..db.models import UserType
from ..services.auth_context import AuthContext
from ..services.face_matcher import simulated_match
from ..services.verification_wizard import WizardRegistry

ACCESS_DENIED_MESSAGES = {
    UserType.WORKER: "Please log in as a worker to access this dashboard.",
    UserType.EMPLOYER: "Please log in as an employer to access this dashboard.",
}


def get_backend(request: Request):
    return request.app.state.backend


def get_auth_context(request: Request) -> AuthContext:
    return request.app.state.auth_context


def get_wizards(request: Request) -> WizardRegistry:
    return request.app.state.wizards


def get_match_decider() -> Callable[[], bool]:
    return simulated_match


def get_match_delay() -> float:
    return config.MATCH_DELAY_SECONDS


def _require_role(auth: AuthContext, role: UserType) -> AuthContext:
    # Display gate only; the backend's row-level policies decide what data is readable
    if auth.user is None or auth.user_type != role:
        raise HTTPException(
            status_code=403,
            detail={"status": "access_denied", "title": "Access Denied", "message": ACCESS_DENIED_MESSAGES[role]},
        )
    return auth


def require_worker(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    return _require_role(auth, UserType.WORKER)


def require_employer(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    return _require_role(auth, UserType.EMPLOYER)
