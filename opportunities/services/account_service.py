"""
Signup and login rules shared by the worker and employer screens.

Password checks happen locally, before the backend is touched. Backend
errors are turned into the messages the forms show.
"""
import logging
from typing import Optional

from ..db import crud
from ..db.backend import BackendError, MISSING_CREDENTIALS_MESSAGE
from ..db.models import UserType, WorkerSignupRequest, EmployerSignupRequest
from ..utils.validators import validate_password_pair
from .auth_context import user_type_tag

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Login failed. Please check your credentials."

ROLE_MISMATCH_MESSAGES = {
    UserType.WORKER: "This account is registered as an employer. Please use the employer login.",
    UserType.EMPLOYER: "This account is registered as a worker. Please use the worker login.",
}


class AccountError(Exception):
    """A signup/login attempt rejected with a message meant for the user."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def friendly_signup_error(error: BackendError) -> str:
    message = error.message or ""
    if "User already registered" in message or error.code == "user_already_exists":
        return "This email is already registered. Please try logging in instead."
    if "Invalid email" in message:
        return "Please enter a valid email address."
    if "Password" in message:
        return "Password must be at least 6 characters long."
    return message or "Registration failed. An unexpected error occurred. Please try again."


def _require_configured(backend) -> None:
    if not backend.is_configured():
        logger.error("Supabase credentials not configured")
        raise AccountError(MISSING_CREDENTIALS_MESSAGE, status_code=503)


def _register(backend, sign_up, email: str, password: str, confirm_password: str, profile: dict):
    is_valid, error_message = validate_password_pair(password, confirm_password)
    if not is_valid:
        raise AccountError(error_message)

    _require_configured(backend)

    try:
        result = sign_up(backend, email, password, profile)
    except BackendError as e:
        logger.error(f"Signup error for {email}: {e.message} (code={e.code})")
        raise AccountError(friendly_signup_error(e)) from e

    user = getattr(result, "user", None)
    if user is None:
        raise AccountError("Registration failed. Please try again.")
    return user


def register_worker(backend, request: WorkerSignupRequest):
    """Create a worker account. Returns the provider's user object."""
    logger.info(f"Attempting to sign up worker with email: {request.email}")
    profile = {
        "full_name": request.full_name,
        "phone": request.phone,
        "location": request.location,
        "skills": request.skills,
        "experience": request.experience,
        "availability": request.availability.value,
    }
    return _register(backend, crud.sign_up_worker, request.email, request.password,
                     request.confirm_password, profile)


def register_employer(backend, request: EmployerSignupRequest):
    logger.info(f"Attempting to sign up employer with email: {request.email}")
    profile = {
        "full_name": request.full_name,
        "id_number": request.id_number,
    }
    return _register(backend, crud.sign_up_employer, request.email, request.password,
                     request.confirm_password, profile)


def login(backend, email: str, password: str, expected: UserType):
    """
    Sign in and check the account's role tag against the screen used.
    Accounts without a tag are let through, as before role tags existed.
    """
    _require_configured(backend)
    logger.info(f"Attempting to sign in {expected.value} with email: {email}")

    try:
        result = crud.sign_in_user(backend, email, password)
    except BackendError as e:
        logger.error(f"{expected.value.capitalize()} login error: {e.message}")
        raise AccountError(e.message or LOGIN_FAILED_MESSAGE, status_code=401) from e

    user = getattr(result, "user", None)
    if user is None:
        raise AccountError(LOGIN_FAILED_MESSAGE, status_code=401)

    tag: Optional[str] = user_type_tag(user)
    if tag and tag != expected.value:
        raise AccountError(ROLE_MISMATCH_MESSAGES[expected], status_code=403)

    return user
