"""
Application-scoped session state.

One AuthContext is created at startup (init) and closed at shutdown
(teardown). It mirrors the backend session: the signed-in user, the role tag
stored in the user's metadata at signup, and the matching profile row.
Endpoints receive it through a FastAPI dependency, so tests can build one
over a fake backend.

The role tag is only a display/routing hint. Row-level policies in the
backend are what actually restrict data access.
"""
import logging
from typing import Optional

from ..db import crud
from ..db.backend import BackendError
from ..db.models import UserType

logger = logging.getLogger(__name__)


def user_type_tag(user) -> Optional[str]:
    """Raw user_type value from the user's metadata, if any."""
    if user is None:
        return None
    metadata = getattr(user, "user_metadata", None) or {}
    return metadata.get("user_type") or None


def derive_user_type(user) -> Optional[UserType]:
    """Role of a provider user, or None when untagged or tagged with an unknown role."""
    tag = user_type_tag(user)
    try:
        return UserType(tag) if tag else None
    except ValueError:
        logger.warning(f"Unknown user_type in metadata: {tag}")
        return None


class AuthContext:
    def __init__(self, backend):
        self.backend = backend
        self._user = None
        self._profile: Optional[dict] = None
        self._user_type: Optional[UserType] = None
        self._loading = True
        self._subscription = None

    @property
    def user(self):
        return self._user

    @property
    def profile(self) -> Optional[dict]:
        return self._profile

    @property
    def user_type(self) -> Optional[UserType]:
        return self._user_type

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def user_id(self) -> Optional[str]:
        return getattr(self._user, "id", None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Restore the current session (if any) and follow session changes."""
        try:
            current_user = self.backend.get_current_user()
            self._user = current_user
            if current_user is not None:
                self._fetch_user_profile(current_user)
        except BackendError as e:
            logger.error(f"Error getting initial user: {e.message}")
        finally:
            self._loading = False

        try:
            self._subscription = self.backend.on_auth_state_change(self.handle_auth_change)
        except BackendError as e:
            logger.error(f"Could not subscribe to auth state changes: {e.message}")

    def teardown(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.info("Auth state subscription closed")

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def handle_auth_change(self, event, session) -> None:
        user = getattr(session, "user", None) if session is not None else None
        logger.info(f"Auth state change: {event} {getattr(user, 'id', None)}")
        try:
            self._user = user
            if user is not None:
                self._fetch_user_profile(user)
            else:
                self._clear()
        finally:
            self._loading = False

    def load_user(self, user) -> None:
        """Adopt a user obtained from an explicit sign in."""
        self._user = user
        self._fetch_user_profile(user)
        self._loading = False

    def _fetch_user_profile(self, user) -> None:
        self._user_type = derive_user_type(user)
        logger.debug(f"User type from metadata: {self._user_type}")

        if self._user_type == UserType.WORKER:
            self._profile = crud.get_worker_profile(self.backend, user.id)
        elif self._user_type == UserType.EMPLOYER:
            self._profile = crud.get_employer_profile(self.backend, user.id)
        else:
            logger.info("No user type found in metadata")
            self._profile = None

    def _clear(self) -> None:
        self._user = None
        self._profile = None
        self._user_type = None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def refresh_profile(self) -> Optional[dict]:
        if self._user is not None:
            self._fetch_user_profile(self._user)
        return self._profile

    def sign_out(self) -> None:
        try:
            self.backend.sign_out()
        finally:
            self._clear()
