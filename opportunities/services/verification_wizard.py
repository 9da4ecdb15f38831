"""
Worker identity verification wizard.

    profile -> upload -> camera-idle -> camera-active -> selfie-captured
            -> processing -> verified | failed

The same machine serves new workers coming from signup (starting at
"profile") and signed-in workers verifying from their dashboard (starting
at "upload", or already "verified"). A step only advances once its artifact
is present. The camera stream belongs to the camera-active step: every
transition out of that step stops it, and close() stops it as well.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..config import DOCUMENTS_BUCKET, SELFIES_BUCKET, MATCH_DELAY_SECONDS, WIZARD_IDLE_SECONDS
from ..db import crud
from ..db.models import WizardSnapshot, WorkerSignupRequest
from ..utils.validators import validate_document_upload
from .account_service import register_worker
from .camera import CameraStream, CameraError, CameraUnavailableError
from .face_matcher import MatchDecider, simulated_match, wait_for_match

logger = logging.getLogger(__name__)


class WizardState(str, Enum):
    PROFILE = "profile"
    UPLOAD = "upload"
    CAMERA_IDLE = "camera-idle"
    CAMERA_ACTIVE = "camera-active"
    SELFIE_CAPTURED = "selfie-captured"
    PROCESSING = "processing"
    VERIFIED = "verified"
    FAILED = "failed"


class WizardEntry(str, Enum):
    SIGNUP = "signup"
    DASHBOARD = "dashboard"


class FailureReason(str, Enum):
    NO_MATCH = "no_match"
    PROCESSING_ERROR = "processing_error"


class WizardStepError(Exception):
    """Action not allowed in the current step, or its artifact is missing."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class DocumentFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return self.filename.rsplit(".", 1)[-1]


class VerificationWizard:
    def __init__(self, backend, entry: WizardEntry = WizardEntry.SIGNUP,
                 user_id: Optional[str] = None, profile: Optional[dict] = None,
                 match_decider: Optional[MatchDecider] = None,
                 delay_seconds: float = MATCH_DELAY_SECONDS,
                 camera_factory: Callable[[], CameraStream] = CameraStream,
                 on_verified: Optional[Callable[[], object]] = None,
                 clock: Callable[[], float] = time.time):
        self.backend = backend
        self.entry = entry
        self.user_id = user_id
        self.match_decider = match_decider or simulated_match
        self.delay_seconds = delay_seconds
        self.camera_factory = camera_factory
        self.on_verified = on_verified
        self.clock = clock

        self.document: Optional[DocumentFile] = None
        self.selfie: Optional[bytes] = None
        self.camera: Optional[CameraStream] = None
        self.failure_reason: Optional[FailureReason] = None
        self.error: Optional[str] = None

        if entry == WizardEntry.SIGNUP:
            self.state = WizardState.PROFILE
        elif profile and profile.get("is_verified"):
            self.state = WizardState.VERIFIED
        else:
            self.state = WizardState.UPLOAD

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_state(self, new_state: WizardState) -> None:
        if self.state == WizardState.CAMERA_ACTIVE and new_state != WizardState.CAMERA_ACTIVE:
            self._release_camera()
        logger.debug(f"Wizard {self.user_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _require(self, *states: WizardState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise WizardStepError(f"Not allowed in step '{self.state.value}' (expected: {allowed})")

    def _release_camera(self) -> None:
        if self.camera is not None:
            self.camera.stop()
            self.camera = None

    def _drop_artifacts(self) -> None:
        self.document = None
        self.selfie = None

    def _fail_step(self, message: str):
        self.error = message
        raise WizardStepError(message)

    # ------------------------------------------------------------------
    # Step 1: profile (signup entry only)
    # ------------------------------------------------------------------

    def submit_profile(self, request: WorkerSignupRequest) -> str:
        """Create the worker account. Password errors raise AccountError before any backend call."""
        self._require(WizardState.PROFILE)
        self.error = None
        user = register_worker(self.backend, request)
        self.user_id = user.id
        self._set_state(WizardState.UPLOAD)
        return self.user_id

    # ------------------------------------------------------------------
    # Step 2: ID document
    # ------------------------------------------------------------------

    def attach_document(self, filename: str, content_type: str, data: bytes) -> None:
        self._require(WizardState.UPLOAD)
        if not data:
            self._fail_step("Please upload your ID document")
        validate_document_upload(filename, content_type, len(data))
        self.document = DocumentFile(filename=filename or "document", content_type=content_type, data=data)
        self.error = None
        logger.info(f"ID document attached for {self.user_id}: {self.document.filename} ({len(data)} bytes)")

    def clear_document(self) -> None:
        self._require(WizardState.UPLOAD)
        self.document = None

    def advance_from_upload(self) -> None:
        self._require(WizardState.UPLOAD)
        if self.document is None:
            self._fail_step("Please upload your ID document")
        self.error = None
        self._set_state(WizardState.CAMERA_IDLE)

    # ------------------------------------------------------------------
    # Step 3: selfie
    # ------------------------------------------------------------------

    def start_camera(self) -> None:
        self._require(WizardState.CAMERA_IDLE)
        try:
            self.camera = self.camera_factory()
        except CameraUnavailableError as e:
            logger.error(f"Error accessing camera: {e}")
            self._fail_step("Unable to access camera. Please check permissions.")
        self.error = None
        self._set_state(WizardState.CAMERA_ACTIVE)

    def push_frame(self, data: bytes) -> None:
        self._require(WizardState.CAMERA_ACTIVE)
        try:
            self.camera.push_frame(data)
        except CameraError as e:
            self._fail_step(str(e))

    def capture_selfie(self) -> None:
        self._require(WizardState.CAMERA_ACTIVE)
        try:
            self.selfie = self.camera.capture()
        except CameraError as e:
            self._fail_step(str(e))
        self.error = None
        self._set_state(WizardState.SELFIE_CAPTURED)
        logger.info(f"Selfie captured for {self.user_id} ({len(self.selfie)} bytes)")

    def cancel_camera(self) -> None:
        self._require(WizardState.CAMERA_ACTIVE)
        self._set_state(WizardState.CAMERA_IDLE)

    def retake_selfie(self) -> None:
        self._require(WizardState.SELFIE_CAPTURED)
        self.selfie = None
        self._set_state(WizardState.CAMERA_IDLE)

    # ------------------------------------------------------------------
    # Step 4: verification
    # ------------------------------------------------------------------

    async def verify(self) -> WizardSnapshot:
        if self.state == WizardState.CAMERA_IDLE and self.selfie is None:
            self._fail_step("Please take a selfie")
        self._require(WizardState.SELFIE_CAPTURED)
        if self.document is None:
            self._fail_step("Please upload your ID document")
        if self.selfie is None:
            self._fail_step("Please take a selfie")
        if not self.user_id:
            self._fail_step("No account to verify. Please sign up first.")

        self.error = None
        self.failure_reason = None
        self._set_state(WizardState.PROCESSING)
        logger.info(f"=== Starting face verification for {self.user_id} ===")

        loop = asyncio.get_event_loop()
        try:
            timestamp = int(self.clock() * 1000)
            document_url = await loop.run_in_executor(
                None, crud.upload_file, self.backend, self.document.data, DOCUMENTS_BUCKET,
                f"{self.user_id}/id-document-{timestamp}.{self.document.extension}",
                self.document.content_type or "application/octet-stream",
            )
            selfie_url = await loop.run_in_executor(
                None, crud.upload_file, self.backend, self.selfie, SELFIES_BUCKET,
                f"{self.user_id}/selfie-{timestamp}.jpg", "image/jpeg",
            )
            logger.info(f"✓ Verification artifacts uploaded for {self.user_id}")

            await wait_for_match(self.delay_seconds)

            if self.match_decider():
                await loop.run_in_executor(None, crud.verify_worker, self.backend,
                                           self.user_id, document_url, selfie_url)
                self._drop_artifacts()
                self._set_state(WizardState.VERIFIED)
            else:
                logger.warning(f"✗ Face verification failed for {self.user_id}: no match")
                self.failure_reason = FailureReason.NO_MATCH
                self._set_state(WizardState.FAILED)
        except Exception as e:
            logger.error(f"✗ Face verification error for {self.user_id}: {str(e)}", exc_info=True)
            self.failure_reason = FailureReason.PROCESSING_ERROR
            self._set_state(WizardState.FAILED)

        if self.state == WizardState.VERIFIED:
            self._notify_verified()
        return self.snapshot()

    def _notify_verified(self) -> None:
        if self.on_verified is None:
            return
        try:
            self.on_verified()
        except Exception as e:
            logger.error(f"Post-verification callback failed for {self.user_id}: {str(e)}", exc_info=True)

    def restart(self) -> None:
        """From failed, start again at the document step with nothing captured."""
        self._require(WizardState.FAILED)
        self._drop_artifacts()
        self.failure_reason = None
        self.error = None
        self._set_state(WizardState.UPLOAD)

    # ------------------------------------------------------------------
    # Teardown / view
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._release_camera()

    def snapshot(self) -> WizardSnapshot:
        return WizardSnapshot(
            user_id=self.user_id,
            entry=self.entry.value,
            state=self.state.value,
            has_document=self.document is not None,
            document_name=self.document.filename if self.document else None,
            has_selfie=self.selfie is not None,
            camera_active=bool(self.camera and self.camera.active),
            failure_reason=self.failure_reason.value if self.failure_reason else None,
            error=self.error,
        )


class WizardRegistry:
    """
    In-process wizards keyed by user id. Removing a wizard releases its camera.
    Wizards not looked up for max_idle_seconds are dropped on the next access,
    except while a verification is processing.
    """

    def __init__(self, max_idle_seconds: float = WIZARD_IDLE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.max_idle_seconds = max_idle_seconds
        self.clock = clock
        self._wizards: dict = {}
        self._last_seen: dict = {}

    def get(self, user_id: str) -> Optional[VerificationWizard]:
        self.prune()
        wizard = self._wizards.get(user_id)
        if wizard is not None:
            self._last_seen[user_id] = self.clock()
        return wizard

    def add(self, wizard: VerificationWizard) -> VerificationWizard:
        self.prune()
        previous = self._wizards.get(wizard.user_id)
        if previous is not None and previous is not wizard:
            previous.close()
        self._wizards[wizard.user_id] = wizard
        self._last_seen[wizard.user_id] = self.clock()
        return wizard

    def discard(self, user_id: Optional[str]) -> None:
        self._last_seen.pop(user_id, None)
        wizard = self._wizards.pop(user_id, None)
        if wizard is not None:
            wizard.close()

    def prune(self) -> int:
        now = self.clock()
        stale = [
            user_id for user_id, wizard in self._wizards.items()
            if wizard.state != WizardState.PROCESSING
            and now - self._last_seen.get(user_id, now) > self.max_idle_seconds
        ]
        for user_id in stale:
            logger.info(f"Dropping idle verification session for {user_id}")
            self.discard(user_id)
        return len(stale)

    def close_all(self) -> None:
        for wizard in self._wizards.values():
            wizard.close()
        self._wizards.clear()
        self._last_seen.clear()

    def __len__(self) -> int:
        return len(self._wizards)
