import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from ..db.models import WizardSnapshot
from ..services.verification_wizard import VerificationWizard, WizardRegistry, WizardState, WizardStepError
from .deps import get_wizards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


def _wizard(user_id: str, wizards: WizardRegistry) -> VerificationWizard:
    wizard = wizards.get(user_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail="Verification session not found. Please sign up or open the Verify tab.")
    return wizard


def _step(wizard: VerificationWizard, action, *args) -> WizardSnapshot:
    try:
        action(*args)
    except WizardStepError as e:
        logger.warning(f"Wizard {wizard.user_id} rejected step in '{wizard.state.value}': {e.message}")
        raise HTTPException(status_code=409, detail=e.message)
    return wizard.snapshot()


@router.get("/{user_id}", response_model=WizardSnapshot)
def get_wizard_state(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    return _wizard(user_id, wizards).snapshot()


@router.post("/{user_id}/document", response_model=WizardSnapshot)
async def upload_id_document(
        user_id: str,
        document: UploadFile = File(...),
        wizards: WizardRegistry = Depends(get_wizards),
):
    """Step 2: attach the ID document (image or PDF expected, any non-empty file accepted). Replaceable until the step is left."""
    wizard = _wizard(user_id, wizards)
    contents = await document.read()
    return _step(wizard, wizard.attach_document, document.filename, document.content_type, contents)


@router.delete("/{user_id}/document", response_model=WizardSnapshot)
def remove_id_document(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.clear_document)


@router.post("/{user_id}/document/continue", response_model=WizardSnapshot)
def continue_to_selfie(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.advance_from_upload)


@router.post("/{user_id}/camera/start", response_model=WizardSnapshot)
def start_camera(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.start_camera)


@router.post("/{user_id}/camera/frame", response_model=WizardSnapshot)
async def push_camera_frame(
        user_id: str,
        frame: UploadFile = File(...),
        wizards: WizardRegistry = Depends(get_wizards),
):
    """Latest frame of the live selfie feed."""
    wizard = _wizard(user_id, wizards)
    contents = await frame.read()
    return _step(wizard, wizard.push_frame, contents)


@router.post("/{user_id}/camera/capture", response_model=WizardSnapshot)
def capture_selfie(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.capture_selfie)


@router.post("/{user_id}/camera/cancel", response_model=WizardSnapshot)
def cancel_camera(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.cancel_camera)


@router.post("/{user_id}/selfie/retake", response_model=WizardSnapshot)
def retake_selfie(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.retake_selfie)


@router.post("/{user_id}/verify", response_model=WizardSnapshot)
async def verify_identity(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    """
    Step 4: upload both artifacts, run the face match, record the result.
    A failed match is a normal response with state "failed"; use /restart to try again.
    """
    wizard = _wizard(user_id, wizards)
    try:
        snapshot = await wizard.verify()
    except WizardStepError as e:
        raise HTTPException(status_code=409, detail=e.message)

    if wizard.state == WizardState.VERIFIED:
        # Verify tab reads the verified flag from the profile after this
        wizards.discard(user_id)
        logger.info(f"Verification session for {user_id} closed after success")
    return snapshot


@router.post("/{user_id}/restart", response_model=WizardSnapshot)
def restart_verification(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    wizard = _wizard(user_id, wizards)
    return _step(wizard, wizard.restart)


@router.delete("/{user_id}")
def close_verification(user_id: str, wizards: WizardRegistry = Depends(get_wizards)):
    """Leave the wizard; releases the camera if it is still open."""
    _wizard(user_id, wizards)
    wizards.discard(user_id)
    return {"status": "success", "user_id": user_id}
