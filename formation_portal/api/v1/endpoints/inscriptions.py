"""
Routes du formulaire d'inscription en quatre étapes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from formation_portal.api.deps import get_optional_user, get_wizard
from formation_portal.core.exceptions import NotFoundError, PortalError
from formation_portal.models.firestore_models import FORMATIONS
from formation_portal.schemas.auth import Account
from formation_portal.schemas.inscriptions import (
    FieldCheck,
    FieldCheckResult,
    FundingPanel,
    SelectedFormationCard,
    StepRequest,
    StepResponse,
    SubmissionResult,
    SubmitRequest,
    WizardStart,
)
from formation_portal.services.wizard import (
    InscriptionWizard,
    financement_details,
    validate_email,
    validate_phone,
)

router = APIRouter()

FIELD_CHECKS = {
    "email": validate_email,
    "telephone": validate_phone,
}


@router.post("/wizard", response_model=WizardStart)
def start_wizard(
    formation: Optional[str] = Query(None),
    wizard: InscriptionWizard = Depends(get_wizard),
):
    return wizard.start(formation)


@router.get("/wizard/formations/{formation_id}", response_model=SelectedFormationCard)
def selected_formation(formation_id: str, wizard: InscriptionWizard = Depends(get_wizard)):
    card = wizard.select_formation(formation_id)
    if card is None:
        raise NotFoundError(FORMATIONS, formation_id)
    return card


@router.post("/wizard/step", response_model=StepResponse)
def go_to_step(request: StepRequest, wizard: InscriptionWizard = Depends(get_wizard)):
    return wizard.go_to_step(request.state, request.target_step, request.fields)


@router.get("/financements/{funding_type}", response_model=Optional[FundingPanel])
def funding_panel(funding_type: str):
    return financement_details(funding_type)


@router.post("/validate/{field}", response_model=FieldCheckResult)
def validate_field(field: str, check: FieldCheck):
    validator = FIELD_CHECKS.get(field)
    if validator is None:
        raise PortalError(f"Champ non contrôlé : {field}")
    return validator(check.value)


@router.post("/", response_model=SubmissionResult, status_code=201)
def submit_inscription(
    request: SubmitRequest,
    account: Optional[Account] = Depends(get_optional_user),
    wizard: InscriptionWizard = Depends(get_wizard),
):
    """Envoi final ; sans session, un compte est créé avec l'email saisi."""
    return wizard.submit(request.state, account)
