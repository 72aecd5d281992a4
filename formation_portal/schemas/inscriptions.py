"""
Schémas du formulaire d'inscription en quatre étapes
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from formation_portal.schemas.auth import Session


class PersonalInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nom: str = ""
    prenom: str = ""
    email: str = ""
    telephone: str = ""
    adresse: str = ""
    ville: str = ""
    code_postal: str = Field("", alias="codePostal")
    pays: str = ""


class CourseChoice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    formation_id: str = Field("", alias="formationId")
    titre: str = ""
    mode: str = ""
    session: str = ""


class FundingInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    entreprise: str = ""
    entreprise_contact: str = Field("", alias="entrepriseContact")
    entreprise_email: str = Field("", alias="entrepriseEmail")
    cpf_number: str = Field("", alias="cpfNumber")
    pole_emploi_id: str = Field("", alias="poleEmploiId")
    autre_financement: str = Field("", alias="autreFinancement")
    message: str = ""


class WizardState(BaseModel):
    """État transitoire du formulaire ; il accompagne chaque requête."""
    current_step: int = Field(1, ge=1, le=4)
    selected_formation_id: Optional[str] = None
    personal: Optional[PersonalInfo] = None
    formation: Optional[CourseChoice] = None
    financement: Optional[FundingInfo] = None


class FormationOption(BaseModel):
    value: str
    label: str


class SelectedFormationCard(BaseModel):
    id: str
    title: str
    price: float
    duration: int
    places: int
    category: str
    description: str


class Notification(BaseModel):
    message: str
    type: str = "info"  # info | error | success
    duration_seconds: int = 5


class SummaryLine(BaseModel):
    label: str
    value: str


class Summary(BaseModel):
    personal: List[SummaryLine]
    formation: List[SummaryLine]
    financement: List[SummaryLine]


class FundingField(BaseModel):
    id: str
    label: str
    input_type: str = "text"


class FundingPanel(BaseModel):
    type: str
    title: Optional[str] = None
    text: Optional[str] = None
    fields: List[FundingField]


class WizardStart(BaseModel):
    state: WizardState
    options: List[FormationOption]
    selected_card: Optional[SelectedFormationCard] = None


class StepRequest(BaseModel):
    state: WizardState
    target_step: int = Field(..., ge=1, le=4)
    # Valeurs brutes des champs de l'étape courante (nom, prenom, formation, mode, ...)
    fields: Dict[str, Any] = Field(default_factory=dict)


class StepResponse(BaseModel):
    state: WizardState
    summary: Optional[Summary] = None


class FieldCheck(BaseModel):
    value: str = ""


class FieldCheckResult(BaseModel):
    field: str
    valid: bool
    message: Optional[str] = None


class SubmitRequest(BaseModel):
    state: WizardState


class SuccessModal(BaseModel):
    redirect: str = "dashboard"
    delay_seconds: int = 10
    dismissible: bool = True


class SubmissionResult(BaseModel):
    inscription_id: str
    account_created: bool = False
    session: Optional[Session] = None
    modal: SuccessModal = Field(default_factory=SuccessModal)
    notification: Notification = Field(
        default_factory=lambda: Notification(message="Inscription enregistrée avec succès", type="success")
    )
