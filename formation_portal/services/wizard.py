"""
Formulaire d'inscription en quatre étapes :
1. informations personnelles, 2. formation et session, 3. financement, 4. récapitulatif.

L'état du formulaire est transitoire et fourni à chaque appel ; seul l'envoi
final écrit dans Firestore.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
import logging
import re

from formation_portal.core.config import settings
from formation_portal.core.exceptions import (
    FormationFullError,
    InscriptionError,
    PortalError,
    StepValidationError,
)
from formation_portal.core.security import generate_random_password
from formation_portal.models.firestore_models import FORMATIONS, Formation, Inscription, parse_docs, utcnow
from formation_portal.schemas.auth import Account, Session
from formation_portal.schemas.inscriptions import (
    CourseChoice,
    FieldCheckResult,
    FormationOption,
    FundingField,
    FundingInfo,
    FundingPanel,
    PersonalInfo,
    SelectedFormationCard,
    StepResponse,
    SubmissionResult,
    SuccessModal,
    Summary,
    SummaryLine,
    WizardStart,
    WizardState,
)
from formation_portal.services.catalog import format_number, truncate

logger = logging.getLogger(__name__)

PERSONAL_INFO, COURSE_SELECTION, FUNDING, REVIEW = 1, 2, 3, 4

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")

REQUIRED = "Ce champ est obligatoire"
INVALID_EMAIL = "Email invalide"
INVALID_PHONE = "Numéro de téléphone invalide"

FINANCEMENT_LABELS: Dict[str, str] = {
    "personnel": "Financement personnel",
    "entreprise": "Financement entreprise",
    "cpf": "Compte Personnel de Formation (CPF)",
    "pole_emploi": "Pôle Emploi",
    "autre": "Autre",
}

FUNDING_PANELS: Dict[str, FundingPanel] = {
    "entreprise": FundingPanel(
        type="entreprise",
        title="Financement entreprise :",
        text="Votre entreprise prend en charge tout ou partie du coût de la formation.",
        fields=[
            FundingField(id="entrepriseContact", label="Contact RH / Formation"),
            FundingField(id="entrepriseEmail", label="Email du contact", input_type="email"),
        ],
    ),
    "cpf": FundingPanel(
        type="cpf",
        title="Compte Personnel de Formation (CPF) :",
        text="Utilisez vos heures de formation disponibles sur votre compte CPF.",
        fields=[FundingField(id="cpfNumber", label="Numéro CPF")],
    ),
    "pole_emploi": FundingPanel(
        type="pole_emploi",
        title="Financement Pôle Emploi :",
        text="Pour les demandeurs d'emploi, des aides peuvent être disponibles.",
        fields=[FundingField(id="poleEmploiId", label="Identifiant Pôle Emploi")],
    ),
    "autre": FundingPanel(
        type="autre",
        fields=[FundingField(id="autreFinancement", label="Précisez le mode de financement")],
    ),
}

FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.fullmatch(value) is not None


def is_valid_phone(value: str) -> bool:
    return PHONE_RE.fullmatch(re.sub(r"\s", "", value)) is not None


def validate_email(value: str) -> FieldCheckResult:
    """Contrôle à la sortie du champ ; une valeur vide n'est pas signalée ici."""
    if value and not is_valid_email(value):
        return FieldCheckResult(field="email", valid=False, message=INVALID_EMAIL)
    return FieldCheckResult(field="email", valid=True)


def validate_phone(value: str) -> FieldCheckResult:
    if value and not is_valid_phone(value):
        return FieldCheckResult(field="telephone", valid=False, message=INVALID_PHONE)
    return FieldCheckResult(field="telephone", valid=True)


def _text(fields: Dict[str, Any], key: str) -> str:
    value = fields.get(key)
    return str(value).strip() if value is not None else ""


def validate_step(step: int, fields: Dict[str, Any]) -> Dict[str, str]:
    """Erreurs par champ, dans l'ordre du formulaire. Vide si l'étape est valide."""
    errors: Dict[str, str] = {}

    if step == PERSONAL_INFO:
        for field in ("nom", "prenom", "email", "telephone"):
            value = _text(fields, field)
            if not value:
                errors[field] = REQUIRED
            elif field == "email" and not is_valid_email(value):
                errors[field] = INVALID_EMAIL

    elif step == COURSE_SELECTION:
        if not _text(fields, "formation"):
            errors["formation"] = "Veuillez sélectionner une formation"
        if not _text(fields, "mode"):
            errors["mode"] = "Veuillez sélectionner un mode de formation"
        if not _text(fields, "session"):
            errors["session"] = "Veuillez sélectionner une session"

    elif step == FUNDING:
        if not _text(fields, "financement"):
            errors["financement"] = "Veuillez sélectionner un mode de financement"

    return errors


def state_fields(state: WizardState, step: int) -> Dict[str, Any]:
    """Champs enregistrés d'une étape, sous les noms du formulaire."""
    if step == PERSONAL_INFO and state.personal:
        return state.personal.model_dump(by_alias=True)
    if step == COURSE_SELECTION and state.formation:
        return {
            "formation": state.formation.formation_id,
            "mode": state.formation.mode,
            "session": state.formation.session,
        }
    if step == FUNDING and state.financement:
        return {"financement": state.financement.type}
    return {}


def get_financement_label(funding_type: Optional[str]) -> str:
    return FINANCEMENT_LABELS.get(funding_type or "", funding_type or "")


def financement_details(funding_type: Optional[str]) -> Optional[FundingPanel]:
    """Champs complémentaires du mode de financement ; rien pour « personnel »."""
    return FUNDING_PANELS.get(funding_type or "")


def format_session(session: Optional[str]) -> str:
    """'2025-03-01' -> 'mars 2025'"""
    if not session:
        return ""
    raw = session.strip()
    try:
        parsed = datetime.fromisoformat(raw).date()
    except ValueError:
        try:
            parsed = date.fromisoformat(f"{raw}-01")
        except ValueError:
            return raw
    return f"{FRENCH_MONTHS[parsed.month - 1]} {parsed.year}"


def selected_formation_card(formation: Formation) -> SelectedFormationCard:
    return SelectedFormationCard(
        id=formation.id or "",
        title=formation.title,
        price=formation.price,
        duration=formation.duration,
        places=formation.places,
        category=formation.category,
        description=truncate(formation.description, 150),
    )


def build_summary(state: WizardState) -> Summary:
    personal = state.personal or PersonalInfo()
    personal_lines = [
        SummaryLine(label="Nom", value=f"{personal.nom} {personal.prenom}"),
        SummaryLine(label="Email", value=personal.email),
        SummaryLine(label="Téléphone", value=personal.telephone),
    ]
    if personal.adresse:
        personal_lines.append(SummaryLine(
            label="Adresse",
            value=f"{personal.adresse}, {personal.code_postal} {personal.ville}, {personal.pays}",
        ))

    course = state.formation or CourseChoice()
    formation_lines = [
        SummaryLine(label="Formation", value=course.titre),
        SummaryLine(label="Mode", value=course.mode),
        SummaryLine(label="Session", value=format_session(course.session)),
    ]

    funding = state.financement or FundingInfo()
    funding_lines = [SummaryLine(label="Mode de financement", value=get_financement_label(funding.type))]
    if funding.entreprise:
        funding_lines.append(SummaryLine(label="Entreprise", value=funding.entreprise))
    if funding.message:
        funding_lines.append(SummaryLine(label="Informations complémentaires", value=funding.message))

    return Summary(personal=personal_lines, formation=formation_lines, financement=funding_lines)


def build_inscription(state: WizardState, user_id: str) -> Dict[str, Any]:
    personal = state.personal or PersonalInfo()
    course = state.formation or CourseChoice()
    funding = state.financement or FundingInfo()
    now = utcnow()
    inscription = Inscription(
        **personal.model_dump(by_alias=True),
        formationId=course.formation_id,
        titre=course.titre,
        mode=course.mode,
        session=course.session,
        financement=funding.type,
        entreprise=funding.entreprise,
        entrepriseContact=funding.entreprise_contact,
        entrepriseEmail=funding.entreprise_email,
        cpfNumber=funding.cpf_number,
        poleEmploiId=funding.pole_emploi_id,
        autreFinancement=funding.autre_financement,
        message=funding.message,
        userId=user_id,
        statut="pending",
        createdAt=now,
        updatedAt=now,
    )
    return inscription.to_dict()


class InscriptionWizard:
    """Transitions et envoi du formulaire d'inscription."""

    def __init__(self, store, gateway):
        self.store = store
        self.gateway = gateway

    def load_formation_options(self) -> List[Formation]:
        try:
            docs = self.store.list_docs(FORMATIONS, where=[("status", "==", "active")])
        except Exception:
            logger.exception("Error loading formations")
            return []
        return parse_docs(Formation, docs)

    def start(self, formation_id: Optional[str] = None) -> WizardStart:
        formations = self.load_formation_options()
        options = [
            FormationOption(value=f.id or "", label=f"{f.title} - {format_number(f.price)}€")
            for f in formations
        ]
        state = WizardState()
        card = None
        selected = next((f for f in formations if formation_id and f.id == formation_id), None)
        if selected is not None:
            state.selected_formation_id = selected.id
            card = selected_formation_card(selected)
        return WizardStart(state=state, options=options, selected_card=card)

    def select_formation(self, formation_id: str) -> Optional[SelectedFormationCard]:
        doc = self.store.get_doc(FORMATIONS, formation_id)
        if doc is None:
            return None
        return selected_formation_card(Formation.from_doc(doc))

    def save_step_data(self, state: WizardState, step: int, fields: Dict[str, Any]) -> None:
        if step == PERSONAL_INFO:
            state.personal = PersonalInfo(**{
                key: _text(fields, key)
                for key in ("nom", "prenom", "email", "telephone", "adresse", "ville", "codePostal", "pays")
            })
        elif step == COURSE_SELECTION:
            formation_id = _text(fields, "formation")
            doc = self.store.get_doc(FORMATIONS, formation_id)
            if doc is None:
                raise StepValidationError(step, {"formation": "Veuillez sélectionner une formation"})
            state.selected_formation_id = formation_id
            state.formation = CourseChoice(
                formationId=formation_id,
                titre=doc.get("title", ""),
                mode=_text(fields, "mode"),
                session=_text(fields, "session"),
            )
        elif step == FUNDING:
            state.financement = FundingInfo(**{
                "type": _text(fields, "financement"),
                **{
                    key: _text(fields, key)
                    for key in ("entreprise", "entrepriseContact", "entrepriseEmail", "cpfNumber",
                                "poleEmploiId", "autreFinancement", "message")
                },
            })

    def go_to_step(self, state: WizardState, target: int, fields: Dict[str, Any]) -> StepResponse:
        """Quitte l'étape courante (après validation) pour l'étape voisine `target`."""
        current = state.current_step
        if abs(target - current) != 1:
            raise PortalError(f"Passage de l'étape {current} à l'étape {target} impossible")

        errors = validate_step(current, fields)
        if errors:
            raise StepValidationError(current, errors)

        new_state = state.model_copy(deep=True)
        self.save_step_data(new_state, current, fields)
        new_state.current_step = target

        summary = build_summary(new_state) if target == REVIEW else None
        return StepResponse(state=new_state, summary=summary)

    def create_user_account(self, personal: PersonalInfo) -> Account:
        """Compte créé pour un visiteur non connecté ; il choisira son mot de passe
        via l'email de réinitialisation envoyé juste après."""
        account = self.gateway.register(
            personal.email,
            generate_random_password(),
            personal.model_dump(by_alias=True),
        )
        self.gateway.reset_password(personal.email)
        return account

    def submit(self, state: WizardState, account: Optional[Account] = None) -> SubmissionResult:
        for step in (PERSONAL_INFO, COURSE_SELECTION, FUNDING):
            errors = validate_step(step, state_fields(state, step))
            if errors:
                raise StepValidationError(step, errors)

        session: Optional[Session] = None
        try:
            if account is None:
                account = self.create_user_account(state.personal)
                session = self.gateway.open_session(account)
            data = build_inscription(state, account.uid)
            inscription_id = self.store.enroll(state.formation.formation_id, data)
        except FormationFullError:
            raise
        except Exception as e:
            logger.exception("Error submitting inscription")
            raise InscriptionError() from e

        return SubmissionResult(
            inscription_id=inscription_id,
            account_created=session is not None,
            session=session,
            modal=SuccessModal(delay_seconds=settings.SUCCESS_REDIRECT_DELAY),
        )
