"""
Catalogue des formations actives : chargement, cartes, fenêtre de détails.
"""
from typing import Any, Dict, List, Optional
import logging
import math

from formation_portal.core.exceptions import NotFoundError
from formation_portal.models.firestore_models import CATEGORIES, FORMATIONS, Category, Formation, parse_docs
from formation_portal.schemas.auth import Account
from formation_portal.schemas.formations import (
    CardAction,
    CategoryOut,
    DetailSection,
    EnrollRedirect,
    FormationCard,
    FormationDetails,
    InfoItem,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3498db"
DEFAULT_ICON = "fas fa-book"
HOURS_PER_WEEK = 20

CATEGORY_COLORS: Dict[str, str] = {
    "Développement": "#3498db",
    "Data Science": "#2ecc71",
    "Cybersécurité": "#e74c3c",
    "Marketing": "#f39c12",
    "Management": "#9b59b6",
    "Design": "#1abc9c",
}

CATEGORY_ICONS: Dict[str, str] = {
    "Développement": "fas fa-laptop-code",
    "Data Science": "fas fa-chart-bar",
    "Cybersécurité": "fas fa-shield-alt",
    "Marketing": "fas fa-bullhorn",
    "Management": "fas fa-briefcase",
    "Design": "fas fa-palette",
}

LOGIN_PROMPT = "Vous devez être connecté pour vous inscrire. Voulez-vous vous connecter ?"


def get_category_color(category: Optional[str]) -> str:
    return CATEGORY_COLORS.get(category or "", DEFAULT_COLOR)


def get_category_icon(category: Optional[str]) -> str:
    return CATEGORY_ICONS.get(category or "", DEFAULT_ICON)


def get_duration_text(hours: Any) -> str:
    weeks = math.ceil((hours or 0) / HOURS_PER_WEEK)
    return f"{weeks} semaines" if weeks > 1 else "1 semaine"


def format_number(value: Any) -> str:
    """1200.0 -> '1200', 99.5 -> '99.5'"""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return str(value)
    return str(int(number)) if number.is_integer() else str(number)


def truncate(text: Optional[str], length: int) -> str:
    return f"{(text or '')[:length]}..."


def formation_actions(formation_id: str) -> List[CardAction]:
    return [
        CardAction(action="enroll", label="S'inscrire à cette formation", formation_id=formation_id),
        CardAction(action="details", label="Détails", formation_id=formation_id),
    ]


def create_formation_card(formation: Formation) -> FormationCard:
    return FormationCard(
        id=formation.id or "",
        category=formation.category,
        title=formation.title,
        description=truncate(formation.description, 100),
        duration=formation.duration,
        duration_text=get_duration_text(formation.duration),
        places=formation.places,
        price=formation.price,
        color=get_category_color(formation.category),
        icon=get_category_icon(formation.category),
        actions=formation_actions(formation.id or ""),
    )


def create_details_view(formation: Formation) -> FormationDetails:
    sections = [DetailSection(title="Description", icon="fas fa-book-open", body=formation.description)]
    if formation.content:
        sections.append(DetailSection(title="Programme", icon="fas fa-list", body=formation.content))
    if formation.prerequisites:
        sections.append(DetailSection(title="Prérequis", icon="fas fa-graduation-cap", body=formation.prerequisites))

    return FormationDetails(
        id=formation.id or "",
        title=formation.title,
        category=formation.category,
        color=get_category_color(formation.category),
        info=[
            InfoItem(label="Durée", icon="far fa-clock",
                     value=f"{formation.duration} heures ({get_duration_text(formation.duration)})"),
            InfoItem(label="Places disponibles", icon="fas fa-users", value=f"{formation.places} places"),
            InfoItem(label="Prix", icon="fas fa-euro-sign", value=f"{format_number(formation.price)} €"),
            InfoItem(label="Format", icon="fas fa-chalkboard-teacher",
                     value=formation.format or "Présentiel/Distanciel"),
        ],
        sections=sections,
        actions=[
            CardAction(action="enroll", label="S'inscrire maintenant", formation_id=formation.id or ""),
            CardAction(action="close", label="Fermer", formation_id=formation.id or ""),
        ],
    )


class CatalogReader:
    """Lecture du catalogue. Une instance par requête : `formations` est la
    copie en mémoire du dernier chargement."""

    def __init__(self, store):
        self.store = store
        self.formations: List[Formation] = []
        self.categories: List[Category] = []

    def load_formations(self, limit: Optional[int] = None) -> List[Formation]:
        try:
            docs = self.store.list_docs(FORMATIONS, where=[("status", "==", "active")], limit=limit)
        except Exception:
            logger.exception("Error loading formations")
            return []
        self.formations = parse_docs(Formation, docs)
        return self.formations

    def display_formations(self, formations: List[Formation]) -> List[FormationCard]:
        return [create_formation_card(f) for f in formations]

    def load_featured_formations(self, limit: int = 3) -> List[FormationCard]:
        return self.display_formations(self.load_formations(limit))

    def load_all_formations(self, limit: Optional[int] = None) -> List[FormationCard]:
        return self.display_formations(self.load_formations(limit))

    def handle_inscription(self, formation_id: str, account: Optional[Account]) -> EnrollRedirect:
        if account is None:
            return EnrollRedirect(requires_login=True, redirect="login", message=LOGIN_PROMPT)
        return EnrollRedirect(requires_login=False, redirect=f"inscription?formation={formation_id}")

    def get_formation(self, formation_id: str) -> Formation:
        formation = next((f for f in self.formations if f.id == formation_id), None)
        if formation is None:
            doc = self.store.get_doc(FORMATIONS, formation_id)
            if doc is None:
                raise NotFoundError(FORMATIONS, formation_id)
            formation = Formation.from_doc(doc)
        return formation

    def show_formation_details(self, formation_id: str) -> FormationDetails:
        return create_details_view(self.get_formation(formation_id))

    def load_categories(self) -> List[CategoryOut]:
        try:
            docs = self.store.list_docs(CATEGORIES)
        except Exception:
            logger.exception("Error loading categories")
            return []
        self.categories = parse_docs(Category, docs)
        return [CategoryOut(id=c.id or "", name=c.name) for c in self.categories]
