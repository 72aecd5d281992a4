"""
Vues du catalogue de formations
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class CardAction(BaseModel):
    action: str  # enroll | details
    label: str
    formation_id: str


class FormationCard(BaseModel):
    id: str
    category: str
    title: str
    description: str
    duration: int
    duration_text: str
    places: int
    price: float
    color: str
    icon: str
    actions: List[CardAction] = Field(default_factory=list)


class DetailSection(BaseModel):
    title: str
    icon: str
    body: str


class InfoItem(BaseModel):
    label: str
    icon: str
    value: str


class FormationDetails(BaseModel):
    """Contenu de la fenêtre « Détails » d'une formation"""
    id: str
    title: str
    category: str
    color: str
    info: List[InfoItem]
    sections: List[DetailSection]
    actions: List[CardAction]
    closable: bool = True


class EnrollRedirect(BaseModel):
    requires_login: bool
    redirect: str
    message: Optional[str] = None


class CategoryOut(BaseModel):
    id: str
    name: str
