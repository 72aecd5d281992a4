"""
Schémas de la console d'administration
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AdminUserInfo(BaseModel):
    uid: str
    display_name: str
    avatar_url: str


class RecentInscriptionRow(BaseModel):
    id: str
    name: str
    formation: str
    date: str
    statut: str
    statut_label: str


class ActivityItem(BaseModel):
    id: str
    message: str
    icon: str
    timestamp: str


class ChartDataset(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: List[float]
    background_color: List[str] = Field(..., alias="backgroundColor")


class ChartData(BaseModel):
    type: str = "pie"
    labels: List[str]
    datasets: List[ChartDataset]
    legend_position: str = "bottom"


class Dashboard(BaseModel):
    """Champs attendus par la page d'administration (ids des éléments)"""
    model_config = ConfigDict(populate_by_name=True)

    total_formations: int = Field(..., alias="totalFormations")
    total_inscriptions: int = Field(..., alias="totalInscriptions")
    total_users: int = Field(..., alias="totalUsers")
    total_revenue: str = Field(..., alias="totalRevenue")
    revenue_amount: float = Field(..., alias="revenueAmount")
    recent_inscriptions: List[RecentInscriptionRow] = Field(..., alias="recentInscriptions")
    recent_activity: List[ActivityItem] = Field(..., alias="recentActivity")
    chart: ChartData = Field(..., alias="formationsChart")


class AdminFormationRow(BaseModel):
    id: str
    image_url: str
    title: str
    category: str
    price: float
    places: int
    status: str
    status_label: str
    inscription_count: int


class FormationIn(BaseModel):
    """Champs du formulaire d'ajout / modification d'une formation"""
    title: str
    category: str
    description: str = ""
    duration: int = Field(0, ge=0)
    places: int = Field(0, ge=0)
    price: float = Field(0, ge=0)
    status: str = Field("active", pattern="^(active|inactive)$")
    content: Optional[str] = None
    prerequisites: Optional[str] = None


class InscriptionStatusUpdate(BaseModel):
    statut: str


class UserRow(BaseModel):
    id: str
    email: Optional[str] = None
    nom: str = ""
    prenom: str = ""
    role: str = "user"
    created_at: Optional[datetime] = None


class SaveResult(BaseModel):
    id: str
    message: str
