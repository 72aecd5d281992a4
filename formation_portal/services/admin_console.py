"""
Console d'administration : tableau de bord, gestion des formations,
consultation des inscriptions et des utilisateurs.
"""
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, List, Optional
import logging

from formation_portal.core.exceptions import AccessDeniedError, NotFoundError, PortalError, StoreError
from formation_portal.models.firestore_models import (
    ACTIVITY,
    CATEGORIES,
    FORMATIONS,
    INSCRIPTIONS,
    PAIEMENTS,
    USERS,
    Activity,
    Formation,
    Inscription,
    Payment,
    UserProfile,
    parse_docs,
    utcnow,
)
from formation_portal.schemas.admin import (
    ActivityItem,
    AdminFormationRow,
    AdminUserInfo,
    ChartData,
    ChartDataset,
    Dashboard,
    FormationIn,
    RecentInscriptionRow,
    SaveResult,
    UserRow,
)
from formation_portal.schemas.auth import DEFAULT_AVATAR_URL, Account
from formation_portal.schemas.formations import CategoryOut
from formation_portal.services.catalog import format_number

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "https://via.placeholder.com/50"

STATUT_LABELS: Dict[str, str] = {
    "pending": "En attente",
    "confirmed": "Confirmée",
    "cancelled": "Annulée",
    "completed": "Terminée",
}

# Répartition d'exemple, non calculée depuis les données
CHART_LABELS = ["Développement", "Data Science", "Cybersécurité", "Marketing", "Management"]
CHART_VALUES = [30, 20, 15, 20, 15]
CHART_COLORS = ["#3498db", "#2ecc71", "#e74c3c", "#f39c12", "#9b59b6"]


def ensure_admin(account: Optional[Account]) -> Account:
    if account is None or account.role != "admin":
        raise AccessDeniedError()
    return account


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if isinstance(value, datetime) else ""


def _format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M:%S") if isinstance(value, datetime) else ""


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


def load_chart_data() -> ChartData:
    return ChartData(
        labels=list(CHART_LABELS),
        datasets=[ChartDataset(data=list(CHART_VALUES), background_color=list(CHART_COLORS))],
    )


def admin_user_info(account: Account) -> AdminUserInfo:
    return AdminUserInfo(
        uid=account.uid,
        display_name=account.display_name or "Administrateur",
        avatar_url=account.photo_url or DEFAULT_AVATAR_URL,
    )


def formation_row(formation: Formation) -> AdminFormationRow:
    return AdminFormationRow(
        id=formation.id or "",
        image_url=formation.image_url or PLACEHOLDER_IMAGE,
        title=formation.title,
        category=formation.category,
        price=formation.price,
        places=formation.places,
        status=formation.status,
        status_label="Actif" if formation.status == "active" else "Inactif",
        inscription_count=formation.inscription_count or 0,
    )


def inscription_row(inscription: Inscription) -> RecentInscriptionRow:
    statut = inscription.statut or "pending"
    return RecentInscriptionRow(
        id=inscription.id or "",
        name=f"{inscription.nom} {inscription.prenom}",
        formation=inscription.titre,
        date=_format_date(inscription.created_at),
        statut=statut,
        statut_label=STATUT_LABELS.get(statut, statut),
    )


class AdminConsole:
    def __init__(self, store, blob_store=None, feed_limit: int = 10):
        self.store = store
        self.blob_store = blob_store
        self.feed_limit = feed_limit
        self.formations: List[Formation] = []

    # --- Tableau de bord ---
    def monthly_revenue(self, now: Optional[datetime] = None) -> float:
        docs = self.store.list_docs(PAIEMENTS, where=[
            ("status", "==", "completed"),
            ("date", ">=", month_start(now)),
        ])
        return sum(p.amount for p in parse_docs(Payment, docs))

    def load_dashboard_data(self) -> Dashboard:
        try:
            total_formations = self.store.count(FORMATIONS, where=[("status", "==", "active")])
            total_inscriptions = self.store.count(INSCRIPTIONS)
            total_users = self.store.count(USERS)
            revenue = self.monthly_revenue()
        except Exception as e:
            logger.exception("Error loading dashboard data")
            raise StoreError("Erreur lors du chargement des données") from e

        return Dashboard(
            total_formations=total_formations,
            total_inscriptions=total_inscriptions,
            total_users=total_users,
            total_revenue=f"{format_number(revenue)}€",
            revenue_amount=revenue,
            recent_inscriptions=self.load_recent_inscriptions(),
            recent_activity=self.load_recent_activity(),
            chart=load_chart_data(),
        )

    def load_recent_inscriptions(self) -> List[RecentInscriptionRow]:
        try:
            docs = self.store.list_docs(INSCRIPTIONS, order_by="createdAt", descending=True, limit=self.feed_limit)
        except Exception:
            logger.exception("Error loading recent inscriptions")
            return []
        return [inscription_row(i) for i in parse_docs(Inscription, docs)]

    def load_recent_activity(self) -> List[ActivityItem]:
        try:
            docs = self.store.list_docs(ACTIVITY, order_by="timestamp", descending=True, limit=self.feed_limit)
        except Exception:
            logger.exception("Error loading activity")
            return []
        items = []
        for activity in parse_docs(Activity, docs):
            items.append(ActivityItem(
                id=activity.id or "",
                message=activity.message,
                icon=f"fas fa-{activity.icon or 'bell'}",
                timestamp=_format_datetime(activity.timestamp),
            ))
        return items

    # --- Formations ---
    def load_formations(self) -> List[AdminFormationRow]:
        try:
            docs = self.store.list_docs(FORMATIONS)
        except Exception as e:
            logger.exception("Error loading formations")
            raise StoreError("Erreur lors du chargement des formations") from e
        self.formations = parse_docs(Formation, docs)
        return [formation_row(f) for f in self.formations]

    def load_categories(self) -> List[CategoryOut]:
        try:
            docs = self.store.list_docs(CATEGORIES)
        except Exception:
            logger.exception("Error loading categories")
            return []
        return [CategoryOut(id=d["id"], name=d.get("name", "")) for d in docs]

    def edit_formation(self, formation_id: str) -> Formation:
        doc = self.store.get_doc(FORMATIONS, formation_id)
        if doc is None:
            raise NotFoundError(FORMATIONS, formation_id)
        return Formation.from_doc(doc)

    def save_formation(
        self,
        payload: FormationIn,
        image: Optional[BinaryIO] = None,
        image_name: Optional[str] = None,
        content_type: Optional[str] = None,
        formation_id: Optional[str] = None,
    ) -> SaveResult:
        """Crée (formation_id absent) ou met à jour une formation.

        L'image éventuelle est envoyée dans Cloud Storage avant l'écriture du document.
        """
        if formation_id is not None and self.store.get_doc(FORMATIONS, formation_id) is None:
            raise NotFoundError(FORMATIONS, formation_id)

        data: Dict[str, Any] = payload.model_dump()
        data["updatedAt"] = utcnow()

        try:
            if image is not None and image_name:
                data["imageUrl"] = self.blob_store.upload(image, image_name, content_type)
            if formation_id is None:
                data["inscriptionCount"] = 0
                formation_id = self.store.create_doc(FORMATIONS, data)
            else:
                self.store.update_doc(FORMATIONS, formation_id, data)
        except Exception as e:
            logger.exception("Error saving formation")
            raise StoreError("Erreur lors de l'enregistrement") from e

        return SaveResult(id=formation_id, message="Formation enregistrée avec succès")

    def delete_formation(self, formation_id: str) -> SaveResult:
        """Suppression définitive ; les inscriptions existantes ne sont pas vérifiées."""
        try:
            deleted = self.store.delete_doc(FORMATIONS, formation_id)
        except Exception as e:
            logger.exception("Error deleting formation")
            raise StoreError("Erreur lors de la suppression") from e
        if not deleted:
            raise NotFoundError(FORMATIONS, formation_id)
        return SaveResult(id=formation_id, message="Formation supprimée avec succès")

    # --- Inscriptions et utilisateurs ---
    def load_all_inscriptions(self) -> List[RecentInscriptionRow]:
        docs = self.store.list_docs(INSCRIPTIONS, order_by="createdAt", descending=True)
        return [inscription_row(i) for i in parse_docs(Inscription, docs)]

    def view_inscription(self, inscription_id: str) -> Inscription:
        doc = self.store.get_doc(INSCRIPTIONS, inscription_id)
        if doc is None:
            raise NotFoundError(INSCRIPTIONS, inscription_id)
        return Inscription.from_doc(doc)

    def edit_inscription(self, inscription_id: str, statut: str) -> Inscription:
        if statut not in STATUT_LABELS:
            raise PortalError(f"Statut inconnu : {statut}")
        if self.store.get_doc(INSCRIPTIONS, inscription_id) is None:
            raise NotFoundError(INSCRIPTIONS, inscription_id)
        self.store.update_doc(INSCRIPTIONS, inscription_id, {"statut": statut, "updatedAt": utcnow()})
        return self.view_inscription(inscription_id)

    def load_users(self) -> List[UserRow]:
        docs = self.store.list_docs(USERS)
        rows = []
        for profile in parse_docs(UserProfile, docs):
            rows.append(UserRow(
                id=profile.id or "",
                email=profile.email,
                nom=profile.nom,
                prenom=profile.prenom,
                role=profile.role,
                created_at=profile.created_at,
            ))
        return rows
