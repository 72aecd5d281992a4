"""
Pydantic models and lightweight Firestore helpers.
These are thin wrappers to map Firestore documents <-> Pydantic models
and provide the CRUD helpers used by the services.

Document field names are those of the Firestore project (camelCase);
the Python attributes are snake_case aliases of them.
"""
from typing import Any, Dict, List, Optional, Type, TypeVar
from datetime import datetime, timezone
import logging
import math

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from firebase_admin import firestore

from formation_portal.core.exceptions import FormationFullError, NotFoundError

T = TypeVar("T", bound="FirestoreModel")

USERS = "users"
FORMATIONS = "formations"
INSCRIPTIONS = "inscriptions"
CATEGORIES = "categories"
ACTIVITY = "activity"
PAIEMENTS = "paiements"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def number_or_zero(value: Any) -> Any:
    """Numeric field reader for legacy documents: null, "" and NaN become 0."""
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


class FirestoreModel(BaseModel):
    id: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    @classmethod
    def from_doc(cls: Type[T], doc: Any) -> Optional[T]:
        if doc is None:
            return None
        if hasattr(doc, "to_dict"):
            data = doc.to_dict() or {}
            data["id"] = getattr(doc, "id", None)
        elif isinstance(doc, dict):
            data = dict(doc)
        else:
            return None
        # null stored in Firestore -> model default
        data = {k: v for k, v in data.items() if v is not None}
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        d = self.model_dump(by_alias=True, exclude_none=True)
        # remove `id` when writing into Firestore (use document id instead)
        d.pop("id", None)
        return d


class UserProfile(FirestoreModel):
    email: Optional[str] = None
    nom: str = ""
    prenom: str = ""
    telephone: Optional[str] = None
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = Field(None, alias="codePostal")
    pays: Optional[str] = None
    role: str = "user"
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class Formation(FirestoreModel):
    title: str = ""
    category: str = ""
    description: str = ""
    duration: int = 0
    places: int = 0
    price: float = 0
    status: str = "active"
    image_url: Optional[str] = Field(None, alias="imageUrl")
    content: Optional[str] = None
    prerequisites: Optional[str] = None
    format: Optional[str] = None
    inscription_count: int = Field(0, alias="inscriptionCount")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("duration", "places", "inscription_count", mode="before")
    @classmethod
    def _whole_number(cls, value: Any) -> int:
        return int(number_or_zero(value))

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, value: Any) -> float:
        return number_or_zero(value)


class Inscription(FirestoreModel):
    nom: str = ""
    prenom: str = ""
    email: str = ""
    telephone: str = ""
    adresse: Optional[str] = None
    ville: Optional[str] = None
    code_postal: Optional[str] = Field(None, alias="codePostal")
    pays: Optional[str] = None
    formation_id: Optional[str] = Field(None, alias="formationId")
    titre: str = ""
    mode: str = ""
    session: str = ""
    financement: str = ""
    entreprise: Optional[str] = None
    entreprise_contact: Optional[str] = Field(None, alias="entrepriseContact")
    entreprise_email: Optional[str] = Field(None, alias="entrepriseEmail")
    cpf_number: Optional[str] = Field(None, alias="cpfNumber")
    pole_emploi_id: Optional[str] = Field(None, alias="poleEmploiId")
    autre_financement: Optional[str] = Field(None, alias="autreFinancement")
    message: Optional[str] = None
    user_id: str = Field("anonymous", alias="userId")
    statut: str = "pending"
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @model_validator(mode="before")
    @classmethod
    def _legacy_funding_key(cls, data: Any) -> Any:
        # older documents keep the funding type under `type`
        if isinstance(data, dict) and not data.get("financement") and data.get("type"):
            data = {**data, "financement": data["type"]}
        return data


class Category(FirestoreModel):
    name: str = ""


class Activity(FirestoreModel):
    message: str = ""
    icon: Optional[str] = None
    timestamp: Optional[datetime] = None


class Payment(FirestoreModel):
    amount: float = 0
    status: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return number_or_zero(value)


def parse_docs(model: Type[T], docs: List[Any]) -> List[T]:
    """Validate each document, skipping (and logging) those that do not fit the model."""
    items = []
    for doc in docs:
        try:
            items.append(model.from_doc(doc))
        except ValidationError as e:
            doc_id = doc.get("id") if isinstance(doc, dict) else getattr(doc, "id", None)
            logging.warning("Skipping invalid %s document %s: %s", model.__name__, doc_id, e)
    return items


# --- Firestore helpers ---
class FirestoreStore:
    """Collection-scoped CRUD over Cloud Firestore.

    One instance per application, created lazily after `initialize_firebase()`.
    """

    def __init__(self, client: Any = None):
        self._client = client

    @property
    def db(self):
        if self._client is None:
            self._client = firestore.client()
        return self._client

    @staticmethod
    def _with_id(doc) -> Dict[str, Any]:
        d = doc.to_dict() or {}
        d["id"] = doc.id
        return d

    def create_doc(self, collection: str, data: Dict[str, Any]) -> str:
        ref = self.db.collection(collection).document()
        ref.set(data)
        return ref.id

    def set_doc(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        self.db.collection(collection).document(str(doc_id)).set(data, merge=merge)

    def get_doc(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self.db.collection(collection).document(str(doc_id)).get()
        if not doc.exists:
            return None
        return self._with_id(doc)

    def update_doc(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.db.collection(collection).document(str(doc_id)).update(data)

    def delete_doc(self, collection: str, doc_id: str) -> bool:
        """Hard delete. Returns False when the document did not exist."""
        ref = self.db.collection(collection).document(str(doc_id))
        if not ref.get().exists:
            return False
        ref.delete()
        return True

    def _query(self, collection: str, where: Optional[List[tuple]] = None):
        q = self.db.collection(collection)
        for field, op, value in where or []:
            q = q.where(filter=firestore.FieldFilter(field, op, value))
        return q

    def list_docs(
        self,
        collection: str,
        where: Optional[List[tuple]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        q = self._query(collection, where)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            q = q.order_by(order_by, direction=direction)
        if limit:
            q = q.limit(limit)
        return [self._with_id(d) for d in q.stream()]

    def count(self, collection: str, where: Optional[List[tuple]] = None) -> int:
        results = self._query(collection, where).count(alias="total").get()
        return int(results[0][0].value)

    def enroll(self, formation_id: str, inscription: Dict[str, Any]) -> str:
        """Write an inscription and take one place on the formation atomically.

        Fails with FormationFullError when no place is left, NotFoundError when
        the formation does not exist; nothing is written in either case.
        """
        formation_ref = self.db.collection(FORMATIONS).document(str(formation_id))
        inscription_ref = self.db.collection(INSCRIPTIONS).document()

        @firestore.transactional
        def _run(transaction):
            snapshot = formation_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(FORMATIONS, formation_id)
            places = int((snapshot.to_dict() or {}).get("places") or 0)
            if places <= 0:
                raise FormationFullError(formation_id)
            transaction.set(inscription_ref, inscription)
            transaction.update(formation_ref, {
                "places": places - 1,
                "inscriptionCount": firestore.Increment(1),
            })

        _run(self.db.transaction())
        logging.info("Inscription %s created on formation %s", inscription_ref.id, formation_id)
        return inscription_ref.id


__all__ = [
    "FirestoreModel",
    "UserProfile",
    "Formation",
    "Inscription",
    "Category",
    "Activity",
    "Payment",
    "FirestoreStore",
    "parse_docs",
    "utcnow",
]
