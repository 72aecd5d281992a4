"""
Routes d'administration (tableau de bord, formations, inscriptions, utilisateurs).
Toutes les routes exigent un compte de rôle « admin ».
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from formation_portal.api.deps import get_admin_console, require_admin
from formation_portal.core.config import settings
from formation_portal.core.exceptions import PortalError
from formation_portal.models.firestore_models import Formation, Inscription
from formation_portal.schemas.admin import (
    AdminFormationRow,
    AdminUserInfo,
    Dashboard,
    FormationIn,
    InscriptionStatusUpdate,
    RecentInscriptionRow,
    SaveResult,
    UserRow,
)
from formation_portal.schemas.auth import Account
from formation_portal.schemas.formations import CategoryOut
from formation_portal.services.admin_console import AdminConsole, admin_user_info

router = APIRouter(dependencies=[Depends(require_admin)])


def formation_form(
    title: str = Form(...),
    category: str = Form(...),
    description: str = Form(""),
    duration: int = Form(0, ge=0),
    places: int = Form(0, ge=0),
    price: float = Form(0, ge=0),
    status: str = Form("active", pattern="^(active|inactive)$"),
    content: Optional[str] = Form(None),
    prerequisites: Optional[str] = Form(None),
) -> FormationIn:
    return FormationIn(
        title=title,
        category=category,
        description=description,
        duration=duration,
        places=places,
        price=price,
        status=status,
        content=content or None,
        prerequisites=prerequisites or None,
    )


def _save(console: AdminConsole, payload: FormationIn, image: Optional[UploadFile],
          formation_id: Optional[str] = None) -> SaveResult:
    if image is None or not image.filename:
        return console.save_formation(payload, formation_id=formation_id)
    if image.size is not None and image.size > settings.MAX_UPLOAD_SIZE:
        raise PortalError("Image trop volumineuse")
    return console.save_formation(
        payload,
        image=image.file,
        image_name=image.filename,
        content_type=image.content_type,
        formation_id=formation_id,
    )


@router.get("/me", response_model=AdminUserInfo)
def read_admin_info(account: Account = Depends(require_admin)):
    return admin_user_info(account)


@router.get("/dashboard", response_model=Dashboard)
def read_dashboard(console: AdminConsole = Depends(get_admin_console)):
    return console.load_dashboard_data()


@router.get("/formations", response_model=List[AdminFormationRow])
def list_formations(console: AdminConsole = Depends(get_admin_console)):
    return console.load_formations()


@router.post("/formations", response_model=SaveResult, status_code=201)
def create_formation(
    payload: FormationIn = Depends(formation_form),
    image: Optional[UploadFile] = File(None),
    console: AdminConsole = Depends(get_admin_console),
):
    return _save(console, payload, image)


@router.get("/formations/{formation_id}", response_model=Formation)
def edit_formation(formation_id: str, console: AdminConsole = Depends(get_admin_console)):
    """Formation à pré-remplir dans le formulaire de modification."""
    return console.edit_formation(formation_id)


@router.put("/formations/{formation_id}", response_model=SaveResult)
def update_formation(
    formation_id: str,
    payload: FormationIn = Depends(formation_form),
    image: Optional[UploadFile] = File(None),
    console: AdminConsole = Depends(get_admin_console),
):
    return _save(console, payload, image, formation_id)


@router.delete("/formations/{formation_id}", response_model=SaveResult)
def delete_formation(formation_id: str, console: AdminConsole = Depends(get_admin_console)):
    return console.delete_formation(formation_id)


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(console: AdminConsole = Depends(get_admin_console)):
    return console.load_categories()


@router.get("/inscriptions", response_model=List[RecentInscriptionRow])
def list_inscriptions(console: AdminConsole = Depends(get_admin_console)):
    return console.load_all_inscriptions()


@router.get("/inscriptions/{inscription_id}", response_model=Inscription)
def view_inscription(inscription_id: str, console: AdminConsole = Depends(get_admin_console)):
    return console.view_inscription(inscription_id)


@router.patch("/inscriptions/{inscription_id}", response_model=Inscription)
def edit_inscription(
    inscription_id: str,
    update: InscriptionStatusUpdate,
    console: AdminConsole = Depends(get_admin_console),
):
    return console.edit_inscription(inscription_id, update.statut)


@router.get("/users", response_model=List[UserRow])
def list_users(console: AdminConsole = Depends(get_admin_console)):
    return console.load_users()
