"""
Routes publiques du catalogue
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from formation_portal.api.deps import get_catalog, get_optional_user
from formation_portal.core.config import settings
from formation_portal.schemas.auth import Account
from formation_portal.schemas.formations import CategoryOut, EnrollRedirect, FormationCard, FormationDetails
from formation_portal.services.catalog import CatalogReader

router = APIRouter()

categories_router = APIRouter()


@router.get("/", response_model=List[FormationCard])
def list_formations(
    limit: Optional[int] = Query(None, ge=1),
    catalog: CatalogReader = Depends(get_catalog),
):
    return catalog.load_all_formations(limit)


@router.get("/featured", response_model=List[FormationCard])
def list_featured_formations(catalog: CatalogReader = Depends(get_catalog)):
    return catalog.load_featured_formations(settings.FEATURED_FORMATIONS_LIMIT)


@router.get("/{formation_id}", response_model=FormationDetails)
def get_formation_details(formation_id: str, catalog: CatalogReader = Depends(get_catalog)):
    return catalog.show_formation_details(formation_id)


@router.post("/{formation_id}/enroll", response_model=EnrollRedirect)
def enroll(
    formation_id: str,
    account: Optional[Account] = Depends(get_optional_user),
    catalog: CatalogReader = Depends(get_catalog),
):
    """Redirige vers le formulaire d'inscription, ou vers la connexion sans session."""
    return catalog.handle_inscription(formation_id, account)


@categories_router.get("/", response_model=List[CategoryOut])
def list_categories(catalog: CatalogReader = Depends(get_catalog)):
    return catalog.load_categories()
