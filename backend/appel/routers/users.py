"""
Router pour les utilisateurs.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from appel.database import get_db
from appel.dependencies import get_caller, get_optional_caller
from appel.schemas.user import Caller, UserCreate, UserResponse
from appel.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["Utilisateurs"])


@router.post("", response_model=UserResponse, status_code=201, summary="Créer un utilisateur")
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    """
    Inscription ouverte aux élèves ; un compte enseignant exige un appelant enseignant (403 sinon).
    409 si l'email existe déjà.
    """
    return user_service.create_user(db, data, caller)


@router.get("/me", response_model=UserResponse, summary="Mon profil")
def get_me(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return user_service.get_user(db, caller.id)
