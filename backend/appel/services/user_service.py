"""
Service métier pour les utilisateurs (provisionnement et profil courant).

Un élève peut s'inscrire sans identité ; un compte enseignant ne peut être
créé que par un enseignant déjà authentifié.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appel.database import storage_errors
from appel.exceptions import DuplicateRecordError, ForbiddenError, NotFoundError
from appel.models.user import ROLE_TEACHER, User
from appel.schemas.user import Caller, UserCreate, UserResponse

logger = logging.getLogger(__name__)


@storage_errors
def create_user(db: Session, data: UserCreate, caller: Optional[Caller] = None) -> UserResponse:
    """Crée un utilisateur. Lève DuplicateRecordError si l'email est déjà utilisé."""
    if data.role == ROLE_TEACHER and (caller is None or not caller.is_teacher):
        raise ForbiddenError("Seul un enseignant peut créer un compte enseignant.")

    user = User(email=str(data.email).lower(), name=data.name, role=data.role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError(f"Un utilisateur avec l'email '{data.email}' existe déjà.")
    db.refresh(user)
    logger.info("Utilisateur créé : %s (%s)", user.id, user.role)
    return UserResponse.model_validate(user)


@storage_errors
def get_user(db: Session, user_id: uuid.UUID) -> UserResponse:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("Utilisateur introuvable.")
    return UserResponse.model_validate(user)
