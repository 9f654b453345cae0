"""
Dépendances FastAPI partagées par les routers.

L'authentification est faite en amont (passerelle) : l'API reçoit une identité
déjà vérifiée dans les en-têtes X-User-Id et X-User-Role.
"""

import uuid
from typing import Optional

from fastapi import Header, HTTPException

from appel.models.user import VALID_ROLES
from appel.schemas.user import Caller


def _parse_caller(x_user_id: str, x_user_role: str) -> Caller:
    role = x_user_role.strip().upper()
    if role not in VALID_ROLES:
        raise HTTPException(status_code=401, detail="Rôle de l'appelant invalide.")

    try:
        caller_id = uuid.UUID(x_user_id.strip())
    except ValueError:
        raise HTTPException(status_code=401, detail="Identifiant de l'appelant invalide.")

    return Caller(id=caller_id, role=role)


def get_caller(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Caller:
    """Construit l'identité de l'appelant ; 401 si les en-têtes sont absents ou invalides."""
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Identité de l'appelant manquante.")
    return _parse_caller(x_user_id, x_user_role)


def get_optional_caller(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Caller]:
    """Identité facultative (routes publiques) ; des en-têtes présents mais invalides donnent 401."""
    if not x_user_id and not x_user_role:
        return None
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Identité de l'appelant incomplète.")
    return _parse_caller(x_user_id, x_user_role)
