"""
Router pour les codes de présence : émission (enseignant), lecture, utilisation (élève).
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from appel.database import get_db
from appel.dependencies import get_caller
from appel.schemas.attendance import AttendanceResponse
from appel.schemas.attendance_code import CodeIssue, CodeRedeem, CodeResponse
from appel.schemas.user import Caller
from appel.services import code_service

router = APIRouter(prefix="/api/v1/classes", tags=["Codes de présence"])


@router.post(
    "/{class_id}/codes",
    response_model=CodeResponse,
    status_code=201,
    summary="Générer un code de présence",
)
def issue_code(
    class_id: uuid.UUID,
    data: Optional[CodeIssue] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """
    Génère un nouveau code à 3 chiffres pour la classe (15 minutes par défaut).
    Les codes précédents de la classe sont désactivés.
    """
    duration = data.duration_minutes if data is not None else None
    return code_service.issue_code(db, class_id, caller, duration)


@router.get(
    "/{class_id}/codes/active",
    response_model=CodeResponse,
    summary="Code de présence actif",
)
def get_active_code(class_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """Retourne 404 si aucun code actif et non expiré."""
    return code_service.get_active_code(db, class_id, caller)


@router.post(
    "/{class_id}/codes/redeem",
    response_model=AttendanceResponse,
    status_code=201,
    summary="Enregistrer sa présence avec un code",
)
def redeem_code(
    class_id: uuid.UUID,
    data: CodeRedeem,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """
    Enregistre la présence du jour de l'élève.
    400 si le code est invalide ou expiré, 409 si la présence est déjà enregistrée.
    """
    return code_service.redeem_code(db, class_id, caller, data.code)
