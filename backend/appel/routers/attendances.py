"""
Router pour la saisie manuelle et l'historique des présences.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from appel.database import get_db
from appel.dependencies import get_caller
from appel.schemas.attendance import AttendanceResponse, ManualMark, PresenceUpdate
from appel.schemas.user import Caller
from appel.services import attendance_service

router = APIRouter(prefix="/api/v1", tags=["Présences"])


@router.post(
    "/classes/{class_id}/attendances",
    response_model=AttendanceResponse,
    summary="Marquer une présence manuellement",
)
def mark_manual(
    class_id: uuid.UUID,
    data: ManualMark,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """
    Statut "asistio" : crée la présence du jour (409 si elle existe déjà).
    Statut "justificada" : justifie la présence existante (404 si absente).
    """
    return attendance_service.mark_manual(db, class_id, caller, data)


@router.get(
    "/classes/{class_id}/attendances",
    response_model=List[AttendanceResponse],
    summary="Historique des présences d'une classe",
)
def get_history(
    class_id: uuid.UUID,
    student_id: Optional[uuid.UUID] = Query(default=None),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return attendance_service.get_history(db, class_id, caller, student_id, start, end)


@router.patch(
    "/attendances/{attendance_id}",
    response_model=AttendanceResponse,
    summary="Modifier l'état de présence",
)
def set_presence(
    attendance_id: uuid.UUID,
    data: PresenceUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return attendance_service.set_presence(db, attendance_id, caller, data.present)
