"""
Router pour les taux de présence et le tableau de bord enseignant.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from appel.database import get_db
from appel.dependencies import get_caller
from appel.exceptions import ForbiddenError
from appel.schemas.stats import ClassRate, DashboardStats, SessionSummary, UserRate
from appel.schemas.user import Caller
from appel.services import stats_service

router = APIRouter(prefix="/api/v1", tags=["Statistiques"])


@router.get("/classes/{class_id}/stats", response_model=ClassRate, summary="Taux de présence d'une classe")
def get_class_rate(
    class_id: uuid.UUID,
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return stats_service.get_class_rate(db, class_id, caller, start, end)


@router.get("/users/me/stats", response_model=UserRate, summary="Mon taux de présence")
def get_my_rate(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return stats_service.compute_user_rate(db, caller.id)


@router.get("/dashboard/stats", response_model=DashboardStats, summary="Tableau de bord enseignant")
def get_dashboard(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return stats_service.dashboard_stats(db, caller)


@router.get(
    "/dashboard/recent-sessions",
    response_model=List[SessionSummary],
    summary="Séances récentes",
)
def get_recent_sessions(
    lookback_days: Optional[int] = Query(default=None, ge=0),
    limit: Optional[int] = Query(default=None, ge=0),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_teacher:
        raise ForbiddenError("Tableau de bord réservé aux enseignants.")
    return stats_service.recent_sessions(db, caller.id, lookback_days, limit)
