"""
Calcul des taux de présence.

Une séance = une paire (classe, jour) ayant au moins une présence enregistrée.
Chaque élève inscrit est attendu à chaque séance détectée.

Les requêtes ramènent un seul lot (lignes ou agrégat GROUP BY) replié en mémoire
par les fonctions pures ci-dessous ; aucune requête par groupe.
"""

import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from appel.config import settings
from appel.database import storage_errors
from appel.exceptions import ForbiddenError, InvalidArgumentError
from appel.models.attendance import Attendance
from appel.models.school_class import ClassStudent, SchoolClass
from appel.schemas.stats import ClassRate, DashboardStats, SessionSummary, UserRate
from appel.schemas.user import Caller
from appel.services import class_service
from appel.timeutils import calendar_day_of, utcnow

logger = logging.getLogger(__name__)


# --- Fonctions pures ---

def attendance_rate(numerator: int, denominator: int) -> int:
    """
    Pourcentage entier arrondi au demi supérieur, plafonné à 100.
    Retourne 0 si le dénominateur est nul.
    """
    if denominator <= 0:
        return 0
    return min(100, (200 * numerator + denominator) // (2 * denominator))


def fold_class_sessions(rows: Iterable[tuple[date, bool]]) -> tuple[int, int]:
    """(jour, présent) → (nombre de séances distinctes, nombre de présences)."""
    days = set()
    present = 0
    for day, is_present in rows:
        days.add(day)
        if is_present:
            present += 1
    return len(days), present


def fold_global_rate(
    session_counts: Iterable[tuple[uuid.UUID, date, int]],
    enrolled: Mapping[uuid.UUID, int],
) -> int:
    """Somme des présents sur toutes les séances / somme des inscrits de ces séances."""
    attended = 0
    expected = 0
    for class_id, _day, count in session_counts:
        if class_id not in enrolled:
            continue
        attended += count
        expected += enrolled[class_id]
    return attendance_rate(attended, expected)


def build_session_summaries(
    session_counts: Iterable[tuple[uuid.UUID, date, int]],
    class_names: Mapping[uuid.UUID, str],
    enrolled: Mapping[uuid.UUID, int],
    limit: Optional[int] = None,
) -> list[SessionSummary]:
    """Séances triées par jour décroissant puis nom de classe, avec leur taux, tronquées à `limit`."""
    summaries = [
        SessionSummary(
            class_id=class_id,
            class_name=class_names[class_id],
            day=day,
            attended_count=count,
            total_students=enrolled.get(class_id, 0),
            rate=attendance_rate(count, enrolled.get(class_id, 0)),
        )
        for class_id, day, count in session_counts
        if class_id in class_names
    ]
    summaries.sort(key=lambda s: (-s.day.toordinal(), s.class_name))
    return summaries[:limit] if limit is not None else summaries


# --- Requêtes ---

def _owned_classes(db: Session, teacher_id: uuid.UUID) -> list[SchoolClass]:
    return list(db.execute(
        select(SchoolClass).where(SchoolClass.teacher_id == teacher_id)
    ).scalars().all())


def _enrolled_counts(db: Session, class_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    rows = db.execute(
        select(ClassStudent.class_id, func.count())
        .where(ClassStudent.class_id.in_(class_ids))
        .group_by(ClassStudent.class_id)
    ).all()
    return {class_id: count for class_id, count in rows}


def _present_session_counts(db: Session, class_ids: list[uuid.UUID], since: Optional[date] = None):
    """Nombre de présents par (classe, jour)."""
    query = (
        select(Attendance.class_id, Attendance.day, func.count(Attendance.id))
        .where(Attendance.class_id.in_(class_ids), Attendance.present.is_(True))
    )
    if since is not None:
        query = query.where(Attendance.day >= since)
    return db.execute(
        query.group_by(Attendance.class_id, Attendance.day)
    ).all()


@storage_errors
def compute_class_rate(
    db: Session,
    class_id: uuid.UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> ClassRate:
    """
    Taux de présence d'une classe, éventuellement restreint à [start, end] (jours inclus).
    attendu = séances × inscrits ; taux = min(100, arrondi(100 × présents / attendu)).
    """
    if start is not None and end is not None and start > end:
        raise InvalidArgumentError("La date de début doit précéder la date de fin.")

    query = select(Attendance.day, Attendance.present).where(Attendance.class_id == class_id)
    if start is not None:
        query = query.where(Attendance.day >= start)
    if end is not None:
        query = query.where(Attendance.day <= end)

    sessions, present = fold_class_sessions(db.execute(query).all())
    enrolled = class_service.count_students(db, class_id)
    expected = sessions * enrolled

    return ClassRate(
        class_id=class_id,
        sessions=sessions,
        enrolled_students=enrolled,
        total_expected=expected,
        total_present=present,
        rate=attendance_rate(present, expected),
    )


@storage_errors
def get_class_rate(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> ClassRate:
    """Taux de la classe, réservé à l'enseignant propriétaire et aux élèves inscrits."""
    class_service.require_member(db, class_id, caller)
    return compute_class_rate(db, class_id, start, end)


@storage_errors
def compute_user_rate(db: Session, student_id: uuid.UUID) -> UserRate:
    """
    Taux de présence d'un élève sur l'ensemble des classes qu'il suit :
    séances (classe, jour) où il est présent / séances de ses classes.
    """
    class_ids = list(db.execute(
        select(ClassStudent.class_id).where(ClassStudent.student_id == student_id)
    ).scalars().all())

    sessions: set = set()
    if class_ids:
        sessions = set(db.execute(
            select(Attendance.class_id, Attendance.day)
            .where(Attendance.class_id.in_(class_ids))
            .distinct()
        ).all())

    attended = set(db.execute(
        select(Attendance.class_id, Attendance.day)
        .where(Attendance.student_id == student_id, Attendance.present.is_(True))
        .distinct()
    ).all())

    return UserRate(
        student_id=student_id,
        total_classes=len(class_ids),
        total_sessions=len(sessions),
        attended_sessions=len(attended),
        rate=attendance_rate(len(attended), len(sessions)),
    )


@storage_errors
def recent_sessions(
    db: Session,
    teacher_id: uuid.UUID,
    lookback_days: Optional[int] = None,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[SessionSummary]:
    """Dernières séances des classes de l'enseignant (7 derniers jours, 5 au plus par défaut)."""
    lookback_days = settings.RECENT_SESSIONS_LOOKBACK_DAYS if lookback_days is None else lookback_days
    limit = settings.RECENT_SESSIONS_LIMIT if limit is None else limit
    if lookback_days < 0 or limit < 0:
        raise InvalidArgumentError("La période et la limite doivent être positives.")

    classes = _owned_classes(db, teacher_id)
    if not classes:
        return []
    class_ids = [c.id for c in classes]

    since = calendar_day_of(now or utcnow()) - timedelta(days=lookback_days)
    counts = _present_session_counts(db, class_ids, since)
    enrolled = _enrolled_counts(db, class_ids)

    return build_session_summaries(counts, {c.id: c.name for c in classes}, enrolled, limit)


@storage_errors
def dashboard_stats(db: Session, caller: Caller, now: Optional[datetime] = None) -> DashboardStats:
    """Statistiques globales de l'enseignant : classes, élèves distincts, taux global, séances récentes."""
    if not caller.is_teacher:
        raise ForbiddenError("Tableau de bord réservé aux enseignants.")

    classes = _owned_classes(db, caller.id)
    if not classes:
        return DashboardStats(total_classes=0, total_students=0, attendance_rate=0, recent_sessions=[])
    class_ids = [c.id for c in classes]

    total_students = db.execute(
        select(func.count(func.distinct(ClassStudent.student_id)))
        .where(ClassStudent.class_id.in_(class_ids))
    ).scalar() or 0

    enrolled = _enrolled_counts(db, class_ids)
    global_rate = fold_global_rate(_present_session_counts(db, class_ids), enrolled)

    return DashboardStats(
        total_classes=len(classes),
        total_students=total_students,
        attendance_rate=global_rate,
        recent_sessions=recent_sessions(db, caller.id, now=now),
    )
