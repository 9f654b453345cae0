"""
Service métier pour la saisie manuelle et la consultation des présences.

Statuts acceptés pour le marquage manuel :
- "asistio"     : crée la présence du jour (refusée si elle existe déjà)
- "justificada" : justifie une présence existante (justified + justification)
"""

import uuid
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appel.database import storage_errors, violates_constraint
from appel.exceptions import (
    DuplicateRecordError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
)
from appel.models.attendance import DAY_UNIQUE_COLUMNS, DAY_UNIQUE_CONSTRAINT, Attendance
from appel.models.school_class import SchoolClass
from appel.schemas.attendance import (
    STATUS_ATTENDED,
    STATUS_JUSTIFIED,
    AttendanceResponse,
    ManualMark,
)
from appel.schemas.user import Caller
from appel.services import class_service
from appel.services.code_service import find_record_for_day
from appel.timeutils import as_utc, calendar_day_of, localize

logger = logging.getLogger(__name__)

DEFAULT_JUSTIFICATION = "Justifiée par l'enseignant"


@storage_errors
def mark_manual(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    data: ManualMark,
) -> AttendanceResponse:
    """
    Marquage manuel d'un élève par l'enseignant propriétaire de la classe.

    Une date naïve est interprétée dans le fuseau configuré ; le jour calendaire
    qui en découle est la clé d'unicité (classe, élève, jour).
    """
    class_service.require_owner(db, class_id, caller)
    if not class_service.is_enrolled(db, class_id, data.student_id):
        raise InvalidArgumentError("L'élève n'appartient pas à cette classe.")

    if data.status not in (STATUS_ATTENDED, STATUS_JUSTIFIED):
        raise InvalidArgumentError(f"Statut de présence invalide : '{data.status}'.")

    marked_at = as_utc(localize(data.date))
    day = calendar_day_of(marked_at)
    existing = find_record_for_day(db, class_id, data.student_id, day)

    if data.status == STATUS_ATTENDED:
        if existing is not None:
            raise DuplicateRecordError("Une présence existe déjà pour cet élève à cette date.")
        record = Attendance(
            class_id=class_id,
            student_id=data.student_id,
            date=marked_at,
            day=day,
            present=True,
            justified=False,
        )
        db.add(record)
    else:
        if existing is None:
            raise NotFoundError("Aucune présence à justifier pour cet élève à cette date.")
        record = existing
        record.justified = True
        record.justification = data.justification or DEFAULT_JUSTIFICATION

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not violates_constraint(exc, DAY_UNIQUE_CONSTRAINT, DAY_UNIQUE_COLUMNS):
            raise StorageError() from exc
        logger.warning("Doublon de présence manuelle : élève %s, classe %s, %s", data.student_id, class_id, day)
        raise DuplicateRecordError("Une présence existe déjà pour cet élève à cette date.")
    db.refresh(record)
    logger.info(
        "Marquage manuel '%s' : élève %s, classe %s, %s",
        data.status, data.student_id, class_id, day,
    )
    return AttendanceResponse.model_validate(record)


@storage_errors
def set_presence(
    db: Session,
    attendance_id: uuid.UUID,
    caller: Caller,
    present: bool,
) -> AttendanceResponse:
    """Modifie l'indicateur de présence d'un enregistrement (enseignant propriétaire)."""
    record = db.get(Attendance, attendance_id)
    if record is None:
        raise NotFoundError("Enregistrement de présence introuvable.")

    school_class = db.get(SchoolClass, record.class_id)
    if school_class is None or not class_service.is_owner(school_class, caller):
        raise ForbiddenError("Vous n'avez pas la permission de modifier cette présence.")

    record.present = present
    db.commit()
    db.refresh(record)
    return AttendanceResponse.model_validate(record)


@storage_errors
def get_history(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    student_id: Optional[uuid.UUID] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[AttendanceResponse]:
    """
    Historique des présences d'une classe, de la plus récente à la plus ancienne.
    L'enseignant voit tout (filtre élève optionnel) ; un élève ne voit que les siennes.
    Les bornes de dates sont inclusives.
    """
    school_class = class_service.require_member(db, class_id, caller)
    if start is not None and end is not None and start > end:
        raise InvalidArgumentError("La date de début doit précéder la date de fin.")

    query = select(Attendance).where(Attendance.class_id == class_id)

    if not class_service.is_owner(school_class, caller):
        query = query.where(Attendance.student_id == caller.id)
    elif student_id is not None:
        query = query.where(Attendance.student_id == student_id)

    if start is not None:
        query = query.where(Attendance.day >= start)
    if end is not None:
        query = query.where(Attendance.day <= end)

    records = db.execute(query.order_by(Attendance.date.desc())).scalars().all()
    return [AttendanceResponse.model_validate(r) for r in records]
