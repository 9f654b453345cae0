"""
Service métier pour les codes de présence à 3 chiffres.

Cycle de vie :
  1. Émission par l'enseignant : les codes actifs de la classe sont désactivés,
     puis un nouveau code est tiré parmi ceux qui ne sont actifs nulle part.
  2. Lecture du code actif (enseignant ou élève inscrit).
  3. Utilisation par l'élève : crée sa présence du jour, une seule fois.

L'expiration est vérifiée à la lecture ; aucun job ne désactive les codes expirés.
"""

import uuid
import logging
import random
from datetime import datetime, timedelta
from typing import Collection, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appel.config import settings
from appel.database import storage_errors, violates_constraint
from appel.exceptions import (
    AlreadyRecordedError,
    CodeSpaceExhaustedError,
    InvalidArgumentError,
    InvalidOrExpiredCodeError,
    NotFoundError,
    StorageError,
)
from appel.models.attendance import DAY_UNIQUE_COLUMNS, DAY_UNIQUE_CONSTRAINT, Attendance
from appel.models.attendance_code import AttendanceCode
from appel.schemas.attendance import AttendanceResponse
from appel.schemas.attendance_code import CodeResponse
from appel.schemas.user import Caller
from appel.services import class_service
from appel.timeutils import as_utc, calendar_day_of, utcnow

logger = logging.getLogger(__name__)

CODE_MIN = 100
CODE_MAX = 999
KEYSPACE_SIZE = CODE_MAX - CODE_MIN + 1

_system_random = random.SystemRandom()


def generate_code(taken: Collection[str], rng: Optional[random.Random] = None) -> str:
    """
    Tire un code uniforme dans [100, 999] en retirant tant qu'il est déjà pris.
    Lève CodeSpaceExhaustedError si les 900 valeurs sont occupées.
    """
    rng = rng or _system_random
    if len({c for c in taken if c.isdigit() and CODE_MIN <= int(c) <= CODE_MAX}) >= KEYSPACE_SIZE:
        raise CodeSpaceExhaustedError()

    code = str(rng.randint(CODE_MIN, CODE_MAX))
    while code in taken:
        code = str(rng.randint(CODE_MIN, CODE_MAX))
    return code


def is_code_valid(code: AttendanceCode, class_id: uuid.UUID, submitted: str, now: datetime) -> bool:
    """Un code n'est utilisable que pour sa classe, tant qu'il est actif et non expiré."""
    return (
        code.class_id == class_id
        and code.code == submitted
        and bool(code.active)
        and as_utc(code.expires_at) > now
    )


def _validate_duration(duration_minutes: Optional[int]) -> int:
    if duration_minutes is None:
        return settings.DEFAULT_CODE_DURATION_MINUTES
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidArgumentError("La durée doit être un nombre entier de minutes.")
    if not 1 <= duration_minutes <= settings.MAX_CODE_DURATION_MINUTES:
        raise InvalidArgumentError(
            f"La durée doit être comprise entre 1 et {settings.MAX_CODE_DURATION_MINUTES} minutes."
        )
    return duration_minutes


def _deactivate_codes(db: Session, class_id: uuid.UUID) -> None:
    """Supersession : plus aucun code actif pour cette classe."""
    db.execute(
        update(AttendanceCode)
        .where(AttendanceCode.class_id == class_id, AttendanceCode.active.is_(True))
        .values(active=False)
    )


def _taken_codes(db: Session, now: datetime) -> set[str]:
    """Valeurs des codes actifs et non expirés, toutes classes confondues."""
    return set(db.execute(
        select(AttendanceCode.code)
        .where(AttendanceCode.active.is_(True), AttendanceCode.expires_at > now)
    ).scalars().all())


@storage_errors
def issue_code(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> CodeResponse:
    """
    Génère un nouveau code pour la classe de l'enseignant appelant.

    Étapes (une seule transaction) :
    1. Désactiver les codes actifs de la classe
    2. Tirer un code libre parmi les codes actifs de toutes les classes
    3. Insérer le nouveau code actif, expirant dans `duration_minutes` (15 par défaut)
    """
    class_service.require_owner(db, class_id, caller)
    duration = _validate_duration(duration_minutes)
    now = now or utcnow()

    try:
        _deactivate_codes(db, class_id)
        code = AttendanceCode(
            class_id=class_id,
            code=generate_code(_taken_codes(db, now), rng),
            expires_at=now + timedelta(minutes=duration),
            active=True,
        )
        db.add(code)
        db.commit()
    except CodeSpaceExhaustedError:
        db.rollback()
        raise

    db.refresh(code)
    logger.info("Code %s émis pour la classe %s (expire à %s)", code.code, class_id, code.expires_at)
    return CodeResponse.model_validate(code)


@storage_errors
def get_active_code(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    now: Optional[datetime] = None,
) -> CodeResponse:
    """Retourne le code actif et non expiré de la classe. Aucun effet de bord."""
    class_service.require_member(db, class_id, caller)
    now = now or utcnow()

    code = db.execute(
        select(AttendanceCode)
        .where(
            AttendanceCode.class_id == class_id,
            AttendanceCode.active.is_(True),
            AttendanceCode.expires_at > now,
        )
        .order_by(AttendanceCode.expires_at.desc())
        .limit(1)
    ).scalars().first()

    if code is None or not code.active or as_utc(code.expires_at) <= now:
        raise NotFoundError("Aucun code actif pour cette classe.")
    return CodeResponse.model_validate(code)


def _find_valid_code(
    db: Session, class_id: uuid.UUID, submitted: str, now: datetime
) -> Optional[AttendanceCode]:
    return db.execute(
        select(AttendanceCode)
        .where(
            AttendanceCode.class_id == class_id,
            AttendanceCode.code == submitted,
            AttendanceCode.active.is_(True),
            AttendanceCode.expires_at > now,
        )
        .limit(1)
    ).scalars().first()


def find_record_for_day(db: Session, class_id: uuid.UUID, student_id: uuid.UUID, day) -> Optional[Attendance]:
    """Présence existante pour (classe, élève, jour), ou None."""
    return db.execute(
        select(Attendance)
        .where(
            Attendance.class_id == class_id,
            Attendance.student_id == student_id,
            Attendance.day == day,
        )
    ).scalars().first()


@storage_errors
def redeem_code(
    db: Session,
    class_id: uuid.UUID,
    caller: Caller,
    submitted_code: str,
    now: Optional[datetime] = None,
) -> AttendanceResponse:
    """
    Enregistre la présence du jour de l'élève appelant à partir du code saisi.

    Validations :
    1. L'élève est inscrit dans la classe
    2. Le code appartient à cette classe, est actif et non expiré
    3. Aucune présence n'existe déjà pour (classe, élève, aujourd'hui)

    Une violation de la contrainte d'unicité au commit (soumission concurrente)
    est traduite en AlreadyRecordedError.
    """
    class_service.require_enrolled_student(db, class_id, caller)
    now = now or utcnow()
    submitted = submitted_code.strip()

    code = _find_valid_code(db, class_id, submitted, now)
    if code is None or not is_code_valid(code, class_id, submitted, now):
        raise InvalidOrExpiredCodeError()

    today = calendar_day_of(now)
    if find_record_for_day(db, class_id, caller.id, today) is not None:
        raise AlreadyRecordedError()

    attendance = Attendance(
        class_id=class_id,
        student_id=caller.id,
        attendance_code_id=code.id,
        date=now,
        day=today,
        present=True,
        justified=False,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if not violates_constraint(exc, DAY_UNIQUE_CONSTRAINT, DAY_UNIQUE_COLUMNS):
            raise StorageError() from exc
        logger.warning("Présence concurrente ignorée : élève %s, classe %s, %s", caller.id, class_id, today)
        raise AlreadyRecordedError()

    db.refresh(attendance)
    logger.info("Présence enregistrée par code : élève %s, classe %s, %s", caller.id, class_id, today)
    return AttendanceResponse.model_validate(attendance)
