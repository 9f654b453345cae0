"""
Service métier pour les classes et les inscriptions des élèves.

Fournit aussi les contrôles d'accès réutilisés par les autres services :
propriétaire de la classe (enseignant) ou élève inscrit.
"""

import uuid
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appel.database import storage_errors
from appel.exceptions import (
    AlreadyEnrolledError,
    ForbiddenError,
    NotFoundError,
    StorageError,
)
from appel.models.school_class import ClassStudent, SchoolClass
from appel.schemas.school_class import ClassCreate, ClassJoin, ClassResponse, ClassUpdate
from appel.schemas.user import Caller

logger = logging.getLogger(__name__)

JOIN_CODE_LENGTH = 6
MAX_JOIN_CODE_ATTEMPTS = 5


# --- Contrôles d'accès ---

def get_class_or_404(db: Session, class_id: uuid.UUID) -> SchoolClass:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise NotFoundError("Classe introuvable.")
    return school_class


def is_enrolled(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> bool:
    return db.get(ClassStudent, (class_id, student_id)) is not None


def is_owner(school_class: SchoolClass, caller: Caller) -> bool:
    return caller.is_teacher and school_class.teacher_id == caller.id


def require_owner(db: Session, class_id: uuid.UUID, caller: Caller) -> SchoolClass:
    """Retourne la classe si l'appelant en est l'enseignant, sinon ForbiddenError."""
    school_class = get_class_or_404(db, class_id)
    if not is_owner(school_class, caller):
        raise ForbiddenError("Vous n'êtes pas l'enseignant de cette classe.")
    return school_class


def require_enrolled_student(db: Session, class_id: uuid.UUID, caller: Caller) -> SchoolClass:
    school_class = get_class_or_404(db, class_id)
    if not (caller.is_student and is_enrolled(db, class_id, caller.id)):
        raise ForbiddenError("Vous n'êtes pas inscrit dans cette classe.")
    return school_class


def require_member(db: Session, class_id: uuid.UUID, caller: Caller) -> SchoolClass:
    """Enseignant propriétaire ou élève inscrit."""
    school_class = get_class_or_404(db, class_id)
    if is_owner(school_class, caller):
        return school_class
    if caller.is_student and is_enrolled(db, class_id, caller.id):
        return school_class
    raise ForbiddenError("Accès refusé à cette classe.")


# --- Gestion des classes ---

def _generate_join_code() -> str:
    """Code d'inscription permanent (6 caractères hexadécimaux en majuscules)."""
    return uuid.uuid4().hex[:JOIN_CODE_LENGTH].upper()


@storage_errors
def create_class(db: Session, caller: Caller, data: ClassCreate) -> ClassResponse:
    """
    Crée une classe appartenant à l'enseignant appelant.
    Le code d'inscription est régénéré en cas de collision (contrainte UNIQUE).
    """
    if not caller.is_teacher:
        raise ForbiddenError("Seuls les enseignants peuvent créer une classe.")

    for _ in range(MAX_JOIN_CODE_ATTEMPTS):
        school_class = SchoolClass(
            name=data.name,
            description=data.description,
            join_code=_generate_join_code(),
            teacher_id=caller.id,
        )
        db.add(school_class)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Collision de code d'inscription %s, nouvel essai", school_class.join_code)
            continue

        db.refresh(school_class)
        logger.info("Classe créée : %s (%s) par %s", school_class.name, school_class.id, caller.id)
        return _to_response(db, school_class)

    raise StorageError("Impossible de générer un code d'inscription unique.")


@storage_errors
def get_classes(db: Session, caller: Caller) -> list[ClassResponse]:
    """Classes de l'enseignant, ou classes suivies par l'élève, des plus récentes aux plus anciennes."""
    if caller.is_teacher:
        query = select(SchoolClass).where(SchoolClass.teacher_id == caller.id)
    else:
        query = (
            select(SchoolClass)
            .join(ClassStudent, ClassStudent.class_id == SchoolClass.id)
            .where(ClassStudent.student_id == caller.id)
        )
    classes = db.execute(query.order_by(SchoolClass.created_at.desc())).scalars().all()
    return [_to_response(db, c) for c in classes]


@storage_errors
def get_class(db: Session, class_id: uuid.UUID, caller: Caller) -> ClassResponse:
    return _to_response(db, require_member(db, class_id, caller))


@storage_errors
def update_class(db: Session, class_id: uuid.UUID, caller: Caller, data: ClassUpdate) -> ClassResponse:
    """Met à jour les champs fournis d'une classe (enseignant propriétaire uniquement)."""
    school_class = require_owner(db, class_id, caller)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(school_class, field, value)

    db.commit()
    db.refresh(school_class)
    logger.info("Classe modifiée : %s (%s)", class_id, ", ".join(update_data) or "aucun champ")
    return _to_response(db, school_class)


@storage_errors
def delete_class(db: Session, class_id: uuid.UUID, caller: Caller) -> None:
    """
    Supprime une classe. Les inscriptions, codes et présences
    sont supprimés en cascade par la base (ON DELETE CASCADE).
    """
    school_class = require_owner(db, class_id, caller)
    db.delete(school_class)
    db.commit()
    logger.info("Classe supprimée : %s", class_id)


# --- Inscriptions ---

@storage_errors
def join_class(db: Session, caller: Caller, data: ClassJoin) -> ClassResponse:
    """Inscrit l'élève appelant dans la classe correspondant au code d'inscription."""
    if not caller.is_student:
        raise ForbiddenError("Seuls les élèves peuvent rejoindre une classe.")

    school_class = db.execute(
        select(SchoolClass).where(SchoolClass.join_code == data.join_code)
    ).scalar_one_or_none()
    if school_class is None:
        raise NotFoundError("Classe introuvable. Vérifiez le code et réessayez.")

    if is_enrolled(db, school_class.id, caller.id):
        raise AlreadyEnrolledError("Vous êtes déjà inscrit dans cette classe.")

    db.add(ClassStudent(class_id=school_class.id, student_id=caller.id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyEnrolledError("Vous êtes déjà inscrit dans cette classe.")

    logger.info("Élève %s inscrit dans la classe %s", caller.id, school_class.id)
    return _to_response(db, school_class)


@storage_errors
def leave_class(db: Session, class_id: uuid.UUID, caller: Caller) -> None:
    """Désinscrit l'élève appelant. Ses présences passées sont conservées."""
    if not caller.is_student:
        raise ForbiddenError("Seuls les élèves peuvent quitter une classe.")
    _delete_enrollment(db, class_id, caller.id, "Vous n'êtes pas inscrit dans cette classe.")


@storage_errors
def remove_student(db: Session, class_id: uuid.UUID, caller: Caller, student_id: uuid.UUID) -> None:
    """Retire un élève d'une classe (enseignant propriétaire uniquement)."""
    require_owner(db, class_id, caller)
    _delete_enrollment(db, class_id, student_id, "Lien classe-élève introuvable.")


def _delete_enrollment(db: Session, class_id: uuid.UUID, student_id: uuid.UUID, not_found: str) -> None:
    link = db.get(ClassStudent, (class_id, student_id))
    if link is None:
        raise NotFoundError(not_found)
    db.delete(link)
    db.commit()


def count_students(db: Session, class_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count())
        .select_from(ClassStudent)
        .where(ClassStudent.class_id == class_id)
    ).scalar() or 0


def _to_response(db: Session, school_class: SchoolClass) -> ClassResponse:
    """Construit le schéma de réponse avec le nombre d'élèves inscrits."""
    return ClassResponse(
        id=school_class.id,
        name=school_class.name,
        description=school_class.description,
        join_code=school_class.join_code,
        teacher_id=school_class.teacher_id,
        nb_students=count_students(db, school_class.id),
        created_at=school_class.created_at,
    )
