"""
Router pour les classes et les inscriptions des élèves.
Les erreurs métier (AppelError) sont converties en réponses HTTP par main.py.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from appel.database import get_db
from appel.dependencies import get_caller
from appel.schemas.school_class import ClassCreate, ClassJoin, ClassResponse, ClassUpdate
from appel.schemas.user import Caller
from appel.services import class_service

router = APIRouter(prefix="/api/v1/classes", tags=["Classes"])


@router.post("", response_model=ClassResponse, status_code=201, summary="Créer une classe")
def create_class(
    data: ClassCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Crée une classe appartenant à l'enseignant, avec un code d'inscription unique."""
    return class_service.create_class(db, caller, data)


@router.get("", response_model=List[ClassResponse], summary="Lister mes classes")
def list_classes(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """Classes de l'enseignant, ou classes suivies par l'élève."""
    return class_service.get_classes(db, caller)


@router.post("/join", response_model=ClassResponse, summary="Rejoindre une classe")
def join_class(
    data: ClassJoin,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Inscrit l'élève dans la classe correspondant au code d'inscription."""
    return class_service.join_class(db, caller, data)


@router.get("/{class_id}", response_model=ClassResponse, summary="Détail d'une classe")
def get_class(class_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    return class_service.get_class(db, class_id, caller)


@router.put("/{class_id}", response_model=ClassResponse, summary="Modifier une classe")
def update_class(
    class_id: uuid.UUID,
    data: ClassUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    """Modifie le nom et/ou la description (enseignant propriétaire)."""
    return class_service.update_class(db, class_id, caller, data)


@router.delete("/{class_id}", status_code=204, summary="Supprimer une classe")
def delete_class(class_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    """Supprime la classe ainsi que ses codes, inscriptions et présences."""
    class_service.delete_class(db, class_id, caller)


@router.post("/{class_id}/leave", status_code=204, summary="Quitter une classe")
def leave_class(class_id: uuid.UUID, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    class_service.leave_class(db, class_id, caller)


@router.delete("/{class_id}/students/{student_id}", status_code=204, summary="Retirer un élève")
def remove_student(
    class_id: uuid.UUID,
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    class_service.remove_student(db, class_id, caller, student_id)
