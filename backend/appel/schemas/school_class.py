"""
Schémas Pydantic pour les classes et les inscriptions.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class ClassCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de la classe ne peut pas être vide.")
        return v.strip()


class ClassUpdate(BaseModel):
    """Champs modifiables ; seuls les champs fournis sont mis à jour."""
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            raise ValueError("Le nom de la classe ne peut pas être vide.")
        return v.strip()


class ClassJoin(BaseModel):
    """Corps de requête pour rejoindre une classe avec son code d'inscription."""
    join_code: str

    @field_validator("join_code")
    @classmethod
    def code_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le code de la classe est obligatoire.")
        return v.strip().upper()


class ClassResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    join_code: str
    teacher_id: uuid.UUID
    nb_students: int
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
