"""
Schémas Pydantic pour les utilisateurs et l'identité de l'appelant.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, field_validator

Role = Literal["TEACHER", "STUDENT"]


class Caller(BaseModel):
    """Identité déjà authentifiée transmise par la passerelle (en-têtes X-User-Id / X-User-Role)."""
    id: uuid.UUID
    role: Role

    @property
    def is_teacher(self) -> bool:
        return self.role == "TEACHER"

    @property
    def is_student(self) -> bool:
        return self.role == "STUDENT"


class UserCreate(BaseModel):
    email: EmailStr
    name: str
    role: Role

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom ne peut pas être vide.")
        return v.strip()


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
