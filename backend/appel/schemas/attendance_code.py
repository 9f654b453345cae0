"""
Schémas Pydantic pour les codes de présence.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CodeIssue(BaseModel):
    """Corps de requête pour générer un code. La durée par défaut vient de la configuration."""
    duration_minutes: Optional[int] = None


class CodeRedeem(BaseModel):
    """Code saisi par l'élève."""
    code: str

    @field_validator("code")
    @classmethod
    def code_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le code ne peut pas être vide.")
        return v.strip()


class CodeResponse(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    code: str
    expires_at: datetime
    active: bool

    model_config = {"from_attributes": True}
