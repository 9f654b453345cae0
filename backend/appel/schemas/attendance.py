"""
Schémas Pydantic pour les présences (enregistrement par code, marquage manuel, historique).
"""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

STATUS_ATTENDED = "asistio"
STATUS_JUSTIFIED = "justificada"
VALID_STATUSES = {STATUS_ATTENDED, STATUS_JUSTIFIED}


class ManualMark(BaseModel):
    """Marquage manuel par l'enseignant. Le statut est validé par le service."""
    student_id: uuid.UUID
    date: datetime
    status: str
    justification: Optional[str] = None


class PresenceUpdate(BaseModel):
    present: bool


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    class_id: uuid.UUID
    student_id: uuid.UUID
    date: datetime
    day: date
    present: bool
    justified: bool
    justification: Optional[str]
    attendance_code_id: Optional[uuid.UUID]

    model_config = {"from_attributes": True}
