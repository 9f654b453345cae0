"""
Schémas Pydantic pour les taux de présence et le tableau de bord enseignant.
Tous les taux sont des pourcentages entiers dans [0, 100].
"""

import uuid
from datetime import date
from typing import List

from pydantic import BaseModel


class ClassRate(BaseModel):
    class_id: uuid.UUID
    sessions: int           # Jours distincts avec au moins une présence
    enrolled_students: int
    total_expected: int     # sessions × élèves inscrits
    total_present: int
    rate: int


class UserRate(BaseModel):
    student_id: uuid.UUID
    total_classes: int
    total_sessions: int     # Paires (classe, jour) distinctes sur les classes suivies
    attended_sessions: int
    rate: int


class SessionSummary(BaseModel):
    """Séance = une classe un jour donné."""
    class_id: uuid.UUID
    class_name: str
    day: date
    attended_count: int
    total_students: int
    rate: int


class DashboardStats(BaseModel):
    total_classes: int
    total_students: int
    attendance_rate: int
    recent_sessions: List[SessionSummary]
