"""
Modèle SQLAlchemy pour les codes de présence à 3 chiffres.

Au plus un code actif par classe : l'émission d'un nouveau code désactive les
précédents. L'expiration n'est jamais appliquée par une tâche de fond, elle est
vérifiée à la lecture (expires_at > now).
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID

from appel.database import Base


class AttendanceCode(Base):
    __tablename__ = "attendance_codes"
    __table_args__ = (
        Index("ix_attendance_codes_active_code", "active", "code"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(3), nullable=False)          # "100" à "999"
    expires_at = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
