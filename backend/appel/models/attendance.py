"""
Modèle SQLAlchemy pour les présences.

Une présence = un fait (classe, élève, jour). La colonne `day` est le jour
calendaire de `date` dans le fuseau configuré ; la contrainte d'unicité
(class_id, student_id, day) est la garde de référence contre les doublons,
y compris en cas de soumissions concurrentes.
"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID

from appel.database import Base


DAY_UNIQUE_CONSTRAINT = "uq_attendance_class_student_day"
DAY_UNIQUE_COLUMNS = ("attendances.class_id", "attendances.student_id", "attendances.day")


class Attendance(Base):
    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("class_id", "student_id", "day", name=DAY_UNIQUE_CONSTRAINT),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    attendance_code_id = Column(
        UUID(as_uuid=True), ForeignKey("attendance_codes.id", ondelete="SET NULL"), nullable=True
    )  # NULL = marquage manuel

    date = Column(DateTime(timezone=True), nullable=False)
    day = Column(Date, nullable=False, index=True)

    present = Column(Boolean, nullable=False, default=True)
    justified = Column(Boolean, nullable=False, default=False)
    justification = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
