"""
Modèle SQLAlchemy pour les utilisateurs.
L'authentification est assurée en amont : on ne stocke que l'identité et le rôle.
"""

import uuid
from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from appel.database import Base

ROLE_TEACHER = "TEACHER"
ROLE_STUDENT = "STUDENT"
VALID_ROLES = {ROLE_TEACHER, ROLE_STUDENT}


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False)  # TEACHER, STUDENT
    created_at = Column(DateTime, server_default=func.now())
