"""
Configuration de la connexion à la base de données PostgreSQL.
"""

import logging
from functools import wraps

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from appel.config import settings
from appel.exceptions import StorageError

logger = logging.getLogger(__name__)

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI : fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def storage_errors(func):
    """
    Décorateur des opérations de service (session en premier argument) :
    toute SQLAlchemyError non traitée, lecture comprise, devient une StorageError.
    """
    @wraps(func)
    def wrapper(db, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Erreur BDD dans %s : %s", func.__name__, exc)
            raise StorageError() from exc
    return wrapper


def violates_constraint(exc: IntegrityError, name: str, columns: tuple = ()) -> bool:
    """
    Indique si l'IntegrityError provient de la contrainte `name`.
    PostgreSQL (psycopg2) expose le nom via diag ; SQLite cite seulement les colonnes.
    """
    orig = exc.orig
    constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if constraint is not None:
        return constraint == name

    message = str(orig)
    if name in message:
        return True
    return bool(columns) and "UNIQUE" in message.upper() and all(c in message for c in columns)
