"""
Horloge et découpage en jours calendaires.

Toutes les dates sont stockées en UTC. Le "jour" d'une présence (clé d'unicité
et regroupement par séance) est calculé dans le fuseau configuré (settings.TIMEZONE).
"""

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from appel.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_timezone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.TIMEZONE)


def as_utc(value: datetime) -> datetime:
    """Normalise un datetime en UTC. Un datetime naïf est considéré comme déjà en UTC (valeur BDD)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def localize(value: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Rattache un datetime naïf saisi par un utilisateur au fuseau local configuré."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz or get_timezone())
    return value


def calendar_day_of(timestamp: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """Jour calendaire d'un instant, vu depuis le fuseau donné (ou celui de la configuration)."""
    return as_utc(timestamp).astimezone(tz or get_timezone()).date()
