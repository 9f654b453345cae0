"""
Tests d'intégration API pour les taux de présence et le tableau de bord.
"""

import uuid
from datetime import date
from unittest.mock import patch

from appel.exceptions import ForbiddenError
from appel.schemas.stats import ClassRate, DashboardStats, SessionSummary, UserRate


def make_session(**kwargs) -> SessionSummary:
    return SessionSummary(
        class_id=kwargs.get("class_id", uuid.uuid4()),
        class_name=kwargs.get("class_name", "Maths 3A"),
        day=kwargs.get("day", date(2026, 10, 19)),
        attended_count=2,
        total_students=3,
        rate=67,
    )


def test_class_rate(client):
    class_id = uuid.uuid4()
    with patch("appel.routers.stats.stats_service.get_class_rate") as mock:
        mock.return_value = ClassRate(
            class_id=class_id, sessions=1, enrolled_students=3,
            total_expected=3, total_present=2, rate=67,
        )
        response = client.get(f"/api/v1/classes/{class_id}/stats", params={"start": "2026-10-01"})

    assert response.status_code == 200
    assert response.json()["rate"] == 67
    assert mock.call_args[0][3] == date(2026, 10, 1)
    assert mock.call_args[0][4] is None


def test_class_rate_non_membre(student_client):
    with patch("appel.routers.stats.stats_service.get_class_rate") as mock:
        mock.side_effect = ForbiddenError()
        response = student_client.get(f"/api/v1/classes/{uuid.uuid4()}/stats")

    assert response.status_code == 403


def test_my_rate(student_client, student):
    with patch("appel.routers.stats.stats_service.compute_user_rate") as mock:
        mock.return_value = UserRate(
            student_id=student.id, total_classes=2, total_sessions=4, attended_sessions=3, rate=75,
        )
        response = student_client.get("/api/v1/users/me/stats")

    assert response.status_code == 200
    assert response.json()["rate"] == 75
    assert mock.call_args[0][1] == student.id


def test_dashboard(client):
    with patch("appel.routers.stats.stats_service.dashboard_stats") as mock:
        mock.return_value = DashboardStats(
            total_classes=2, total_students=5, attendance_rate=75, recent_sessions=[make_session()],
        )
        response = client.get("/api/v1/dashboard/stats")

    assert response.status_code == 200
    assert response.json()["total_students"] == 5
    assert response.json()["recent_sessions"][0]["class_name"] == "Maths 3A"


def test_dashboard_eleve(student_client):
    with patch("appel.routers.stats.stats_service.dashboard_stats") as mock:
        mock.side_effect = ForbiddenError("Tableau de bord réservé aux enseignants.")
        response = student_client.get("/api/v1/dashboard/stats")

    assert response.status_code == 403


def test_recent_sessions(client, teacher):
    with patch("appel.routers.stats.stats_service.recent_sessions") as mock:
        mock.return_value = [make_session(), make_session(day=date(2026, 10, 16))]
        response = client.get("/api/v1/dashboard/recent-sessions", params={"limit": 2})

    assert response.status_code == 200
    assert len(response.json()) == 2
    mock.assert_called_once()
    assert mock.call_args[0][1] == teacher.id
    assert mock.call_args[0][3] == 2


def test_recent_sessions_eleve(student_client):
    with patch("appel.routers.stats.stats_service.recent_sessions") as mock:
        response = student_client.get("/api/v1/dashboard/recent-sessions")

    assert response.status_code == 403
    mock.assert_not_called()


def test_recent_sessions_limite_negative(client):
    response = client.get("/api/v1/dashboard/recent-sessions", params={"limit": -1})
    assert response.status_code == 422
