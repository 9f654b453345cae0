"""
Tests unitaires pour le marquage manuel et l'historique des présences.
Couverture : mark_manual (asistio / justificada / statut invalide), set_presence, get_history.
"""

import uuid
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from appel.exceptions import (
    DuplicateRecordError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
)
from appel.models.attendance import Attendance
from appel.models.school_class import ClassStudent, SchoolClass
from appel.schemas.attendance import ManualMark
from appel.schemas.user import Caller
from appel.services.attendance_service import (
    DEFAULT_JUSTIFICATION,
    get_history,
    mark_manual,
    set_presence,
)


# --- Helpers ---

def make_class(teacher_id):
    c = MagicMock(spec=SchoolClass)
    c.id = uuid.uuid4()
    c.teacher_id = teacher_id
    return c


def make_record(class_id, student_id, justified=False):
    r = MagicMock(spec=Attendance)
    r.id = uuid.uuid4()
    r.class_id = class_id
    r.student_id = student_id
    r.present = True
    r.justified = justified
    r.justification = None
    return r


def make_db(school_class=None, enrolled=True, record=None):
    db = MagicMock()

    def _get(model, key):
        if model is SchoolClass:
            return school_class
        if model is ClassStudent:
            return MagicMock() if enrolled else None
        if model is Attendance:
            return record
        return None

    db.get.side_effect = _get
    return db


def mark(status, student_id, when=None, justification=None):
    return ManualMark(
        student_id=student_id,
        date=when or datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc),
        status=status,
        justification=justification,
    )


# ============================================================
# mark_manual
# ============================================================

class TestMarkManual:
    def setup_method(self):
        self.teacher = Caller(id=uuid.uuid4(), role="TEACHER")
        self.school_class = make_class(self.teacher.id)
        self.student_id = uuid.uuid4()

    def _mark(self, db, data, existing=None):
        with patch("appel.services.attendance_service.find_record_for_day", return_value=existing) as finder, \
             patch("appel.services.attendance_service.AttendanceResponse.model_validate", side_effect=lambda obj: obj):
            result = mark_manual(db, self.school_class.id, self.teacher, data)
        self.finder = finder
        return result

    def test_enseignant_non_proprietaire(self):
        other = Caller(id=uuid.uuid4(), role="TEACHER")
        db = make_db(school_class=self.school_class)
        with pytest.raises(ForbiddenError):
            mark_manual(db, self.school_class.id, other, mark("asistio", self.student_id))

    def test_eleve_non_inscrit(self):
        db = make_db(school_class=self.school_class, enrolled=False)
        with pytest.raises(InvalidArgumentError, match="n'appartient pas"):
            self._mark(db, mark("asistio", self.student_id))

    def test_statut_invalide(self):
        db = make_db(school_class=self.school_class)
        with pytest.raises(InvalidArgumentError, match="Statut"):
            self._mark(db, mark("absent", self.student_id))
        db.add.assert_not_called()
        db.commit.assert_not_called()

    def test_asistio_cree_une_presence(self):
        db = make_db(school_class=self.school_class)
        record = self._mark(db, mark("asistio", self.student_id))

        added = db.add.call_args[0][0]
        assert added is record
        assert added.present is True
        assert added.justified is False
        assert added.attendance_code_id is None
        assert added.day == date(2026, 10, 19)
        db.commit.assert_called_once()

    def test_asistio_doublon_le_meme_jour(self):
        db = make_db(school_class=self.school_class)
        existing = make_record(self.school_class.id, self.student_id)
        with pytest.raises(DuplicateRecordError):
            self._mark(db, mark("asistio", self.student_id), existing=existing)
        db.add.assert_not_called()

    def test_asistio_conflit_concurrent(self):
        db = make_db(school_class=self.school_class)
        db.commit.side_effect = IntegrityError(
            "INSERT", None,
            Exception("UNIQUE constraint failed: attendances.class_id, attendances.student_id, attendances.day"),
        )
        with pytest.raises(DuplicateRecordError):
            self._mark(db, mark("asistio", self.student_id))
        db.rollback.assert_called_once()

    def test_date_naive_interpretee_dans_le_fuseau_configure(self):
        db = make_db(school_class=self.school_class)
        with patch("appel.timeutils.settings") as fake_settings:
            fake_settings.TIMEZONE = "Europe/Madrid"
            self._mark(db, mark("asistio", self.student_id, when=datetime(2026, 10, 19, 0, 30)))

        added = db.add.call_args[0][0]
        # 00:30 à Madrid (UTC+2) = 22:30 UTC la veille, mais le jour reste le 19
        assert added.date == datetime(2026, 10, 18, 22, 30, tzinfo=timezone.utc)
        assert self.finder.call_args[0][3] == date(2026, 10, 19)

    def test_justificada_sans_presence(self):
        db = make_db(school_class=self.school_class)
        with pytest.raises(NotFoundError):
            self._mark(db, mark("justificada", self.student_id), existing=None)
        db.commit.assert_not_called()

    def test_justificada_texte_par_defaut(self):
        db = make_db(school_class=self.school_class)
        existing = make_record(self.school_class.id, self.student_id)
        result = self._mark(db, mark("justificada", self.student_id), existing=existing)

        assert result is existing
        assert existing.justified is True
        assert existing.justification == DEFAULT_JUSTIFICATION
        db.add.assert_not_called()
        db.commit.assert_called_once()

    def test_justificada_texte_fourni(self):
        db = make_db(school_class=self.school_class)
        existing = make_record(self.school_class.id, self.student_id)
        self._mark(db, mark("justificada", self.student_id, justification="Certificat médical"), existing=existing)
        assert existing.justification == "Certificat médical"
        assert existing.present is True


# ============================================================
# set_presence
# ============================================================

class TestSetPresence:
    def setup_method(self):
        self.teacher = Caller(id=uuid.uuid4(), role="TEACHER")
        self.school_class = make_class(self.teacher.id)

    def test_enregistrement_introuvable(self):
        db = make_db(school_class=self.school_class, record=None)
        with pytest.raises(NotFoundError):
            set_presence(db, uuid.uuid4(), self.teacher, False)

    def test_autre_enseignant_refuse(self):
        record = make_record(self.school_class.id, uuid.uuid4())
        db = make_db(school_class=self.school_class, record=record)
        with pytest.raises(ForbiddenError):
            set_presence(db, record.id, Caller(id=uuid.uuid4(), role="TEACHER"), False)
        assert record.present is True

    def test_marque_absent(self):
        record = make_record(self.school_class.id, uuid.uuid4())
        db = make_db(school_class=self.school_class, record=record)
        with patch("appel.services.attendance_service.AttendanceResponse.model_validate", side_effect=lambda obj: obj):
            set_presence(db, record.id, self.teacher, False)
        assert record.present is False
        db.commit.assert_called_once()


# ============================================================
# get_history
# ============================================================

class TestGetHistory:
    def setup_method(self):
        self.teacher = Caller(id=uuid.uuid4(), role="TEACHER")
        self.school_class = make_class(self.teacher.id)

    def test_plage_de_dates_inversee(self):
        db = make_db(school_class=self.school_class)
        with pytest.raises(InvalidArgumentError):
            get_history(db, self.school_class.id, self.teacher, start=date(2026, 10, 20), end=date(2026, 10, 1))

    def test_eleve_ne_voit_que_ses_presences(self):
        student = Caller(id=uuid.uuid4(), role="STUDENT")
        db = make_db(school_class=self.school_class)
        db.execute.return_value.scalars.return_value.all.return_value = []

        get_history(db, self.school_class.id, student, student_id=uuid.uuid4())

        statement = db.execute.call_args[0][0]
        assert student.id in statement.compile().params.values()

    def test_enseignant_filtre_par_eleve(self):
        student_id = uuid.uuid4()
        db = make_db(school_class=self.school_class)
        records = [make_record(self.school_class.id, student_id)]
        db.execute.return_value.scalars.return_value.all.return_value = records

        with patch("appel.services.attendance_service.AttendanceResponse.model_validate", side_effect=lambda obj: obj):
            result = get_history(db, self.school_class.id, self.teacher, student_id=student_id)

        assert result == records
        statement = db.execute.call_args[0][0]
        assert student_id in statement.compile().params.values()

    def test_non_membre_refuse(self):
        outsider = Caller(id=uuid.uuid4(), role="STUDENT")
        db = make_db(school_class=self.school_class, enrolled=False)
        with pytest.raises(ForbiddenError):
            get_history(db, self.school_class.id, outsider)

    def test_erreur_bdd_en_lecture(self):
        db = make_db(school_class=self.school_class)
        db.execute.side_effect = OperationalError("SELECT", None, Exception("connexion perdue"))
        with pytest.raises(StorageError):
            get_history(db, self.school_class.id, self.teacher)
        db.rollback.assert_called_once()
