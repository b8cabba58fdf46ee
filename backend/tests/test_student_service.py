"""
Tests du service des dossiers étudiants (création, lecture, mise à jour, suppression).
Base SQLite réelle : les invariants d'unicité et de GPA sont vérifiés de bout en bout.
"""

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.exceptions import (
    DuplicateGradeError,
    DuplicateKeyError,
    ForbiddenError,
    NotFoundError,
    UnexpectedError,
)
from app.models.student import Grade, Student
from app.schemas.student import GradeCreate, StudentCreate, StudentUpdate
from app.security import Role
from app.services.grade_service import add_or_replace_grade
from app.services.student_service import (
    create_student,
    delete_student,
    get_student,
    persist_student,
    update_student,
)


def create(db, payload, role=Role.ADMIN):
    return create_student(db, StudentCreate.model_validate(payload), role)


# --- create_student ---

def test_create_student_succes(db, student_payload):
    student = create(db, student_payload())

    assert student.student_id == "S100"
    assert student.email == "a@x.edu"
    assert student.academic_info.gpa == 0.0
    assert student.grades == []
    assert student.status == "Active"
    assert student.address.country == "USA"
    assert student.academic_info.total_credits == 120
    assert student.academic_info.enrollment_date is not None
    assert student.created_at is not None


def test_create_student_email_stocke_en_minuscules(db, student_payload):
    student = create(db, student_payload(email="Alice.Martin@X.EDU"))
    assert student.email == "alice.martin@x.edu"


def test_create_student_matricule_duplique(db, student_payload):
    create(db, student_payload())

    with pytest.raises(DuplicateKeyError) as exc:
        create(db, student_payload(email="other@x.edu"))

    assert [e.field for e in exc.value.errors] == ["studentId"]
    assert db.execute(select(func.count()).select_from(Student)).scalar() == 1


def test_create_student_email_duplique_casse_differente(db, student_payload):
    create(db, student_payload())

    with pytest.raises(DuplicateKeyError) as exc:
        create(db, student_payload(studentId="S200", email="A@X.EDU"))

    assert [e.field for e in exc.value.errors] == ["email"]


def test_create_student_les_deux_cles_dupliquees(db, student_payload):
    create(db, student_payload())

    with pytest.raises(DuplicateKeyError) as exc:
        create(db, student_payload())

    assert {e.field for e in exc.value.errors} == {"studentId", "email"}


def test_create_student_role_faculty_refuse(db, student_payload):
    with pytest.raises(ForbiddenError):
        create(db, student_payload(), role=Role.FACULTY)
    assert db.execute(select(func.count()).select_from(Student)).scalar() == 0


def test_create_student_course_perdue_a_la_validation(student_payload):
    """Contrainte UNIQUE levée au commit (écriture concurrente) → DuplicateKeyError, rollback."""
    db = MagicMock()
    db.execute.return_value.all.return_value = []
    db.commit.side_effect = IntegrityError("duplicate", None, Exception("unique"))

    with pytest.raises(DuplicateKeyError):
        create(db, student_payload())
    db.rollback.assert_called_once()


def test_create_student_echec_stockage(student_payload):
    db = MagicMock()
    db.execute.return_value.all.return_value = []
    db.commit.side_effect = OperationalError("commit", None, Exception("disk I/O error"))

    with pytest.raises(UnexpectedError):
        create(db, student_payload())
    db.rollback.assert_called_once()


# --- get_student ---

def test_get_student_existant(db, student_payload):
    created = create(db, student_payload())
    found = get_student(db, created.id, Role.FACULTY)
    assert found.student_id == "S100"


def test_get_student_introuvable(db):
    with pytest.raises(NotFoundError) as exc:
        get_student(db, uuid.uuid4(), Role.FACULTY)
    assert exc.value.target == "student"


def test_get_student_sans_role_refuse(db, student_payload):
    created = create(db, student_payload())
    with pytest.raises(ForbiddenError):
        get_student(db, created.id, Role.NONE)


# --- update_student ---

def test_update_student_meme_cles_autorise(db, student_payload):
    created = create(db, student_payload())
    payload = student_payload(firstName="Alicia")

    updated = update_student(db, created.id, StudentUpdate.model_validate(payload), Role.ADMIN)

    assert updated.first_name == "Alicia"
    assert updated.student_id == "S100"
    assert updated.updated_at >= created.updated_at


def test_update_student_collision_avec_autre_etudiant(db, student_payload):
    create(db, student_payload())
    other = create(db, student_payload(studentId="S200", email="b@x.edu"))

    with pytest.raises(DuplicateKeyError):
        update_student(db, other.id, StudentUpdate.model_validate(student_payload(studentId="S200")), Role.ADMIN)

    with pytest.raises(DuplicateKeyError):
        update_student(db, other.id, StudentUpdate.model_validate(student_payload(email="b@x.edu")), Role.ADMIN)


def test_update_student_introuvable(db, student_payload):
    with pytest.raises(NotFoundError):
        update_student(db, uuid.uuid4(), StudentUpdate.model_validate(student_payload()), Role.ADMIN)


def test_update_student_conserve_notes_et_recalcule_gpa(db, student_payload):
    created = create(db, student_payload())
    add_or_replace_grade(
        db, created.id, GradeCreate(subject="Math", grade="B", semester="Fall", year=2024), Role.FACULTY
    )

    updated = update_student(db, created.id, StudentUpdate.model_validate(student_payload()), Role.ADMIN)

    assert len(updated.grades) == 1
    assert updated.academic_info.gpa == pytest.approx(3.0)


def test_update_student_statut_et_notes_absents_inchanges(db, student_payload):
    created = create(db, student_payload(status="Suspended", notes="Dossier en attente"))

    updated = update_student(db, created.id, StudentUpdate.model_validate(student_payload()), Role.ADMIN)

    assert updated.status == "Suspended"
    assert updated.notes == "Dossier en attente"


def test_update_student_remplace_sous_documents(db, student_payload):
    created = create(db, student_payload())
    payload = student_payload(status="Graduated")
    payload["academicInfo"]["major"] = "Mathematics"
    payload["academicInfo"]["minor"] = "Physics"
    payload["address"]["city"] = "Cambridge"

    updated = update_student(db, created.id, StudentUpdate.model_validate(payload), Role.ADMIN)

    assert updated.academic_info.major == "Mathematics"
    assert updated.academic_info.minor == "Physics"
    assert updated.address.city == "Cambridge"
    assert updated.status == "Graduated"
    assert updated.academic_info.enrollment_date == created.academic_info.enrollment_date


def test_update_student_role_faculty_refuse(db, student_payload):
    created = create(db, student_payload())
    with pytest.raises(ForbiddenError):
        update_student(db, created.id, StudentUpdate.model_validate(student_payload()), Role.FACULTY)


# --- delete_student ---

def test_delete_student_supprime_aussi_les_notes(db, student_payload):
    created = create(db, student_payload())
    add_or_replace_grade(
        db, created.id, GradeCreate(subject="Math", grade="A", semester="Fall", year=2024), Role.FACULTY
    )

    delete_student(db, created.id, Role.ADMIN)

    assert db.get(Student, created.id) is None
    assert db.execute(select(func.count()).select_from(Grade)).scalar() == 0


def test_delete_student_introuvable(db):
    with pytest.raises(NotFoundError):
        delete_student(db, uuid.uuid4(), Role.ADMIN)


def test_delete_student_role_faculty_refuse(db, student_payload):
    created = create(db, student_payload())
    with pytest.raises(ForbiddenError):
        delete_student(db, created.id, Role.FACULTY)
    assert db.get(Student, created.id) is not None


# --- persist_student ---

def test_persist_student_recalcule_toujours_le_gpa(db, student_payload):
    """Un GPA incohérent posé à la main est écrasé par le recalcul à la sauvegarde."""
    created = create(db, student_payload())
    student = db.get(Student, created.id)
    student.gpa = 3.9

    persist_student(db, student)

    assert student.gpa == 0.0


def test_persist_student_conflit_sur_une_note_erreur_dediee():
    """Une violation de la clé naturelle des notes n'est pas signalée comme collision étudiant."""
    db = MagicMock()
    db.commit.side_effect = IntegrityError(
        "INSERT INTO grades", None,
        Exception("UNIQUE constraint failed: grades.student_id, grades.subject, grades.semester, grades.year"),
    )
    student = Student(grades=[])

    with pytest.raises(DuplicateGradeError) as exc:
        persist_student(db, student)
    assert exc.value.message == "A grade for this subject, semester and year already exists"
    db.rollback.assert_called_once()
