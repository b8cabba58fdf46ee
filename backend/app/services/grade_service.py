"""
Service métier pour le relevé de notes d'un étudiant.

Une note est identifiée fonctionnellement par (subject, semester, year) :
ressaisir la même matière pour le même semestre remplace la note existante
à sa place dans le relevé au lieu d'ajouter une ligne en double.
"""

import uuid
import logging

from sqlalchemy.orm import Session

from app.exceptions import DuplicateGradeError, NotFoundError
from app.models.student import Grade
from app.schemas.student import GradeCreate, StudentOut
from app.security import Role, require_role
from app.services.student_service import load_for_update, persist_student, to_response

logger = logging.getLogger(__name__)


def add_or_replace_grade(db: Session, student_id: uuid.UUID, data: GradeCreate, role: Role) -> StudentOut:
    """
    Ajoute une note ou remplace celle de même clé naturelle.
    Le GPA est recalculé et l'étudiant sauvegardé dans la même transaction.
    Si une écriture concurrente a inséré la même clé entre-temps, l'opération est
    rejouée une fois sur le relevé relu : la dernière écriture l'emporte.
    """
    require_role("add_or_replace_grade", role)
    try:
        return _upsert_grade(db, student_id, data)
    except DuplicateGradeError:
        logger.warning(
            "Note %s %s %s insérée en concurrence pour l'étudiant %s, nouvelle tentative",
            data.subject, data.semester.value, data.year, student_id,
        )
        return _upsert_grade(db, student_id, data)


def _upsert_grade(db: Session, student_id: uuid.UUID, data: GradeCreate) -> StudentOut:
    student = load_for_update(db, student_id)

    key = (data.subject, data.semester.value, data.year)
    ledger = {(g.subject, g.semester, g.year): g for g in student.grades}

    existing = ledger.get(key)
    if existing is not None:
        existing.grade = data.grade.value
        action = "remplacée"
    else:
        student.grades.append(Grade(
            subject=data.subject,
            grade=data.grade.value,
            semester=data.semester.value,
            year=data.year,
        ))
        action = "ajoutée"

    persist_student(db, student)
    logger.info(
        "Note %s : %s %s %s = %s pour l'étudiant %s (GPA %.2f)",
        action, data.subject, data.semester.value, data.year, data.grade.value,
        student.student_id, student.gpa,
    )
    return to_response(student)


def delete_grade(db: Session, student_id: uuid.UUID, grade_id: uuid.UUID, role: Role) -> StudentOut:
    """
    Retire une note du relevé par son identifiant.
    Lève NotFoundError("grade") si l'étudiant existe mais pas la note.
    """
    require_role("delete_grade", role)
    student = load_for_update(db, student_id)

    grade = next((g for g in student.grades if g.id == grade_id), None)
    if grade is None:
        raise NotFoundError("grade")

    student.grades.remove(grade)
    persist_student(db, student)
    logger.info("Note supprimée : %s pour l'étudiant %s (GPA %.2f)", grade_id, student.student_id, student.gpa)
    return to_response(student)
