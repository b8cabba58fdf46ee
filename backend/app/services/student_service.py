"""
Service métier pour les dossiers étudiants : création, lecture, mise à jour, suppression.

Invariants tenus ici :
- studentId et email (insensible à la casse) sont uniques sur tous les étudiants ;
- le GPA est recalculé depuis le relevé à chaque écriture, dans la même transaction.
"""

import uuid
import logging
from datetime import date
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import (
    DuplicateGradeError,
    DuplicateKeyError,
    ErrorCollector,
    NotFoundError,
    UnexpectedError,
)
from app.models.student import Student, utcnow
from app.schemas.student import (
    AcademicInfoOut,
    AddressOut,
    EmergencyContactOut,
    GradeOut,
    StudentCreate,
    StudentOut,
    StudentUpdate,
)
from app.security import Role, require_role
from app.services.gpa import compute_gpa

logger = logging.getLogger(__name__)


def get_student(db: Session, student_id: uuid.UUID, role: Role) -> StudentOut:
    """Retourne un étudiant par son identifiant interne."""
    require_role("get", role)
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError("student")
    return to_response(student)


def create_student(db: Session, data: StudentCreate, role: Role) -> StudentOut:
    """
    Crée un dossier étudiant.
    Lève DuplicateKeyError si le matricule ou l'email existe déjà.
    """
    require_role("create", role)
    check_unique_keys(db, data.student_id, data.email)

    student = Student()
    _apply_input(student, data)
    if student.enrollment_date is None:
        student.enrollment_date = date.today()
    student.status = data.status.value
    student.notes = data.notes
    db.add(student)

    persist_student(db, student)
    logger.info("Étudiant créé : %s (%s)", student.student_id, student.id)
    return to_response(student)


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate, role: Role) -> StudentOut:
    """
    Remplace les champs d'un étudiant (adresse, parcours, contact d'urgence complets).
    Le contrôle d'unicité exclut l'étudiant lui-même ; le relevé de notes n'est pas modifié.
    """
    require_role("update", role)
    student = load_for_update(db, student_id)
    check_unique_keys(db, data.student_id, data.email, exclude_id=student.id)

    previous_enrollment = student.enrollment_date
    _apply_input(student, data)
    if student.enrollment_date is None:
        student.enrollment_date = previous_enrollment
    if "status" in data.model_fields_set and data.status is not None:
        student.status = data.status.value
    if "notes" in data.model_fields_set:
        student.notes = data.notes

    persist_student(db, student)
    logger.info("Étudiant mis à jour : %s (%s)", student.student_id, student.id)
    return to_response(student)


def delete_student(db: Session, student_id: uuid.UUID, role: Role) -> None:
    """Supprime définitivement un étudiant et son relevé de notes (même transaction)."""
    require_role("delete", role)
    student = load_for_update(db, student_id)
    natural_key = student.student_id

    db.delete(student)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise UnexpectedError() from exc
    logger.info("Étudiant supprimé : %s (%s)", natural_key, student_id)


# --- Invariants et persistance (partagés avec le service des notes) ---

def load_for_update(db: Session, student_id: uuid.UUID) -> Student:
    """
    Charge un étudiant en verrouillant sa ligne (SELECT ... FOR UPDATE).
    Les écritures concurrentes sur le même étudiant sont ainsi sérialisées.
    """
    student = db.execute(
        select(Student).where(Student.id == student_id).with_for_update()
    ).scalar_one_or_none()
    if student is None:
        raise NotFoundError("student")
    return student


def check_unique_keys(
    db: Session,
    student_id: str,
    email: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """
    Vérifie l'unicité du matricule et de l'email (insensible à la casse).
    Une erreur par clé en collision. Les contraintes UNIQUE de la base couvrent
    la course entre deux écritures concurrentes (voir persist_student).
    """
    query = select(Student.id, Student.student_id, Student.email).where(
        or_(Student.student_id == student_id, func.lower(Student.email) == email.lower())
    )
    if exclude_id is not None:
        query = query.where(Student.id != exclude_id)

    collector = ErrorCollector()
    rows = db.execute(query).all()
    if any(row.student_id == student_id for row in rows):
        collector.add("studentId", "Student ID already exists")
    if any(row.email.lower() == email.lower() for row in rows):
        collector.add("email", "Email already exists")

    if collector.errors:
        logger.warning("Clé naturelle déjà utilisée : studentId=%s email=%s", student_id, email)
    collector.raise_if_any(DuplicateKeyError)


def persist_student(db: Session, student: Student) -> None:
    """
    Recalcule le GPA depuis le relevé courant puis valide la transaction.
    Étape obligatoire de toute écriture : le dossier et son GPA sont validés ensemble ou pas du tout.
    """
    student.gpa = compute_gpa(student.grades)
    student.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError as exc:
        # Course perdue contre une écriture concurrente sur la même clé naturelle
        db.rollback()
        logger.warning("Violation d'unicité à la validation : %s", exc.orig)
        if _is_grade_key_violation(exc):
            raise DuplicateGradeError() from exc
        raise DuplicateKeyError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise UnexpectedError() from exc
    db.refresh(student)


def _is_grade_key_violation(exc: IntegrityError) -> bool:
    """PostgreSQL nomme la contrainte, SQLite liste les colonnes de la table grades."""
    detail = str(exc.orig)
    return "uq_grades_natural_key" in detail or "grades.student_id" in detail


def to_response(student: Student) -> StudentOut:
    """Reconstruit les sous-documents imbriqués à partir des colonnes aplaties."""
    return StudentOut(
        id=student.id,
        student_id=student.student_id,
        first_name=student.first_name,
        last_name=student.last_name,
        email=student.email,
        phone=student.phone,
        date_of_birth=student.date_of_birth,
        gender=student.gender,
        address=AddressOut(
            street=student.street,
            city=student.city,
            state=student.state,
            zip_code=student.zip_code,
            country=student.country,
        ),
        academic_info=AcademicInfoOut(
            major=student.major,
            minor=student.minor,
            enrollment_date=student.enrollment_date,
            expected_graduation=student.expected_graduation,
            current_semester=student.current_semester,
            current_year=student.current_year,
            gpa=student.gpa,
            credits_completed=student.credits_completed,
            total_credits=student.total_credits,
        ),
        grades=[GradeOut.model_validate(g) for g in student.grades],
        emergency_contact=EmergencyContactOut(
            name=student.emergency_name,
            relationship=student.emergency_relationship,
            phone=student.emergency_phone,
            email=student.emergency_email,
        ),
        status=student.status,
        notes=student.notes,
        created_at=student.created_at,
        updated_at=student.updated_at,
    )


def _apply_input(student: Student, data: StudentCreate) -> None:
    """Copie les champs saisis sur le modèle (hors GPA, statut et notes)."""
    student.student_id = data.student_id
    student.first_name = data.first_name
    student.last_name = data.last_name
    student.email = data.email.lower()
    student.phone = data.phone
    student.date_of_birth = data.date_of_birth
    student.gender = data.gender.value

    address = data.address
    student.street = address.street
    student.city = address.city
    student.state = address.state
    student.zip_code = address.zip_code
    student.country = address.country

    academic = data.academic_info
    student.major = academic.major
    student.minor = academic.minor
    student.enrollment_date = academic.enrollment_date
    student.expected_graduation = academic.expected_graduation
    student.current_semester = academic.current_semester.value
    student.current_year = academic.current_year
    student.credits_completed = academic.credits_completed
    student.total_credits = academic.total_credits

    contact = data.emergency_contact
    student.emergency_name = contact.name
    student.emergency_relationship = contact.relationship
    student.emergency_phone = contact.phone
    student.emergency_email = contact.email.lower()
