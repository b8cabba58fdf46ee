"""
Schémas Pydantic pour les dossiers étudiants.

Les contraintes de champ sont déclaratives : Pydantic évalue toutes les règles
et remonte la liste complète des violations, sans s'arrêter à la première.
Le GPA n'est jamais accepté en entrée (champ dérivé des notes).
"""

import re
import uuid
import datetime as dt
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import EmailStr, Field, StringConstraints, field_validator

from app.models.enums import Gender, LetterGrade, Semester, StudentStatus
from app.schemas.common import CamelModel

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")
NOTES_MAX_LENGTH = 1000

Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


def _required(v: str, label: str) -> str:
    if not v:
        raise ValueError(f"{label} is required")
    return v


def _valid_phone(v: str) -> str:
    if not PHONE_PATTERN.match(v):
        raise ValueError("Please enter a valid phone number")
    return v


class AddressIn(CamelModel):
    street: Trimmed
    city: Trimmed
    state: Trimmed
    zip_code: Trimmed
    country: Trimmed = "USA"

    @field_validator("street", "city", "state", "zip_code", "country")
    @classmethod
    def not_empty(cls, v: str, info) -> str:
        return _required(v, to_label(info.field_name))


class AcademicInfoIn(CamelModel):
    major: Trimmed
    minor: Optional[Trimmed] = None
    enrollment_date: Optional[dt.date] = None  # date de création si absent
    expected_graduation: dt.date
    current_semester: Semester
    current_year: int
    credits_completed: int = 0
    total_credits: int = 120

    @field_validator("major")
    @classmethod
    def major_not_empty(cls, v: str) -> str:
        return _required(v, "Major")

    @field_validator("minor")
    @classmethod
    def blank_minor_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("current_year")
    @classmethod
    def current_year_range(cls, v: int) -> int:
        if not 1 <= v <= 10:
            raise ValueError("Current year must be between 1 and 10")
        return v

    @field_validator("credits_completed", "total_credits")
    @classmethod
    def credits_not_negative(cls, v: int, info) -> int:
        if v < 0:
            raise ValueError(f"{to_label(info.field_name)} must be at least 0")
        return v


class EmergencyContactIn(CamelModel):
    name: Trimmed
    relationship: Trimmed
    phone: Trimmed
    email: EmailStr

    @field_validator("name", "relationship")
    @classmethod
    def not_empty(cls, v: str, info) -> str:
        return _required(v, to_label(info.field_name))

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return _valid_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def email_strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()


class StudentCreate(CamelModel):
    """Corps de requête POST /students."""
    student_id: Trimmed
    first_name: Trimmed
    last_name: Trimmed
    email: EmailStr
    phone: Trimmed
    date_of_birth: dt.date
    gender: Gender
    address: AddressIn
    academic_info: AcademicInfoIn
    emergency_contact: EmergencyContactIn
    status: StudentStatus = StudentStatus.ACTIVE
    notes: Optional[Trimmed] = None

    @field_validator("student_id")
    @classmethod
    def student_id_length(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Student ID must be at least 3 characters long")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def name_length(cls, v: str, info) -> str:
        if len(v) < 2:
            raise ValueError(f"{to_label(info.field_name)} must be at least 2 characters long")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def email_strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: str) -> str:
        return _valid_phone(v)

    @field_validator("notes")
    @classmethod
    def notes_length(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > NOTES_MAX_LENGTH:
            raise ValueError(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")
        return v


class StudentUpdate(StudentCreate):
    """
    Corps de requête PUT /students/{id} : remplacement complet des sous-documents.
    `status` et `notes` absents du corps restent inchangés.
    """
    status: Optional[StudentStatus] = None


class GradeCreate(CamelModel):
    """Corps de requête POST /students/{id}/grades (upsert sur subject + semester + year)."""
    subject: Trimmed
    grade: LetterGrade
    semester: Semester
    year: int

    @field_validator("subject")
    @classmethod
    def subject_not_empty(cls, v: str) -> str:
        return _required(v, "Subject")

    @field_validator("year")
    @classmethod
    def year_range(cls, v: int) -> int:
        if not 2000 <= v <= 2030:
            raise ValueError("Year must be between 2000 and 2030")
        return v


# --- Réponses ---

class AddressOut(CamelModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class AcademicInfoOut(CamelModel):
    major: str
    minor: Optional[str]
    enrollment_date: dt.date
    expected_graduation: dt.date
    current_semester: str
    current_year: int
    gpa: float
    credits_completed: int
    total_credits: int


class EmergencyContactOut(CamelModel):
    name: str
    relationship: str
    phone: str
    email: str


class GradeOut(CamelModel):
    id: uuid.UUID
    subject: str
    grade: str
    semester: str
    year: int

    model_config = {"from_attributes": True}


class StudentOut(CamelModel):
    id: uuid.UUID
    student_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    date_of_birth: dt.date
    gender: str
    address: AddressOut
    academic_info: AcademicInfoOut
    grades: List[GradeOut] = []
    emergency_contact: EmergencyContactOut
    status: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class StudentData(CamelModel):
    student: StudentOut


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class StudentListData(CamelModel):
    students: List[StudentOut]
    pagination: Pagination


class MajorStat(CamelModel):
    major: str
    count: int


class StatsOverview(CamelModel):
    total_students: int
    active_students: int
    graduated_students: int
    avg_gpa: float = Field(alias="avgGPA")
    major_stats: List[MajorStat]


def to_label(field_name: str) -> str:
    """first_name → 'First name' (libellé des messages d'erreur)."""
    return field_name.replace("_", " ").capitalize()
