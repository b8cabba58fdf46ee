"""
Modèles SQLAlchemy pour les étudiants et leur relevé de notes.
Les sous-documents (adresse, parcours, contact d'urgence) sont aplatis en colonnes.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from app.database import Base


def utcnow() -> datetime:
    """Horodatage UTC naïf, à la microseconde (tri stable sur created_at)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(String(50), unique=True, nullable=False)  # matricule
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)  # toujours en minuscules
    phone = Column(String(20), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(20), nullable=False)

    # Adresse
    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False, default="USA")

    # Parcours académique
    major = Column(String(100), nullable=False, index=True)
    minor = Column(String(100), nullable=True)
    enrollment_date = Column(Date, nullable=False)
    expected_graduation = Column(Date, nullable=False)
    current_semester = Column(String(10), nullable=False)  # Fall, Spring, Summer
    current_year = Column(Integer, nullable=False)
    gpa = Column(Float, nullable=False, default=0.0)  # dérivé des notes, jamais saisi
    credits_completed = Column(Integer, nullable=False, default=0)
    total_credits = Column(Integer, nullable=False, default=120)

    # Contact d'urgence
    emergency_name = Column(String(200), nullable=False)
    emergency_relationship = Column(String(100), nullable=False)
    emergency_phone = Column(String(20), nullable=False)
    emergency_email = Column(String(255), nullable=False)

    status = Column(String(20), nullable=False, default="Active", index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    grades = relationship(
        "Grade",
        order_by="Grade.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        back_populates="student",
    )


class Grade(Base):
    """Ligne du relevé : clé naturelle (subject, semester, year) unique par étudiant."""
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("student_id", "subject", "semester", "year", name="uq_grades_natural_key"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(200), nullable=False)
    grade = Column(String(2), nullable=False)
    semester = Column(String(10), nullable=False)
    year = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)

    student = relationship("Student", back_populates="grades")
