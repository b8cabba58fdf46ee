"""
Valeurs fermées du dossier étudiant.
Stockées en base sous forme de chaînes (colonnes String), validées par les schémas Pydantic.
"""

import enum


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"
    UNDISCLOSED = "Prefer not to say"


class Semester(str, enum.Enum):
    FALL = "Fall"
    SPRING = "Spring"
    SUMMER = "Summer"


class StudentStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"
    SUSPENDED = "Suspended"
    WITHDRAWN = "Withdrawn"


class LetterGrade(str, enum.Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C_PLUS = "C+"
    C = "C"
    C_MINUS = "C-"
    D_PLUS = "D+"
    D = "D"
    F = "F"
    P = "P"
    NP = "NP"
