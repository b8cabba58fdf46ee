"""
Erreurs métier du dossier étudiant.

Levées par les services, jamais interceptées par les routers :
les gestionnaires enregistrés dans app.main les traduisent en réponse HTTP.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class FieldError:
    """Violation d'une règle sur un champ (chemin public en camelCase, ex. academicInfo.major)."""
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class RecordError(Exception):
    """Base commune : message lisible + code HTTP indicatif."""
    status_code = 500
    default_message = "Erreur inattendue."

    def __init__(self, message: Optional[str] = None, errors: Iterable[FieldError] = ()):
        self.message = message or self.default_message
        self.errors: List[FieldError] = list(errors)
        super().__init__(self.message)


class ValidationError(RecordError):
    """Un ou plusieurs champs invalides ; la liste complète est toujours fournie."""
    status_code = 400
    default_message = "Validation failed"


class DuplicateKeyError(RecordError):
    """Collision sur une clé naturelle (studentId ou email)."""
    status_code = 400
    default_message = "Student with this ID or email already exists"


class DuplicateGradeError(DuplicateKeyError):
    """Note déjà enregistrée par une écriture concurrente pour (subject, semester, year)."""
    default_message = "A grade for this subject, semester and year already exists"


class NotFoundError(RecordError):
    """Cible introuvable ; `target` distingue l'étudiant de la note."""
    status_code = 404

    def __init__(self, target: str = "student"):
        self.target = target
        super().__init__(f"{target.capitalize()} not found")


class ForbiddenError(RecordError):
    """Rôle insuffisant pour l'opération demandée."""
    status_code = 403

    def __init__(self, required_role: str):
        self.required_role = required_role
        super().__init__(f"Access denied: {required_role} role required")


class UnexpectedError(RecordError):
    """Échec de stockage ou de transport. Le détail est journalisé, jamais renvoyé."""
    status_code = 500
    default_message = "An internal error occurred"


@dataclass
class ErrorCollector:
    """Accumule les violations pour lever une seule ValidationError."""
    errors: List[FieldError] = field(default_factory=list)

    def add(self, field_name: str, message: str) -> None:
        self.errors.append(FieldError(field_name, message))

    def raise_if_any(self, error_cls=ValidationError) -> None:
        if self.errors:
            raise error_cls(errors=self.errors)
