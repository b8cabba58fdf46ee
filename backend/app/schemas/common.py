"""
Schémas Pydantic partagés : base camelCase et enveloppes de réponse.

L'API publique expose les clés en camelCase (studentId, academicInfo...) ;
côté Python les champs restent en snake_case.
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.exceptions import FieldError

T = TypeVar("T")

# Segments techniques ajoutés par FastAPI devant le chemin du champ
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """Enveloppe de succès : {success: true, message?, data}."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class FieldErrorOut(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Enveloppe d'échec : {success: false, message, errors?}."""
    success: bool = False
    message: str
    errors: Optional[List[FieldErrorOut]] = None


def field_errors_from_pydantic(errors) -> List[FieldError]:
    """
    Convertit les erreurs Pydantic/FastAPI en liste (field, message).
    Une entrée par règle violée, chemin joint par des points.
    """
    result = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        path = ".".join(str(part) for part in loc) or "body"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        result.append(FieldError(path, message))
    return result
