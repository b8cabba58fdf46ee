"""
Contrôle d'accès par rôle.

L'authentification est faite en amont (passerelle) : le service reçoit un rôle
déjà résolu et vérifie seulement qu'il suffit pour l'opération demandée.
Chaque fonction du service prend ce rôle en paramètre explicite.
"""

import enum
import logging
from typing import Optional

from fastapi import Depends, Header

from app.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    NONE = "none"
    FACULTY = "faculty"
    ADMIN = "admin"


# Hiérarchie : admin inclut les droits faculty
_RANK = {Role.NONE: 0, Role.FACULTY: 1, Role.ADMIN: 2}

# Rôle minimal exigé par opération du service
OPERATION_ROLES = {
    "get": Role.FACULTY,
    "list": Role.FACULTY,
    "overview": Role.FACULTY,
    "add_or_replace_grade": Role.FACULTY,
    "delete_grade": Role.FACULTY,
    "create": Role.ADMIN,
    "update": Role.ADMIN,
    "delete": Role.ADMIN,
}


def parse_role(value: Optional[str]) -> Role:
    """Valeur absente ou inconnue → Role.NONE."""
    if not value:
        return Role.NONE
    try:
        return Role(value.strip().lower())
    except ValueError:
        return Role.NONE


def require_role(operation: str, role: Role) -> None:
    """Lève ForbiddenError si `role` est en dessous du rôle exigé par `operation`."""
    required = OPERATION_ROLES[operation]
    if _RANK[role] < _RANK[required]:
        logger.warning("Accès refusé : %s exige %s, rôle fourni %s", operation, required.value, role.value)
        raise ForbiddenError(required.value)


def get_caller_role(x_user_role: Optional[str] = Header(default=None)) -> Role:
    """Dépendance FastAPI — lit le rôle transmis par la passerelle (en-tête X-User-Role)."""
    return parse_role(x_user_role)


def requires(operation: str):
    """
    Dépendance FastAPI : vérifie le rôle avant la lecture du corps de requête,
    puis le transmet au service (qui le revérifie).
    """
    def checker(role: Role = Depends(get_caller_role)) -> Role:
        require_role(operation, role)
        return role
    return checker
