"""
Recherche paginée des étudiants (GET /students).

Filtres combinés en ET ; la recherche libre est un OU sur prénom, nom,
matricule et email. Le tri est toujours complété par l'identifiant
pour que deux appels identiques renvoient le même ordre et que les pages
ne se recouvrent pas.
"""

import math
import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.exceptions import ErrorCollector
from app.models.enums import StudentStatus
from app.models.student import Student
from app.schemas.student import Pagination, StudentListData
from app.security import Role, require_role
from app.services.student_service import to_response

logger = logging.getLogger(__name__)

# Nom public du champ → colonne triable
SORT_FIELDS = {
    "createdAt": Student.created_at,
    "updatedAt": Student.updated_at,
    "studentId": Student.student_id,
    "firstName": Student.first_name,
    "lastName": Student.last_name,
    "email": Student.email,
    "status": Student.status,
    "dateOfBirth": Student.date_of_birth,
    "academicInfo.major": Student.major,
    "academicInfo.gpa": Student.gpa,
    "academicInfo.currentYear": Student.current_year,
    "academicInfo.enrollmentDate": Student.enrollment_date,
}
SORT_ORDERS = {"asc", "desc"}


def list_students(
    db: Session,
    role: Role,
    search: Optional[str] = None,
    major: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
    page: int = 1,
    limit: Optional[int] = None,
) -> StudentListData:
    """Retourne la page demandée et les métadonnées de pagination."""
    require_role("list", role)
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    _validate_params(status, sort_by, sort_order, page, limit)

    conditions = []
    if search:
        conditions.append(or_(
            _contains(Student.first_name, search),
            _contains(Student.last_name, search),
            _contains(Student.student_id, search),
            _contains(Student.email, search),
        ))
    if major:
        conditions.append(_contains(Student.major, major))
    if status:
        conditions.append(Student.status == status)

    total = db.execute(
        select(func.count()).select_from(Student).where(*conditions)
    ).scalar() or 0

    column = SORT_FIELDS[sort_by]
    primary = column.asc() if sort_order == "asc" else column.desc()
    students = db.execute(
        select(Student)
        .where(*conditions)
        .options(selectinload(Student.grades))
        .order_by(primary, Student.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()

    total_pages = math.ceil(total / limit)
    logger.debug("Recherche étudiants : %d résultats, page %d/%d", total, page, total_pages)

    return StudentListData(
        students=[to_response(s) for s in students],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        ),
    )


def _validate_params(status, sort_by, sort_order, page, limit) -> None:
    """Contrôle des paramètres ; toutes les violations sont remontées ensemble."""
    collector = ErrorCollector()
    if status and status not in {s.value for s in StudentStatus}:
        collector.add("status", "Please select a valid status")
    if sort_by not in SORT_FIELDS:
        collector.add("sortBy", f"Cannot sort by '{sort_by}'")
    if sort_order not in SORT_ORDERS:
        collector.add("sortOrder", "Sort order must be 'asc' or 'desc'")
    if page < 1:
        collector.add("page", "Page must be at least 1")
    if limit < 1:
        collector.add("limit", "Limit must be greater than 0")
    collector.raise_if_any()


def _contains(column, term: str):
    """Sous-chaîne insensible à la casse ; % et _ saisis sont pris littéralement."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")
