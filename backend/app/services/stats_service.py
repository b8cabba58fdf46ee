"""
Statistiques globales des dossiers étudiants (GET /students/stats/overview).
"""

import logging

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from app.models.enums import StudentStatus
from app.models.student import Student
from app.schemas.student import MajorStat, StatsOverview
from app.security import Role, require_role

logger = logging.getLogger(__name__)

TOP_MAJORS = 5


def get_overview(db: Session, role: Role) -> StatsOverview:
    """
    Effectifs par statut, GPA moyen et cinq filières les plus suivies.
    Le GPA moyen ignore les étudiants sans note (GPA = 0) ; 0 si aucun n'a de note.
    """
    require_role("overview", role)

    total = db.execute(select(func.count()).select_from(Student)).scalar() or 0
    active = _count_by_status(db, StudentStatus.ACTIVE)
    graduated = _count_by_status(db, StudentStatus.GRADUATED)

    avg_gpa = db.execute(
        select(func.avg(Student.gpa)).where(Student.gpa > 0)
    ).scalar()

    count_col = func.count(Student.id).label("student_count")
    majors = db.execute(
        select(Student.major, count_col)
        .group_by(Student.major)
        .order_by(desc("student_count"), Student.major.asc())
        .limit(TOP_MAJORS)
    ).all()

    return StatsOverview(
        total_students=total,
        active_students=active,
        graduated_students=graduated,
        avg_gpa=float(avg_gpa) if avg_gpa is not None else 0.0,
        major_stats=[MajorStat(major=major, count=count) for major, count in majors],
    )


def _count_by_status(db: Session, status: StudentStatus) -> int:
    return db.execute(
        select(func.count()).select_from(Student).where(Student.status == status.value)
    ).scalar() or 0
