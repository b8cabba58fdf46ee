"""
Router pour les dossiers étudiants.
Lecture et notes : rôle faculty ou admin. Création, modification, suppression : admin.

Les erreurs métier (app.exceptions) ne sont pas interceptées ici :
les gestionnaires de app.main les traduisent en codes HTTP.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFoundError
from app.schemas.common import ApiResponse
from app.schemas.student import (
    GradeCreate,
    StatsOverview,
    StudentCreate,
    StudentData,
    StudentListData,
    StudentUpdate,
)
from app.security import Role, requires
from app.services import grade_service, stats_service, student_query, student_service

router = APIRouter(prefix="/api/v1/students", tags=["Étudiants"])


def _as_uuid(value: str, target: str = "student") -> uuid.UUID:
    """Une référence mal formée ne désigne aucun enregistrement : 404 plutôt que 400."""
    try:
        return uuid.UUID(value)
    except ValueError:
        raise NotFoundError(target) from None


@router.get("", response_model=ApiResponse[StudentListData], summary="Rechercher des étudiants")
def list_students(
    search: Optional[str] = None,
    major: Optional[str] = None,
    status: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, gt=0),
    db: Session = Depends(get_db),
    role: Role = Depends(requires("list")),
):
    """Liste filtrée, triée et paginée (tri par défaut : createdAt décroissant)."""
    data = student_query.list_students(
        db, role,
        search=search, major=major, status=status,
        sort_by=sort_by, sort_order=sort_order,
        page=page, limit=limit,
    )
    return ApiResponse(data=data)


# Déclarée avant /{student_id} pour ne pas être capturée par le paramètre de chemin
@router.get("/stats/overview", response_model=ApiResponse[StatsOverview], summary="Statistiques globales")
def stats_overview(db: Session = Depends(get_db), role: Role = Depends(requires("overview"))):
    return ApiResponse(data=stats_service.get_overview(db, role))


@router.get("/{student_id}", response_model=ApiResponse[StudentData], summary="Détail d'un étudiant")
def get_student(student_id: str, db: Session = Depends(get_db), role: Role = Depends(requires("get"))):
    student = student_service.get_student(db, _as_uuid(student_id), role)
    return ApiResponse(data=StudentData(student=student))


@router.post("", response_model=ApiResponse[StudentData], status_code=201, summary="Créer un étudiant")
def create_student(data: StudentCreate, db: Session = Depends(get_db), role: Role = Depends(requires("create"))):
    """Crée un dossier étudiant. Matricule et email doivent être uniques."""
    student = student_service.create_student(db, data, role)
    return ApiResponse(message="Student created successfully", data=StudentData(student=student))


@router.put("/{student_id}", response_model=ApiResponse[StudentData], summary="Modifier un étudiant")
def update_student(
    student_id: str,
    data: StudentUpdate,
    db: Session = Depends(get_db),
    role: Role = Depends(requires("update")),
):
    """Remplace les informations d'un étudiant. Le relevé de notes est conservé."""
    student = student_service.update_student(db, _as_uuid(student_id), data, role)
    return ApiResponse(message="Student updated successfully", data=StudentData(student=student))


@router.delete("/{student_id}", response_model=ApiResponse[None], summary="Supprimer un étudiant")
def delete_student(student_id: str, db: Session = Depends(get_db), role: Role = Depends(requires("delete"))):
    """Supprime définitivement un étudiant et toutes ses notes."""
    student_service.delete_student(db, _as_uuid(student_id), role)
    return ApiResponse(message="Student deleted successfully")


# --- Relevé de notes ---

@router.post("/{student_id}/grades", response_model=ApiResponse[StudentData], summary="Ajouter ou remplacer une note")
def add_grade(
    student_id: str,
    data: GradeCreate,
    db: Session = Depends(get_db),
    role: Role = Depends(requires("add_or_replace_grade")),
):
    """Une note existante pour la même matière, le même semestre et la même année est remplacée."""
    student = grade_service.add_or_replace_grade(db, _as_uuid(student_id), data, role)
    return ApiResponse(message="Grade added/updated successfully", data=StudentData(student=student))


@router.delete(
    "/{student_id}/grades/{grade_id}",
    response_model=ApiResponse[StudentData],
    summary="Supprimer une note",
)
def delete_grade(
    student_id: str,
    grade_id: str,
    db: Session = Depends(get_db),
    role: Role = Depends(requires("delete_grade")),
):
    student = grade_service.delete_grade(db, _as_uuid(student_id), _as_uuid(grade_id, "grade"), role)
    return ApiResponse(message="Grade deleted successfully", data=StudentData(student=student))
