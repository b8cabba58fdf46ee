"""
Calcul du GPA : moyenne non pondérée des points des notes du relevé.
"""

from typing import Iterable

# Table de conversion lettre → points (échelle 0–4)
GRADE_POINTS = {
    "A+": 4.0, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0, "P": 2.0, "NP": 0.0,
}


def compute_gpa(grades: Iterable) -> float:
    """Moyenne des points sur les notes fournies ; 0.0 si le relevé est vide."""
    points = [GRADE_POINTS[g.grade] for g in grades]
    if not points:
        return 0.0
    return sum(points) / len(points)
