# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant l'appel à create_all au démarrage.

from app.models.student import Grade, Student  # noqa: F401
