"""
Configuration centrale de l'application via variables d'environnement.
Charger depuis un fichier .env en développement.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Base de données (PostgreSQL en production, SQLite en local)
    DATABASE_URL: str = "sqlite:///./student_records.db"

    # Délai maximal d'une requête ou d'une attente de verrou, en millisecondes
    DB_STATEMENT_TIMEOUT_MS: int = 5000

    # Pagination de la liste des étudiants
    DEFAULT_PAGE_SIZE: int = 10

    # Journalisation
    LOG_LEVEL: str = "INFO"

    # CORS — tous les ports localhost en développement
    CORS_ORIGIN_REGEX: str = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"

    # Environnement
    ENV: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
