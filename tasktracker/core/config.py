from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://tasktracker:tasktracker@db:5432/tasktracker")
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))  # 15 minutes
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "43200"))  # 30 jours
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

    # Règles métier
    MAX_ASSIGNEES = int(getenv("MAX_ASSIGNEES", "5"))
    DEFAULT_TASK_PRIORITY = int(getenv("DEFAULT_TASK_PRIORITY", "5"))

settings = Settings()
