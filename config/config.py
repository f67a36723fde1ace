import os


class Config:
    """Values shared by every environment; each settings module overrides what it needs."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "class-attendance-dev-secret"

    # Tokens
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ACCESS_MINUTES = int(os.environ.get("JWT_ACCESS_MINUTES", "15"))
    JWT_REFRESH_DAYS = int(os.environ.get("JWT_REFRESH_DAYS", "7"))

    # DB
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "class_attendance")

    PORT = int(os.environ.get("PORT", "5000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "5"))

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
