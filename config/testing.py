import os

from .config import Config

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_ACCESS_MINUTES = 15
JWT_REFRESH_DAYS = 7

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance_test"),
}

PORT = Config.PORT
LOG_LEVEL = "WARNING"
MAX_UPLOAD_MB = 1

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
