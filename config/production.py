import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")
JWT_ACCESS_MINUTES = Config.JWT_ACCESS_MINUTES
JWT_REFRESH_DAYS = Config.JWT_REFRESH_DAYS

DB_CONFIG = Config.db_config()

PORT = Config.PORT
LOG_LEVEL = Config.LOG_LEVEL
MAX_UPLOAD_MB = Config.MAX_UPLOAD_MB

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
