import os

from .config import Config

SECRET_KEY = Config.SECRET_KEY
JWT_SECRET = Config.JWT_SECRET
JWT_ACCESS_MINUTES = Config.JWT_ACCESS_MINUTES
JWT_REFRESH_DAYS = Config.JWT_REFRESH_DAYS

DB_CONFIG = Config.db_config()

PORT = Config.PORT
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
MAX_UPLOAD_MB = Config.MAX_UPLOAD_MB

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo accounts and holidays on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
