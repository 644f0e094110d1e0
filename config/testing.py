import os

from config.config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = {**Config.db_config(), "database": os.getenv("DB_NAME", "kintai_test")}
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
