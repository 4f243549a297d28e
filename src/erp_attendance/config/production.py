import os

from .config import Config, db_config_from

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from(Config)

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

BUSINESS_TIMEZONE = Config.BUSINESS_TIMEZONE
SHIFT_START = Config.SHIFT_START
SHIFT_END = Config.SHIFT_END
FULL_DAY_HOURS = Config.FULL_DAY_HOURS
PAYROLL_WORKING_DAYS = Config.PAYROLL_WORKING_DAYS
DAILY_BATCH_TIME = Config.DAILY_BATCH_TIME
BATCH_MAX_SECONDS = Config.BATCH_MAX_SECONDS
