import os

from ..core import constants
from .config import Config, db_config_from

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from(Config)

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False
AUTO_SEED_DB = False

# Tests pin the policy to the documented defaults regardless of the environment.
BUSINESS_TIMEZONE = constants.DEFAULT_BUSINESS_TIMEZONE
SHIFT_START = constants.DEFAULT_SHIFT_START
SHIFT_END = constants.DEFAULT_SHIFT_END
FULL_DAY_HOURS = constants.DEFAULT_FULL_DAY_HOURS
PAYROLL_WORKING_DAYS = constants.DEFAULT_PAYROLL_WORKING_DAYS
DAILY_BATCH_TIME = constants.DEFAULT_DAILY_BATCH_TIME
BATCH_MAX_SECONDS = constants.DEFAULT_BATCH_MAX_SECONDS
