import os
from datetime import datetime

from ..core import constants


def _env_time(name: str, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return datetime.strptime(raw.strip(), "%H:%M").time()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "erp-attendance-dev-secret"

    # DB
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "erp_attendance")

    # Dev helpers
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Shift & payroll policy
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", constants.DEFAULT_BUSINESS_TIMEZONE)
    SHIFT_START = _env_time("SHIFT_START", constants.DEFAULT_SHIFT_START)
    SHIFT_END = _env_time("SHIFT_END", constants.DEFAULT_SHIFT_END)
    FULL_DAY_HOURS = int(os.environ.get("FULL_DAY_HOURS", str(constants.DEFAULT_FULL_DAY_HOURS)))
    PAYROLL_WORKING_DAYS = int(os.environ.get("PAYROLL_WORKING_DAYS", str(constants.DEFAULT_PAYROLL_WORKING_DAYS)))

    # Daily batch
    DAILY_BATCH_TIME = _env_time("DAILY_BATCH_TIME", constants.DEFAULT_DAILY_BATCH_TIME)
    BATCH_MAX_SECONDS = int(os.environ.get("BATCH_MAX_SECONDS", str(constants.DEFAULT_BATCH_MAX_SECONDS)))


def db_config_from(config) -> dict:
    """mysql-connector style dict used by the container and bootstrap."""
    return {
        "host": config.DB_HOST,
        "port": config.DB_PORT,
        "user": config.DB_USER,
        "password": config.DB_PASSWORD,
        "database": config.DB_NAME,
    }
