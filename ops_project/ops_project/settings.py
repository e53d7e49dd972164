import os
import sys
from decimal import Decimal
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv

from .logging_config import get_logging_config

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "changeme")
DEBUG = os.getenv("DJANGO_DEBUG", "False") == "True"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",")

# True under `pytest` and `manage.py test`
TESTING = (
    "PYTEST_CURRENT_TEST" in os.environ
    or "pytest" in sys.modules
    or "test" in sys.argv
)

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "ledger_core.apps.LedgerCoreConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "ledger_core.middleware.LedgerErrorMiddleware",
]

ROOT_URLCONF = "ops_project.urls"

DATABASES = {
    "default": dj_database_url.config(
        env="DATABASE_URL",
        default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=int(os.getenv("DB_CONN_MAX_AGE", "0")),
    )
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")

LOGGING = get_logging_config(DEBUG)

# =============================================================================
# Ledger configuration
# =============================================================================

# Single flat tax rate applied to (subtotal - discount) on sales
LEDGER_TAX_RATE = Decimal(os.getenv("LEDGER_TAX_RATE", "0.075"))

# Usage ratio at which the credit guard starts reporting near_limit
LEDGER_CREDIT_WARNING_RATIO = Decimal(os.getenv("LEDGER_CREDIT_WARNING_RATIO", "0.80"))

# Used when an account has no credit period of its own
LEDGER_DEFAULT_CREDIT_PERIOD_DAYS = int(os.getenv("LEDGER_DEFAULT_CREDIT_PERIOD_DAYS", "15"))

# =============================================================================
# Celery
# =============================================================================

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "cache+memory://")
CELERY_TASK_ALWAYS_EAGER = TESTING or os.getenv("CELERY_TASK_ALWAYS_EAGER", "False") == "True"
CELERY_TASK_EAGER_PROPAGATES = True
