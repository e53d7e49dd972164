# Celery instance is defined in ops_project/celery.py
# Importing it here makes @shared_task bind to this app when Django starts
from .celery import celery_app

__all__ = ("celery_app",)

""" Run the maintenance worker with:
        celery -A ops_project worker -l info
    -A ops_project imports this package, which exposes celery_app. """
