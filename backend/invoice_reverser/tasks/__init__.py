"""
Celery application factory.
"""

from celery import Celery

celery_app = Celery("invoice_reverser")
celery_app.config_from_object("invoice_reverser.celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "invoice_reverser.tasks.stage_tasks",
], related_name=None)
