"""
Celery configuration for the stage runner.

Loaded by `celery_app.config_from_object("invoice_reverser.celeryconfig")`
in invoice_reverser/tasks/__init__.py.  Broker/result-backend URLs come
from the same settings as the API.
"""

from invoice_reverser.core.config import settings

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = settings.CELERY_BROKER_URL
result_backend = settings.CELERY_RESULT_BACKEND

# ═══════════════════════════════════════════════════════════
#  Serialization — JSON only
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# Ack on receipt: a stage killed mid-run is not redelivered to another
# worker. The operator re-runs it and checkpoints skip finished records.
task_acks_late = False

# Devices cannot serve concurrent PIN sessions: one task at a time.
worker_concurrency = 1
worker_prefetch_multiplier = 1

# A stage over a large sheet makes one device round trip per record
task_soft_time_limit = 3600
task_time_limit = 3660

# Stages are never auto-retried; re-run instead.
task_max_retries = 0

result_expires = 86400

worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
# Run the single stage worker with:
#   celery -A invoice_reverser.tasks worker -Q stages --concurrency=1

task_routes = {
    "invoice_reverser.tasks.stage_tasks.*": {"queue": "stages"},
}

task_default_queue = "stages"
