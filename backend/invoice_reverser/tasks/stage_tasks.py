"""
Celery tasks — run stages in the background.

Same contract as the HTTP triggers, but queued: the `stages` queue is
served by a single worker process so no two stage runs overlap.
"""

import asyncio

import structlog

from invoice_reverser.core.config import settings
from invoice_reverser.pipeline.engine import StageRunner
from invoice_reverser.pipeline.services import StageServices
from invoice_reverser.tasks import celery_app

logger = structlog.get_logger("tasks.stages")


def _runner() -> StageRunner:
    return StageRunner(StageServices.from_settings(settings))


@celery_app.task(bind=True, name="invoice_reverser.tasks.stage_tasks.run_stage")
def run_stage(self, stage_number: int) -> dict:
    """
    Run one stage to completion and return its summary.

    Failures propagate so Celery records the task as FAILED; nothing is
    retried here, a re-run simply skips checkpointed records.
    """
    task_log = logger.bind(task_id=self.request.id, stage=stage_number)
    task_log.info("Stage task started")

    result = asyncio.run(_runner().run(stage_number))

    task_log.info("Stage task finished", status=result.status, counts=result.counts)
    return result.to_dict()


@celery_app.task(bind=True, name="invoice_reverser.tasks.stage_tasks.run_all_stages")
def run_all_stages(self, stage_numbers: list[int] | None = None) -> list[dict]:
    """Run stages in order (default 1..5), stopping at the first failure."""
    task_log = logger.bind(task_id=self.request.id, stages=stage_numbers)
    task_log.info("Sequence task started")

    results = asyncio.run(_runner().run_sequence(stage_numbers))

    task_log.info("Sequence task finished", stages_run=len(results))
    return [r.to_dict() for r in results]
