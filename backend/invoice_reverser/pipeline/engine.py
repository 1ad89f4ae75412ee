"""
StageRunner — invokes one stage (or several in order) and reports.

Responsibilities:
    - Resolve the stage via StageRegistry
    - Run it with timing and structured logging
    - Treat an empty record spreadsheet as "no work"
    - Let SourceUnavailable and unexpected errors reach the caller
      (the HTTP trigger, Celery task or CLI decides how to surface them)

Records inside a stage run strictly one at a time; the runner never fans
out.  Only one runner per stage may be active at once.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from invoice_reverser.core.constants import StageStatus
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.errors import SourceEmpty
from invoice_reverser.pipeline.registry import StageRegistry
from invoice_reverser.pipeline.services import StageServices


class StageRunner:
    """
    Runs stages against a shared set of services.

    Usage::

        runner = StageRunner(StageServices.from_settings(settings))
        result = await runner.run(1)
        results = await runner.run_sequence()   # 1 → 5, stops on error
    """

    def __init__(self, services: StageServices, registry: StageRegistry | None = None) -> None:
        self.services = services
        self.registry = registry or StageRegistry()
        self.logger = structlog.get_logger("pipeline.runner")

    async def run(self, number: int) -> StageResult:
        """Run a single stage to completion."""
        stage = self.registry.resolve(number, self.services)
        log = self.logger.bind(stage=number, stage_name=stage.name)

        started_at = datetime.now(timezone.utc)
        result = StageResult(
            stage=number,
            stage_name=stage.name,
            status=StageStatus.RUNNING,
            started_at=started_at,
        )
        log.info(f"Step {number}: {stage.description}")

        try:
            await stage.execute(result)
            result.status = StageStatus.COMPLETED
        except SourceEmpty as exc:
            log.error("Record source is empty, nothing to do", error=str(exc))
            result.status = StageStatus.COMPLETED
        except Exception as exc:
            result.status = StageStatus.FAILED
            result.error = str(exc)
            log.exception("Stage failed", error=str(exc))
            raise
        finally:
            result.completed_at = datetime.now(timezone.utc)
            result.duration_ms = int((result.completed_at - started_at).total_seconds() * 1000)

        log.info(
            f"Step {number} complete: {stage.completion}",
            counts=result.counts,
            duration_ms=result.duration_ms,
        )
        return result

    async def run_sequence(self, numbers: list[int] | None = None) -> list[StageResult]:
        """
        Run several stages in order, stopping at the first that raises.

        Each stage still filters on its own checkpoints, so re-running a
        sequence after a failure resumes where it left off.
        """
        results = []
        for number in numbers or self.registry.list_available():
            results.append(await self.run(number))
        return results
