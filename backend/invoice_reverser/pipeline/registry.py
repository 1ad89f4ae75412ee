"""
StageRegistry — maps a stage number to its Stage class.

To add or replace a stage:
    1. Implement it under pipeline/stages/
    2. Register it in STAGE_REGISTRY below
    3. The runner, HTTP triggers, Celery task and CLI pick it up
"""

from __future__ import annotations

from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.errors import StageNotFound
from invoice_reverser.pipeline.services import StageServices
from invoice_reverser.pipeline.stage import Stage
from invoice_reverser.pipeline.stages.build_correct_invoices import BuildCorrectInvoicesStage
from invoice_reverser.pipeline.stages.build_credit_notes import BuildCreditNotesStage
from invoice_reverser.pipeline.stages.fetch_items import FetchItemsStage
from invoice_reverser.pipeline.stages.submit import (
    SubmitCorrectInvoicesStage,
    SubmitCreditNotesStage,
)

logger = get_logger(__name__)


STAGE_REGISTRY: dict[int, type[Stage]] = {
    stage.number: stage
    for stage in (
        FetchItemsStage,
        BuildCreditNotesStage,
        SubmitCreditNotesStage,
        BuildCorrectInvoicesStage,
        SubmitCorrectInvoicesStage,
    )
}


class StageRegistry:
    """Resolves stage numbers to Stage instances bound to a set of services."""

    def __init__(self, registry: dict[int, type[Stage]] | None = None) -> None:
        self.registry = STAGE_REGISTRY if registry is None else registry

    def resolve(self, number: int, services: StageServices) -> Stage:
        """
        Return the stage registered under `number`.

        Raises:
            StageNotFound: If nothing is registered for that number.
        """
        stage_cls = self.registry.get(number)
        if stage_cls is None:
            raise StageNotFound(f"Step {number} not implemented.", stage=number)
        return stage_cls(services)

    def __contains__(self, number: int) -> bool:
        return number in self.registry

    def list_available(self) -> list[int]:
        """Registered stage numbers in run order."""
        return sorted(self.registry)

    def describe(self) -> list[dict]:
        return [
            {
                "stage": number,
                "name": self.registry[number].name,
                "description": self.registry[number].description,
            }
            for number in self.list_available()
        ]
