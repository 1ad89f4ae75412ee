"""
SubmitStage — shared shape of stages 3 and 5.

Reads every success artifact of `source_stage`, resolves each record's
device through the spreadsheet's device column, and submits the document.
A response carrying ``mtn`` is the only success.
"""

from __future__ import annotations

from invoice_reverser.core.constants import RecordOutcome, StageNumber
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.errors import MalformedArtifact
from invoice_reverser.pipeline.stage import DeviceStage


class SubmitStage(DeviceStage):
    """Submit prepared documents to their devices."""

    source_stage: int = 0

    @property
    def timeout(self) -> float:
        return self.session.submit_timeout

    async def execute(self, result: StageResult) -> None:
        keys = self.artifacts.success_keys(self.source_stage)
        if not keys:
            self.log.info("No documents to submit", source_stage=self.source_stage)
            return

        device_map = self.services.records.device_map()

        for key in keys:
            if self._skip_if_checkpointed(result, key):
                continue

            try:
                document = self.artifacts.read_success(self.source_stage, key)
            except MalformedArtifact as exc:
                self.log.error("Skipping unparseable request", relevant_number=key, error=str(exc))
                result.add(key, RecordOutcome.MALFORMED, str(exc))
                continue

            await self._round_trip(
                result,
                key,
                device_map.get(key),
                lambda address, document=document: self.session.submit_invoice(
                    address, document, timeout=self.timeout
                ),
            )


class SubmitCreditNotesStage(SubmitStage):
    """Stage 3 — submit credit notes."""

    number = StageNumber.SUBMIT_CREDIT_NOTES
    name = "submit_credit_notes"
    description = "Process credit notes"
    completion = "Credit notes processed."
    source_stage = StageNumber.BUILD_CREDIT_NOTES

    @property
    def timeout(self) -> float:
        return self.services.settings.CREDIT_NOTE_SUBMIT_TIMEOUT


class SubmitCorrectInvoicesStage(SubmitStage):
    """Stage 5 — submit correct invoices."""

    number = StageNumber.SUBMIT_CORRECT_INVOICES
    name = "submit_correct_invoices"
    description = "Process correct invoices"
    completion = "Correct invoices processed."
    source_stage = StageNumber.BUILD_CORRECT_INVOICES

    @property
    def timeout(self) -> float:
        return self.services.settings.CORRECT_INVOICE_SUBMIT_TIMEOUT
