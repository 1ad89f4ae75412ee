"""
Stage 4 — build replacement invoices for reversed originals.

Input is the stage-3 checkpoint set (credit notes the device accepted),
restricted to those with a credit-note request on disk, plus buyer data
from the spreadsheet.  Records without a buyer PIN and name are skipped.
"""

from __future__ import annotations

from invoice_reverser.core.constants import RecordOutcome, StageNumber
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.errors import MalformedArtifact
from invoice_reverser.pipeline.stage import Stage
from invoice_reverser.submission.payload_builder import build_correct_invoice


class BuildCorrectInvoicesStage(Stage):
    """Build one correct invoice per accepted credit note."""

    number = StageNumber.BUILD_CORRECT_INVOICES
    name = "build_correct_invoices"
    description = "Create correct invoices"
    completion = "Correct invoices created."

    async def execute(self, result: StageResult) -> None:
        accepted = self.services.checkpoints(StageNumber.SUBMIT_CREDIT_NOTES).keys()
        if not accepted:
            self.log.info("No processed credit notes yet")
            return

        buyers = self.services.records.buyer_map()

        for key in accepted:
            if not self.artifacts.has_success(StageNumber.BUILD_CREDIT_NOTES, key):
                self.log.error("Credit note request not found", relevant_number=key)
                continue

            try:
                credit_note = self.artifacts.read_success(StageNumber.BUILD_CREDIT_NOTES, key)
            except MalformedArtifact as exc:
                self.log.error("Skipping unparseable credit note", relevant_number=key, error=str(exc))
                result.add(key, RecordOutcome.MALFORMED, str(exc))
                continue

            buyer = buyers.get(key)
            if buyer is None or not buyer.has_buyer:
                self.log.error("Buyer info missing", relevant_number=key)
                result.add(key, RecordOutcome.NOT_ELIGIBLE, "buyer info missing")
                continue

            invoice = build_correct_invoice(credit_note, buyer)
            self.artifacts.write_success(self.number, key, invoice)
            self.log.info("Correct invoice built", relevant_number=key)
            result.add(key, RecordOutcome.SUCCEEDED)
