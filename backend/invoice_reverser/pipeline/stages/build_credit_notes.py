"""
Stage 2 — turn fetched item snapshots into credit-note requests.

Pure transform, no device call.  Re-running overwrites each request with
identical content, so artifact presence is the only checkpoint needed.
"""

from __future__ import annotations

from invoice_reverser.core.constants import RecordOutcome, StageNumber
from invoice_reverser.device.session import is_fetch_success
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.errors import MalformedArtifact
from invoice_reverser.pipeline.stage import Stage
from invoice_reverser.submission.payload_builder import build_credit_note


class BuildCreditNotesStage(Stage):
    """Build one credit-note request per successful item snapshot."""

    number = StageNumber.BUILD_CREDIT_NOTES
    name = "build_credit_notes"
    description = "Build credit note requests"
    completion = "Credit note requests built."

    async def execute(self, result: StageResult) -> None:
        for key in self.artifacts.success_keys(StageNumber.FETCH_ITEMS):
            try:
                snapshot = self.artifacts.read_success(StageNumber.FETCH_ITEMS, key)
            except MalformedArtifact as exc:
                self.log.error("Skipping unparseable item response", relevant_number=key, error=str(exc))
                result.add(key, RecordOutcome.MALFORMED, str(exc))
                continue

            items = snapshot.get("items")
            if not is_fetch_success(snapshot) or not isinstance(items, list) or not items:
                self.log.info("Skipping: not a successful item response", relevant_number=key)
                result.add(key, RecordOutcome.NOT_ELIGIBLE, "not a successful item response")
                continue

            credit_note = build_credit_note(key, snapshot)
            if not credit_note["items"]:
                self.log.warning("Skipping: no usable line items", relevant_number=key)
                result.add(key, RecordOutcome.NOT_ELIGIBLE, "no usable line items")
                continue
            if credit_note["payment"][0]["amount"] is None:
                self.log.warning("Unparseable item amount, payment total left empty", relevant_number=key)

            self.artifacts.write_success(self.number, key, credit_note)
            self.log.info("Credit note request built", relevant_number=key, items=len(items))
            result.add(key, RecordOutcome.SUCCEEDED)
