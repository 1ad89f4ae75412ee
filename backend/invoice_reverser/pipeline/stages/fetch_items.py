"""
Stage 1 — fetch the original invoice's line items from its device.

Input is the record spreadsheet.  The device's item snapshot becomes the
success artifact; any other outcome is an error artifact.
"""

from __future__ import annotations

from invoice_reverser.core.constants import StageNumber
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.stage import DeviceStage


class FetchItemsStage(DeviceStage):
    """Fetch invoice items for every relevant number not yet fetched."""

    number = StageNumber.FETCH_ITEMS
    name = "fetch_items"
    description = "Fetch invoice items"
    completion = "Invoice items fetched."

    async def execute(self, result: StageResult) -> None:
        records = self.services.records.list_records()
        self.log.info("Records loaded", count=len(records))

        for record in records:
            key = record.relevant_number
            if self._skip_if_checkpointed(result, key):
                continue
            await self._round_trip(
                result,
                key,
                record.device_number,
                lambda address, key=key: self.session.fetch_items(address, key),
            )
