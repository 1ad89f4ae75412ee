"""
Stage — abstract base class for the five pipeline stages.

The runner calls execute() and records timing, logging, and errors
automatically.  Stages only implement the per-record business logic and
report each record's terminal state into the StageResult.

DeviceStage adds the PIN-gated round trip shared by the stages that talk
to hardware (fetch items, submit credit notes, submit correct invoices).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from invoice_reverser.core.constants import RecordOutcome
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.errors import (
    BusinessRejection,
    DeviceUnresolved,
    PinVerificationFailed,
    TransportFailure,
)
from invoice_reverser.pipeline.services import StageServices
from invoice_reverser.storage.checkpoints import CheckpointStore

logger = get_logger(__name__)

DeviceOperation = Callable[[str], Awaitable[dict[str, Any]]]


class Stage(ABC):
    """
    Base class for every stage.

    Subclasses MUST set:
        - number (int)        — position in the run, 1..5
        - name (str)          — unique identifier, e.g. "fetch_items"
        - description (str)   — human-readable label for logs/UI
        - completion (str)    — operator message once the stage finishes
    and implement execute(result).
    """

    number: int = 0
    name: str = "unnamed_stage"
    description: str = "No description"
    completion: str = "done."

    def __init__(self, services: StageServices) -> None:
        self.services = services
        self.artifacts = services.artifacts
        self.log = logger.bind(stage=self.number, stage_name=self.name)

    @abstractmethod
    async def execute(self, result: StageResult) -> None:
        """
        Process every candidate record, appending one entry per record
        to `result`.  Per-record failures are recorded, not raised.
        """
        ...


class DeviceStage(Stage):
    """A stage whose per-record work is a PIN-verified device call."""

    def __init__(self, services: StageServices) -> None:
        super().__init__(services)
        self.session = services.session
        self.checkpoints: CheckpointStore = services.checkpoints(self.number)

    async def _round_trip(
        self,
        result: StageResult,
        relevant_number: str,
        device_number: str | None,
        operation: DeviceOperation,
    ) -> str:
        """
        Resolve → verify PIN → operate → persist, for one record.

        Writes exactly one artifact.  Only the success path checkpoints,
        and only after the success artifact is on disk.
        """
        log = self.log.bind(relevant_number=relevant_number, device_number=device_number)
        stage = self.number

        try:
            address = self.services.devices.require(device_number)
        except DeviceUnresolved as exc:
            log.error("No device address found")
            self.artifacts.write_error(stage, relevant_number, {"error": str(exc)})
            result.add(relevant_number, RecordOutcome.UNRESOLVED, str(exc))
            return RecordOutcome.UNRESOLVED

        try:
            await self.session.verify_pin(address)
        except PinVerificationFailed as exc:
            if exc.is_wrong_code:
                log.warning("Device refused the PIN", code=exc.code)
            else:
                log.error("PIN request failed", error=str(exc))
            self.artifacts.write_error(stage, relevant_number, {"error": str(exc)})
            result.add(relevant_number, RecordOutcome.VERIFICATION_FAILED, str(exc))
            return RecordOutcome.VERIFICATION_FAILED

        try:
            payload = await operation(address)
        except BusinessRejection as exc:
            log.warning("Device rejected request, marked as error", reason=str(exc))
            self.artifacts.write_error(stage, relevant_number, exc.response_body)
            result.add(relevant_number, RecordOutcome.OPERATION_FAILED, str(exc))
            return RecordOutcome.OPERATION_FAILED
        except TransportFailure as exc:
            log.error("Device request failed", error=str(exc), status_code=exc.status_code)
            self.artifacts.write_error(stage, relevant_number, {"error": str(exc)})
            result.add(relevant_number, RecordOutcome.OPERATION_FAILED, str(exc))
            return RecordOutcome.OPERATION_FAILED

        self.artifacts.write_success(stage, relevant_number, payload)
        self.checkpoints.add(relevant_number)
        log.info("Record processed (SUCCESS)")
        result.add(relevant_number, RecordOutcome.SUCCEEDED)
        return RecordOutcome.SUCCEEDED

    def _skip_if_checkpointed(self, result: StageResult, relevant_number: str) -> bool:
        if self.checkpoints.contains(relevant_number):
            self.log.info("Skipping already processed record", relevant_number=relevant_number)
            result.add(relevant_number, RecordOutcome.SKIPPED)
            return True
        return False
