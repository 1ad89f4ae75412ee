"""
StageServices — everything a stage needs, built once from Settings.

Passed explicitly into every stage so nothing in the pipeline reaches for
module-level configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

from invoice_reverser.core.config import Settings
from invoice_reverser.core.constants import CHECKPOINT_FILES, StageNumber
from invoice_reverser.device.session import DeviceSession
from invoice_reverser.records.devices import DeviceDirectory
from invoice_reverser.records.source import RecordSource
from invoice_reverser.storage.artifacts import ArtifactStore
from invoice_reverser.storage.checkpoints import CheckpointStore


@dataclass
class StageServices:
    settings: Settings
    artifacts: ArtifactStore
    records: RecordSource
    devices: DeviceDirectory
    session: DeviceSession

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> StageServices:
        return cls(
            settings=settings,
            artifacts=ArtifactStore(settings.DATA_DIR),
            records=RecordSource.from_settings(settings),
            devices=DeviceDirectory.from_settings(settings),
            session=DeviceSession.from_settings(settings, transport=transport),
        )

    def checkpoints(self, stage: int) -> CheckpointStore:
        """The checkpoint store owned by a device stage."""
        filename = CHECKPOINT_FILES[StageNumber(stage)]
        return CheckpointStore(os.path.join(self.settings.DATA_DIR, filename))
