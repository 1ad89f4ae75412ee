"""
ArtifactStore — per-record, per-stage JSON documents on disk.

Layout::

    <data_dir>/<StageDir>/{relevant_number}.json         success
    <data_dir>/<StageDir>/{relevant_number}_error.json   failure

A key never holds both: writing one outcome removes the other.  Writes
are last-writer-wins and not transactional with checkpointing, so every
write must be safely repeatable with the same content.
"""

from __future__ import annotations

import json
import os
from typing import Any

from invoice_reverser.core.constants import ARTIFACT_DIRS, ERROR_SUFFIX, StageNumber
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.errors import ArtifactNotFound, MalformedArtifact

logger = get_logger(__name__)


class ArtifactStore:
    """By-key JSON documents for every stage under one data directory."""

    def __init__(self, data_dir: str, dirs: dict[StageNumber, str] | None = None) -> None:
        self.data_dir = data_dir
        self._dirs = dirs or ARTIFACT_DIRS

    # ─── Paths ─────────────────────────────────────────

    def stage_dir(self, stage: int) -> str:
        return os.path.join(self.data_dir, self._dirs[StageNumber(stage)])

    def path_for(self, stage: int, key: str, error: bool = False) -> str:
        filename = f"{key}{ERROR_SUFFIX}.json" if error else f"{key}.json"
        return os.path.join(self.stage_dir(stage), filename)

    # ─── Writes ────────────────────────────────────────

    def write_success(self, stage: int, key: str, doc: Any) -> str:
        path = self._write(stage, key, doc, error=False)
        self._discard(self.path_for(stage, key, error=True))
        return path

    def write_error(self, stage: int, key: str, doc: Any) -> str:
        path = self._write(stage, key, doc, error=True)
        self._discard(self.path_for(stage, key, error=False))
        return path

    def _write(self, stage: int, key: str, doc: Any, error: bool) -> str:
        directory = self.stage_dir(stage)
        os.makedirs(directory, exist_ok=True)
        path = self.path_for(stage, key, error=error)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2)
        return path

    @staticmethod
    def _discard(path: str) -> None:
        if os.path.exists(path):
            os.remove(path)

    # ─── Reads ─────────────────────────────────────────

    def has_success(self, stage: int, key: str) -> bool:
        return os.path.isfile(self.path_for(stage, key))

    def has_error(self, stage: int, key: str) -> bool:
        return os.path.isfile(self.path_for(stage, key, error=True))

    def read_success(self, stage: int, key: str) -> dict[str, Any]:
        """
        Load a success artifact.

        Raises ArtifactNotFound when it does not exist and MalformedArtifact
        when it is not a JSON object.
        """
        path = self.path_for(stage, key)
        if not os.path.isfile(path):
            raise ArtifactNotFound(
                f"No success artifact at {path}",
                stage=stage,
                relevant_number=key,
            )
        try:
            with open(path, encoding="utf-8") as f:
                doc = json.load(f)
        except ValueError as exc:
            raise MalformedArtifact(
                f"Error parsing {os.path.basename(path)}: {exc}",
                stage=stage,
                relevant_number=key,
            ) from exc
        if not isinstance(doc, dict):
            raise MalformedArtifact(
                f"Error parsing {os.path.basename(path)}: not a JSON object",
                stage=stage,
                relevant_number=key,
            )
        return doc

    def read_error(self, stage: int, key: str) -> Any:
        path = self.path_for(stage, key, error=True)
        if not os.path.isfile(path):
            raise ArtifactNotFound(f"No error artifact at {path}", stage=stage, relevant_number=key)
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def success_keys(self, stage: int) -> list[str]:
        """Keys of every success artifact for a stage, sorted."""
        directory = self.stage_dir(stage)
        if not os.path.isdir(directory):
            return []
        keys = []
        for name in os.listdir(directory):
            if not name.endswith(".json"):
                continue
            key = name[: -len(".json")]
            if not key or key.endswith(ERROR_SUFFIX) or key.endswith("_"):
                continue
            keys.append(key)
        return sorted(keys)

    def error_keys(self, stage: int) -> list[str]:
        directory = self.stage_dir(stage)
        if not os.path.isdir(directory):
            return []
        suffix = f"{ERROR_SUFFIX}.json"
        return sorted(name[: -len(suffix)] for name in os.listdir(directory) if name.endswith(suffix))
