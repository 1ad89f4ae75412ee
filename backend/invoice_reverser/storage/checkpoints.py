"""
CheckpointStore — durable "already processed" set for one stage.

Backed by a single JSON file holding an ordered list of unique relevant
numbers.  A missing or unparseable file reads as an empty set; losing the
set only costs a reprocessing, never the run.

Not safe for concurrent writers: one runner per stage at a time.
"""

from __future__ import annotations

import json
import os

from invoice_reverser.core.logging import get_logger

logger = get_logger(__name__)


class CheckpointStore:
    """Append-only, deduplicated set of record keys persisted to one file."""

    def __init__(self, path: str) -> None:
        self.path = path

    def keys(self) -> list[str]:
        """All checkpointed keys in insertion order."""
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Checkpoint file unreadable, treating as empty", path=self.path, error=str(exc))
            return []
        if not isinstance(data, list):
            logger.warning("Checkpoint file is not a list, treating as empty", path=self.path)
            return []
        return [str(k) for k in data]

    def contains(self, key: str) -> bool:
        return key in self.keys()

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __len__(self) -> int:
        return len(self.keys())

    def add(self, key: str) -> None:
        """Record a key.  Adding a key that is already present is a no-op."""
        processed = self.keys()
        if key in processed:
            return
        processed.append(key)
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(processed, f, indent=2)
        logger.debug("Checkpoint recorded", path=self.path, relevant_number=key)
