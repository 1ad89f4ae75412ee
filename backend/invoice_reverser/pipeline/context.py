"""
Data carried through a stage invocation.

InputRecord is what the spreadsheet yields (one per row).  RecordResult
is the terminal state of one record in one stage, and StageResult is the
summary a stage returns to its trigger.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from invoice_reverser.core.constants import RecordOutcome


# ═══════════════════════════════════════════════════════════
#  InputRecord
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InputRecord:
    """
    One reversible invoice from the record spreadsheet.

    Args:
        relevant_number: Unique invoice identifier (the record key).
        device_number: Identifier of the device that issued the invoice.
        trader_system_invoice_number: Trader's own invoice number, echoed
              on the correct invoice for traceability.
        buyer_pin: Buyer tax PIN for the correct invoice.
        buyer_name: Buyer name for the correct invoice.
    """

    relevant_number: str
    device_number: str = ""
    trader_system_invoice_number: str = ""
    buyer_pin: str = ""
    buyer_name: str = ""

    @property
    def has_buyer(self) -> bool:
        return bool(self.buyer_pin and self.buyer_name)


# ═══════════════════════════════════════════════════════════
#  RecordResult
# ═══════════════════════════════════════════════════════════

@dataclass
class RecordResult:
    """Outcome of one record in one stage invocation."""

    relevant_number: str
    outcome: str                    # RecordOutcome value
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "relevant_number": self.relevant_number,
            "outcome": self.outcome,
            "error": self.error,
        }


# ═══════════════════════════════════════════════════════════
#  StageResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StageResult:
    """Summary of one stage invocation."""

    stage: int
    stage_name: str
    status: str                     # StageStatus value
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    records: list[RecordResult] = field(default_factory=list)
    error: str | None = None

    def add(self, relevant_number: str, outcome: str, error: str | None = None) -> RecordResult:
        result = RecordResult(relevant_number=relevant_number, outcome=outcome, error=error)
        self.records.append(result)
        return result

    @property
    def counts(self) -> dict[str, int]:
        """Number of records per outcome."""
        return dict(Counter(r.outcome for r in self.records))

    def keys_with(self, outcome: RecordOutcome) -> list[str]:
        return [r.relevant_number for r in self.records if r.outcome == outcome]

    @property
    def succeeded(self) -> int:
        return self.counts.get(RecordOutcome.SUCCEEDED, 0)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for API / Celery results."""
        return {
            "stage": self.stage,
            "stage_name": self.stage_name,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "counts": self.counts,
            "records": [r.to_dict() for r in self.records],
            "error": self.error,
        }
