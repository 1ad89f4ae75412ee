"""Shared constants and enums used across the application."""

from enum import IntEnum, StrEnum


# Code the device returns for an accepted PIN.
PIN_SUCCESS_CODE = "0100"

# Device payload marker for a usable item fetch (compared case-insensitively).
FETCH_SUCCESS_MESSAGE = "success"

# Response field whose presence means the device accepted an invoice.
TRANSACTION_REFERENCE_FIELD = "mtn"

ERROR_SUFFIX = "_error"


class StageNumber(IntEnum):
    """The five ordered stages of a reversal run."""

    FETCH_ITEMS = 1
    BUILD_CREDIT_NOTES = 2
    SUBMIT_CREDIT_NOTES = 3
    BUILD_CORRECT_INVOICES = 4
    SUBMIT_CORRECT_INVOICES = 5


class StageStatus(StrEnum):
    """Overall status of a stage invocation."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RecordOutcome(StrEnum):
    """Terminal state of one record within one stage invocation."""

    SKIPPED = "SKIPPED"
    UNRESOLVED = "UNRESOLVED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    OPERATION_FAILED = "OPERATION_FAILED"
    SUCCEEDED = "SUCCEEDED"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    MALFORMED = "MALFORMED"


# Artifact directory per stage, relative to DATA_DIR.
ARTIFACT_DIRS: dict[StageNumber, str] = {
    StageNumber.FETCH_ITEMS: "ItemResponses",
    StageNumber.BUILD_CREDIT_NOTES: "CreditNoteRequests",
    StageNumber.SUBMIT_CREDIT_NOTES: "CreditNoteResponses",
    StageNumber.BUILD_CORRECT_INVOICES: "CorrectInvoices",
    StageNumber.SUBMIT_CORRECT_INVOICES: "CorrectInvoiceResponses",
}

# Checkpoint file per device stage, relative to DATA_DIR.
CHECKPOINT_FILES: dict[StageNumber, str] = {
    StageNumber.FETCH_ITEMS: "processedNumbers.json",
    StageNumber.SUBMIT_CREDIT_NOTES: "processedCreditnotes.json",
    StageNumber.SUBMIT_CORRECT_INVOICES: "processedCorrectInvoices.json",
}
