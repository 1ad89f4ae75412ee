import pytest

from conftest import write_records
from invoice_reverser.core.constants import RecordOutcome, StageStatus
from invoice_reverser.pipeline.context import StageResult
from invoice_reverser.pipeline.engine import StageRunner
from invoice_reverser.pipeline.errors import SourceUnavailable, StageNotFound
from invoice_reverser.pipeline.registry import StageRegistry
from invoice_reverser.pipeline.stage import Stage


class ExplodingStage(Stage):
    number = 9
    name = "exploding"
    description = "Always fails"

    async def execute(self, result: StageResult) -> None:
        result.add("INV1", RecordOutcome.SUCCEEDED)
        raise RuntimeError("disk full")


def test_registry_lists_five_stages_in_order():
    registry = StageRegistry()
    assert registry.list_available() == [1, 2, 3, 4, 5]
    assert 3 in registry
    assert 6 not in registry
    assert [d["name"] for d in registry.describe()] == [
        "fetch_items",
        "build_credit_notes",
        "submit_credit_notes",
        "build_correct_invoices",
        "submit_correct_invoices",
    ]


async def test_unknown_stage_is_not_found(runner):
    with pytest.raises(StageNotFound, match="Step 6 not implemented."):
        await runner.run(6)


async def test_empty_source_completes_with_no_records(runner, device, tmp_path):
    write_records(tmp_path / "relevantNumbers.xlsx", [])

    result = await runner.run(1)

    assert result.status == StageStatus.COMPLETED
    assert result.records == []
    assert device.requests == []


async def test_missing_source_fails_the_stage(runner):
    with pytest.raises(SourceUnavailable):
        await runner.run(1)


async def test_unexpected_error_propagates(services):
    runner = StageRunner(services, registry=StageRegistry({9: ExplodingStage}))

    with pytest.raises(RuntimeError, match="disk full"):
        await runner.run(9)


async def test_result_records_timing_and_summary(runner, device, records_file):
    device.items["INV100"] = {"messages": "success", "items": [{"name": "W", "totalAmount": 1}]}

    result = await runner.run(1)

    assert result.status == StageStatus.COMPLETED
    assert result.started_at is not None
    assert result.completed_at >= result.started_at
    assert result.succeeded == 1
    summary = result.to_dict()
    assert summary["stage_name"] == "fetch_items"
    assert summary["records"] == [{"relevant_number": "INV100", "outcome": "SUCCEEDED", "error": None}]


async def test_run_sequence_runs_all_stages(runner, device, records_file, tmp_path):
    device.items["INV100"] = {"messages": "success", "items": [{"name": "W", "totalAmount": 1}]}

    results = await runner.run_sequence()

    assert [r.stage for r in results] == [1, 2, 3, 4, 5]
    assert all(r.status == StageStatus.COMPLETED for r in results)
    assert (tmp_path / "CorrectInvoiceResponses" / "INV100.json").exists()


async def test_run_sequence_stops_at_first_failure(runner, device):
    with pytest.raises(SourceUnavailable):
        await runner.run_sequence([1, 2])
    assert device.requests == []
