from invoice_reverser.tasks import stage_tasks


def test_run_stage_task_returns_summary(monkeypatch, runner, device, records_file):
    device.items["INV100"] = {"messages": "success", "items": [{"name": "W", "totalAmount": 1}]}
    monkeypatch.setattr(stage_tasks, "_runner", lambda: runner)

    summary = stage_tasks.run_stage(1)

    assert summary["stage"] == 1
    assert summary["status"] == "COMPLETED"
    assert summary["counts"] == {"SUCCEEDED": 1}


def test_run_all_stages_task(monkeypatch, runner, device, records_file):
    device.items["INV100"] = {"messages": "success", "items": [{"name": "W", "totalAmount": 1}]}
    monkeypatch.setattr(stage_tasks, "_runner", lambda: runner)

    summaries = stage_tasks.run_all_stages([1, 2])

    assert [s["stage_name"] for s in summaries] == ["fetch_items", "build_credit_notes"]
