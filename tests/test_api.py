import pytest
from fastapi.testclient import TestClient

from invoice_reverser.api.deps import get_services_factory
from invoice_reverser.core.config import Settings, get_settings
from invoice_reverser.main import app


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services_factory] = lambda: (lambda: services)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_index_links_every_stage(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "TIMS Invoice Reverser API" in response.text
    for number in range(1, 6):
        assert f'href="/run-step{number}"' in response.text


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_run_step_reports_completion(client, device, records_file, tmp_path):
    device.items["INV100"] = {"messages": "success", "items": [{"name": "W", "totalAmount": 1}]}

    response = client.get("/run-step1")

    assert response.status_code == 200
    assert response.text == "Step 1 complete: Invoice items fetched."
    assert (tmp_path / "ItemResponses" / "INV100.json").exists()


def test_per_record_failures_still_answer_200(client, device, records_file):
    device.pin_code = "0200"

    response = client.get("/run-step1")

    assert response.status_code == 200


def test_missing_source_answers_500(client):
    response = client.get("/run-step1")

    assert response.status_code == 500
    assert response.text.startswith("Error in Step 1: ")


def test_unknown_step_answers_404(client):
    response = client.get("/run-step6")

    assert response.status_code == 404
    assert response.text == "Step 6 not implemented."


def test_stage_status_counts(client, services):
    services.artifacts.write_success(1, "A", {"messages": "success"})
    services.artifacts.write_error(1, "B", {"error": "x"})
    services.checkpoints(1).add("A")

    data = client.get("/stages/status").json()["data"]

    assert [entry["stage"] for entry in data] == [1, 2, 3, 4, 5]
    assert data[0]["succeeded"] == 1
    assert data[0]["errors"] == 1
    assert data[0]["checkpointed"] == 1
    assert data[1]["checkpointed"] is None


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        (None, "Error in Step 1: Cannot read device bindings"),
        ("{broken", "Error in Step 1: Cannot read device bindings"),
        ('["D1"]', "Error in Step 1: Device bindings in"),
    ],
)
def test_bad_device_bindings_answer_step_error(tmp_path, content, expected):
    devices_file = tmp_path / "devices.json"
    if content is not None:
        devices_file.write_text(content)
    settings = Settings(DATA_DIR=str(tmp_path), DEVICES_FILE=str(devices_file))
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        with TestClient(app) as test_client:
            response = test_client.get("/run-step1")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.text.startswith(expected)
