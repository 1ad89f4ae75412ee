import json
from typing import Any

import httpx
import pytest
from openpyxl import Workbook

from invoice_reverser.core.config import Settings
from invoice_reverser.pipeline.engine import StageRunner
from invoice_reverser.pipeline.services import StageServices

DEVICE_ADDRESS = "http://device-1.local:8086/api/v3/"

HEADER = [
    "TraderSystemInvoiceNumber",
    "RelevantNumber",
    "DeviceNumber",
    "Date",
    "Amount",
    "BuyerPin",
    "BuyerName",
]


def write_records(path, rows: list[list[Any]]) -> str:
    """Write an operator spreadsheet: header row plus `rows`."""
    wb = Workbook()
    ws = wb.active
    ws.append(HEADER)
    for row in rows:
        ws.append(row)
    wb.save(path)
    return str(path)


class FakeDevice:
    """In-memory tax register behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.pin_code = "0100"
        self.items: dict[str, Any] = {}
        self.submit_response: Any = {"mtn": "MTN-0001", "status": "ok"}
        self.fail_paths: dict[str, Exception] = {}
        self.requests: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [r.url.path.rsplit("/api/v3/", 1)[-1] for r in self.requests]

    def bodies(self, suffix: str) -> list[Any]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path.endswith(suffix)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.rsplit("/api/v3/", 1)[-1]
        for prefix, exc in self.fail_paths.items():
            if path.startswith(prefix):
                raise exc

        if path == "pin":
            return httpx.Response(200, text=self.pin_code)
        if path.startswith("transactions/"):
            number = path.split("/", 1)[1]
            if number not in self.items:
                return httpx.Response(404, json={"messages": "not found"})
            return httpx.Response(200, json=self.items[number])
        if path == "invoices":
            return httpx.Response(200, json=self.submit_response)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATA_DIR=str(tmp_path),
        DEVICES={"D1": DEVICE_ADDRESS},
        DEVICE_PIN="1234",
    )


@pytest.fixture
def services(settings, device) -> StageServices:
    return StageServices.from_settings(settings, transport=device.transport)


@pytest.fixture
def runner(services) -> StageRunner:
    return StageRunner(services)


@pytest.fixture
def records_file(tmp_path):
    """Default sheet: INV100 on D1 with buyer data."""
    return write_records(
        tmp_path / "relevantNumbers.xlsx",
        [["T-1", "INV100", "D1", "2025-01-01", 10, "P051234567X", "Acme Ltd"]],
    )
