import json

import pytest

from conftest import write_records
from invoice_reverser.core.config import Settings
from invoice_reverser.pipeline.errors import (
    DeviceUnresolved,
    InvalidDeviceBindings,
    SourceEmpty,
    SourceUnavailable,
)
from invoice_reverser.records.devices import DeviceDirectory
from invoice_reverser.records.source import RecordSource


def test_list_records_reads_columns_in_row_order(tmp_path):
    path = write_records(tmp_path / "r.xlsx", [
        ["T-1", "INV100", "D1", None, 10, "P1", "Acme"],
        [None, 12345, 7, None, None, None, None],
        ["T-3", "  INV300 ", "D2", None, None, "P3", "Beta"],
    ])

    records = RecordSource(path).list_records()

    assert [r.relevant_number for r in records] == ["INV100", "12345", "INV300"]
    first = records[0]
    assert first.trader_system_invoice_number == "T-1"
    assert first.device_number == "D1"
    assert first.buyer_pin == "P1"
    assert first.buyer_name == "Acme"
    assert first.has_buyer
    assert records[1].device_number == "7"
    assert not records[1].has_buyer


def test_rows_without_relevant_number_are_dropped(tmp_path):
    path = write_records(tmp_path / "r.xlsx", [
        ["T-1", None, "D1"],
        ["T-2", "INV2", "D1"],
    ])
    assert [r.relevant_number for r in RecordSource(path).list_records()] == ["INV2"]


def test_missing_file_is_source_unavailable(tmp_path):
    with pytest.raises(SourceUnavailable):
        RecordSource(str(tmp_path / "missing.xlsx")).list_records()


def test_header_only_is_source_empty(tmp_path):
    path = write_records(tmp_path / "r.xlsx", [])
    with pytest.raises(SourceEmpty):
        RecordSource(path).list_records()


def test_duplicate_relevant_numbers_last_row_wins_in_maps(tmp_path):
    path = write_records(tmp_path / "r.xlsx", [
        ["T-1", "INV1", "D1", None, None, "P1", "First"],
        ["T-2", "INV1", "D2", None, None, "P2", "Second"],
    ])
    source = RecordSource(path)

    assert len(source.list_records()) == 2
    assert source.device_map() == {"INV1": "D2"}
    assert source.buyer_map()["INV1"].buyer_name == "Second"


def test_from_settings_resolves_path_against_data_dir(tmp_path):
    write_records(tmp_path / "relevantNumbers.xlsx", [["T", "INV1", "D1"]])
    settings = Settings(DATA_DIR=str(tmp_path))
    assert RecordSource.from_settings(settings).list_records()[0].relevant_number == "INV1"


# ─── DeviceDirectory ──────────────────────────────────────

def test_device_directory_normalizes_addresses():
    devices = DeviceDirectory({"D1": "http://10.0.0.5:8086/api/v3", "D2": "http://10.0.0.6/api/v3/"})
    assert devices.resolve("D1") == "http://10.0.0.5:8086/api/v3/"
    assert devices.resolve(" D2 ") == "http://10.0.0.6/api/v3/"
    assert devices.resolve("D3") is None
    assert devices.resolve(None) is None


def test_device_file_overrides_env(tmp_path):
    devices_file = tmp_path / "devices.json"
    devices_file.write_text(json.dumps({"devices": {"D1": "http://file/"}}))
    settings = Settings(
        DATA_DIR=str(tmp_path),
        DEVICES={"D1": "http://env/", "D2": "http://env2/"},
        DEVICES_FILE=str(devices_file),
    )
    devices = DeviceDirectory.from_settings(settings)
    assert devices.resolve("D1") == "http://file/"
    assert devices.resolve("D2") == "http://env2/"
    assert len(devices) == 2


def test_require_raises_for_unbound_device():
    devices = DeviceDirectory({"D1": "http://10.0.0.5/api/v3/"})

    assert devices.require("D1") == "http://10.0.0.5/api/v3/"
    with pytest.raises(DeviceUnresolved, match="Device address not found for device number: D2") as exc_info:
        devices.require("D2")
    assert exc_info.value.device_number == "D2"


def test_bindings_without_string_address_are_ignored():
    devices = DeviceDirectory({"D1": 42, "D2": None, "D3": "http://ok/"})

    assert len(devices) == 1
    assert devices.resolve("D1") is None
    assert devices.resolve("D3") == "http://ok/"


def test_unreadable_device_file_is_invalid_bindings(tmp_path):
    devices_file = tmp_path / "devices.json"
    devices_file.write_text("[1, 2]")
    settings = Settings(DATA_DIR=str(tmp_path), DEVICES_FILE=str(devices_file))

    with pytest.raises(InvalidDeviceBindings):
        DeviceDirectory.from_settings(settings)

    settings = Settings(DATA_DIR=str(tmp_path), DEVICES_FILE=str(tmp_path / "missing.json"))
    with pytest.raises(InvalidDeviceBindings):
        DeviceDirectory.from_settings(settings)
