"""Device binding: device number → device base address."""

from __future__ import annotations

import json

from invoice_reverser.core.config import Settings
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.errors import DeviceUnresolved, InvalidDeviceBindings

logger = get_logger(__name__)


def normalize_address(address: str) -> str:
    """Device endpoints are appended to the address, so it must end in '/'."""
    address = address.strip()
    return address if address.endswith("/") else address + "/"


class DeviceDirectory:
    """Looks up device addresses.  Never persisted by the pipeline."""

    def __init__(self, bindings: dict[str, str] | None = None) -> None:
        self._bindings = {}
        for number, address in (bindings or {}).items():
            if not isinstance(address, str) or not address.strip():
                logger.warning("Ignoring device binding without an address", device_number=number)
                continue
            self._bindings[str(number).strip()] = normalize_address(address)

    @classmethod
    def from_settings(cls, settings: Settings) -> DeviceDirectory:
        """
        DEVICES from the environment, overridden by entries in DEVICES_FILE.

        Raises InvalidDeviceBindings if DEVICES_FILE cannot be read or is
        not a JSON object.
        """
        bindings = dict(settings.DEVICES)
        if settings.DEVICES_FILE:
            bindings.update(cls._read_file(settings.DEVICES_FILE))
        return cls(bindings)

    @staticmethod
    def _read_file(path: str) -> dict:
        try:
            with open(path, encoding="utf-8") as f:
                from_file = json.load(f)
        except (OSError, ValueError) as exc:
            raise InvalidDeviceBindings(f"Cannot read device bindings from {path}: {exc}") from exc

        # Accept both {"D1": "..."} and {"devices": {"D1": "..."}}
        if isinstance(from_file, dict) and isinstance(from_file.get("devices"), dict):
            from_file = from_file["devices"]
        if not isinstance(from_file, dict):
            raise InvalidDeviceBindings(f"Device bindings in {path} must be a JSON object")

        logger.debug("Device bindings loaded", path=path, count=len(from_file))
        return from_file

    def resolve(self, device_number: str | None) -> str | None:
        if not device_number:
            return None
        return self._bindings.get(device_number.strip())

    def require(self, device_number: str | None) -> str:
        """Like resolve(), but raises DeviceUnresolved when nothing is bound."""
        address = self.resolve(device_number)
        if address is None:
            raise DeviceUnresolved(
                f"Device address not found for device number: {device_number}",
                device_number=device_number,
            )
        return address

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, device_number: str) -> bool:
        return self.resolve(device_number) is not None
