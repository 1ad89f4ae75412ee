"""
DeviceSession — PIN-gated HTTP calls to one tax-register device.

Every operation opens its own httpx client with keep-alive disabled and
sends ``Connection: close``: devices keep session state per connection and
a reused socket can carry one record's PIN session into the next.

Nothing here retries.  A failed record is retried only by a later stage
invocation that finds it not yet checkpointed.

Wire protocol (``address`` always ends with '/')::

    POST {address}pin                       text/plain PIN → "0100" on success
    GET  {address}transactions/{number}     → {"messages": "success", "items": [...]}
    POST {address}invoices                  JSON invoice → {"mtn": ..., ...}
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from invoice_reverser.core.config import Settings
from invoice_reverser.core.constants import (
    FETCH_SUCCESS_MESSAGE,
    PIN_SUCCESS_CODE,
    TRANSACTION_REFERENCE_FIELD,
)
from invoice_reverser.core.logging import get_logger
from invoice_reverser.pipeline.errors import (
    BusinessRejection,
    PinVerificationFailed,
    TransportFailure,
)

logger = get_logger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Connection": "close",
}


def _error_text(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def is_fetch_success(payload: Any) -> bool:
    """True when an item payload carries the device's success marker."""
    if not isinstance(payload, dict):
        return False
    messages = payload.get("messages")
    return isinstance(messages, str) and messages.lower() == FETCH_SUCCESS_MESSAGE


def is_submit_success(payload: Any) -> bool:
    """True when a submit response carries a transaction reference."""
    return isinstance(payload, dict) and TRANSACTION_REFERENCE_FIELD in payload


class DeviceSession:
    """Handles PIN verification and the single domain call that follows it."""

    def __init__(
        self,
        pin: str,
        *,
        pin_timeout: float = 30.0,
        fetch_timeout: float = 45.0,
        submit_timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            pin: Device PIN sent as plain text before each operation.
            pin_timeout: Seconds allowed for PIN verification.
            fetch_timeout: Seconds allowed for an item fetch.
            submit_timeout: Default seconds allowed for an invoice submission.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.pin = pin
        self.pin_timeout = pin_timeout
        self.fetch_timeout = fetch_timeout
        self.submit_timeout = submit_timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> DeviceSession:
        return cls(
            settings.DEVICE_PIN,
            pin_timeout=settings.PIN_TIMEOUT,
            fetch_timeout=settings.FETCH_TIMEOUT,
            submit_timeout=settings.CREDIT_NOTE_SUBMIT_TIMEOUT,
            **kwargs,
        )

    def _client(self, timeout: float) -> httpx.AsyncClient:
        """A fresh, non-persistent client for exactly one request."""
        return httpx.AsyncClient(
            timeout=timeout,
            transport=self._transport,
            limits=httpx.Limits(max_keepalive_connections=0),
        )

    # ─── PIN ───────────────────────────────────────────

    async def verify_pin(self, address: str, pin: str | None = None) -> str:
        """
        POST the PIN and return the device's status code.

        Raises PinVerificationFailed on transport failure or when the code
        is anything other than "0100".
        """
        url = f"{address}pin"
        try:
            async with self._client(self.pin_timeout) as client:
                response = await client.post(
                    url,
                    content=(pin if pin is not None else self.pin).encode("utf-8"),
                    headers={
                        "Content-Type": "text/plain",
                        "Accept": "application/json",
                        "Connection": "close",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PinVerificationFailed(f"PIN verification failed: {_error_text(exc)}") from exc

        code = self._parse_code(response.text)
        if code != PIN_SUCCESS_CODE:
            raise PinVerificationFailed("Invalid pin verification", code=code)
        return code

    @staticmethod
    def _parse_code(body: str) -> str:
        """Devices answer either 0100 or "0100"; both mean the same code."""
        text = body.strip()
        if text.startswith('"'):
            try:
                decoded = json.loads(text)
            except ValueError:
                return text
            if isinstance(decoded, str):
                return decoded.strip()
        return text

    # ─── Domain operations ─────────────────────────────

    async def fetch_items(self, address: str, relevant_number: str) -> dict[str, Any]:
        """
        Fetch the device's line items for an invoice.

        Only call after verify_pin().  Raises TransportFailure when the
        device cannot be read and BusinessRejection (with the raw body)
        when the payload lacks the success marker.
        """
        url = f"{address}transactions/{relevant_number}"
        payload = await self._request("GET", url, timeout=self.fetch_timeout)
        if not is_fetch_success(payload):
            raise BusinessRejection(
                "Item fetch did not report success",
                relevant_number=relevant_number,
                response_body=payload,
            )
        return payload

    async def submit_invoice(
        self,
        address: str,
        document: dict[str, Any],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Submit an invoice or credit note.

        Only call after verify_pin().  Success is the presence of ``mtn``
        in the response; its absence raises BusinessRejection carrying the
        raw body.  Network and HTTP errors raise TransportFailure.
        """
        url = f"{address}invoices"
        payload = await self._request(
            "POST",
            url,
            timeout=timeout or self.submit_timeout,
            json_body=document,
        )
        if not is_submit_success(payload):
            raise BusinessRejection(
                f"Device response has no '{TRANSACTION_REFERENCE_FIELD}'",
                relevant_number=document.get("relevantNumber"),
                response_body=payload,
            )
        return payload

    async def _request(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        try:
            async with self._client(timeout) as client:
                response = await client.request(method, url, headers=JSON_HEADERS, json=json_body)
                logger.debug("Device response", method=method, url=url, status_code=response.status_code)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportFailure(
                _error_text(exc),
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(_error_text(exc)) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise TransportFailure(
                f"Device returned a non-JSON body: {response.text[:200]!r}",
                status_code=response.status_code,
            ) from exc
