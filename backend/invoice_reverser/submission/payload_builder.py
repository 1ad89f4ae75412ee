"""Build device request documents: credit-note reversals and correct invoices."""

from __future__ import annotations

import math
from typing import Any

from invoice_reverser.pipeline.context import InputRecord

CASHIER = "ADMIN"
PAYMENT_TYPE_CASH = "Cash"

INVOICE_TYPE_NORMAL = 0
TRANSACTION_TYPE_SALE = 0
TRANSACTION_TYPE_CREDIT_NOTE = 1

COURTESY_LINE = {
    "lineType": "Text",
    "alignment": "boldcenter",
    "format": "Bold",
    "value": "Thanksforyourbusiness!",
}


def _as_number(value: Any) -> int | float | None:
    """
    Device amounts may arrive as numbers or numeric strings.

    Blank is 0.  Anything else that does not parse is None, and a None
    amount makes the payment total None (serialised as null).
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value is None or str(value).strip() == "":
        return 0
    try:
        number = float(value) if isinstance(value, float) else float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _line_items(document: dict[str, Any]) -> list[dict[str, Any]]:
    """The document's item list, without entries that are not objects."""
    items = document.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _total(amounts: list[Any]) -> int | float | None:
    numbers = [_as_number(a) for a in amounts]
    if any(n is None for n in numbers):
        return None
    return sum(numbers)


def build_credit_note(relevant_number: str, snapshot: dict[str, Any]) -> dict[str, Any]:
    """
    Transform a fetched item snapshot into a credit-note request.

    The single cash payment equals the sum of item totals so the note
    reverses the original invoice's full value.
    """
    items = []
    for item in _line_items(snapshot):
        entry = {"name": item.get("name"), "totalAmount": item.get("totalAmount")}
        if item.get("hsCode"):
            entry["hsCode"] = item["hsCode"]
        items.append(entry)

    grand_total = _total([item["totalAmount"] for item in items])

    return {
        "invoiceType": INVOICE_TYPE_NORMAL,
        "transactionType": TRANSACTION_TYPE_CREDIT_NOTE,
        "cashier": CASHIER,
        "items": items,
        "relevantNumber": relevant_number,
        "payment": [
            {
                "amount": grand_total,
                "paymentType": PAYMENT_TYPE_CASH,
            }
        ],
    }


def build_correct_invoice(credit_note: dict[str, Any], buyer: InputRecord) -> dict[str, Any]:
    """Re-issue a reversed invoice to the buyer, keeping the credit note's payment block."""
    items = []
    for item in _line_items(credit_note):
        entry = {
            "name": item.get("name"),
            "quantity": item.get("quantity") or 1,
            "unitPrice": item.get("totalAmount") or item.get("unitPrice"),
        }
        if item.get("hsCode"):
            entry["hsCode"] = item["hsCode"]
        items.append(entry)

    return {
        "invoiceType": INVOICE_TYPE_NORMAL,
        "transactionType": TRANSACTION_TYPE_SALE,
        "cashier": CASHIER,
        "items": items,
        "buyer": {
            "buyerName": buyer.buyer_name,
            "pinOfBuyer": buyer.buyer_pin,
        },
        "lines": [dict(COURTESY_LINE)],
        "payment": credit_note.get("payment"),
        "TraderSystemInvoiceNumber": buyer.trader_system_invoice_number,
    }
