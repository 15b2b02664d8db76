from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from urllib.parse import quote

from qrorder.domain.common.clock import to_iso
from qrorder.domain.common.money import as_json_number

DEFAULT_QR_ENDPOINT = "https://api.qrserver.com/v1/create-qr-code/"


def qr_endpoint() -> str:
    return os.getenv("QR_ENDPOINT", DEFAULT_QR_ENDPOINT)


@dataclass(frozen=True)
class PaymentQRCode:
    payment_id: str
    qr_code_url: str
    amount: Decimal
    shop: str
    status: str


def build_qr_code_url(
    payment_id: str,
    amount: Decimal,
    shop: str,
    now: datetime,
    endpoint: str | None = None,
) -> str:
    """URL of a PNG that encodes the payment reference.

    The image service only renders what it is given; nothing here signs or
    settles the payment.
    """
    payload = json.dumps(
        {
            "type": "payment",
            "id": payment_id,
            "amount": as_json_number(amount),
            "timestamp": to_iso(now),
            "shop": shop,
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )
    base = endpoint or qr_endpoint()
    return f"{base}?size=250x250&data={quote(payload, safe='')}&format=png"
