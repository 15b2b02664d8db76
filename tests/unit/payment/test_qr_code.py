from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.application.use_cases.qr_code import DEFAULT_QR_ENDPOINT, build_qr_code_url

NOW = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def test_qr_url_encodes_payment_payload() -> None:
    url = build_qr_code_url("PAY1", Decimal("160"), "ป้าเปิ้ลสุดสวย", NOW)

    parts = urlsplit(url)
    assert url.startswith(DEFAULT_QR_ENDPOINT)
    query = parse_qs(parts.query)
    assert query["size"] == ["250x250"]
    assert query["format"] == ["png"]
    assert json.loads(query["data"][0]) == {
        "type": "payment",
        "id": "PAY1",
        "amount": 160,
        "timestamp": NOW.isoformat(),
        "shop": "ป้าเปิ้ลสุดสวย",
    }


def test_qr_endpoint_can_be_overridden(monkeypatch) -> None:
    monkeypatch.setenv("QR_ENDPOINT", "https://qr.internal/render")

    url = build_qr_code_url("PAY1", Decimal("12.5"), "shop", NOW)

    assert url.startswith("https://qr.internal/render?size=250x250&data=")
    assert "%22amount%22%3A12.5" in url
