import base64
import io

import pytest
import requests
from PIL import Image

from billing_docs.services.assets import AssetResolver


def make_png(size=(8, 6), color=(10, 80, 160)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class OfflineSession:
    """requests.Session stand-in: every GET fails like an unreachable host."""

    def __init__(self):
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        raise requests.ConnectionError(f"offline: {url}")


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def offline_assets(tmp_path):
    return AssetResolver(session=OfflineSession(), base_dir=str(tmp_path))


@pytest.fixture
def sample_payload(png_data_url):
    return {
        "clinic": {
            "name": "Sunrise Therapy Clinic",
            "address": "12 Lake Road, RS Puram, Coimbatore 641002",
            "phone": "9876543210",
            "email": "billing@sunrise.test",
            "website": "sunrise.test",
            "gstin": "33ABCDE1234F1Z5",
            "stateName": "Tamil Nadu",
            "stateCode": "33",
            "logoUrl": png_data_url,
        },
        "invoice": {
            "number": "INV-2025-001",
            "date": "2025-12-16",
            "status": "paid",
            "totalAmount": 1500,
            "paidAmount": 1000,
            "services": [
                {"name": "Speech Therapy Session", "cost": 1000, "qty": 2,
                 "hsn": "999312", "gstRate": 0},
                {"name": "Assessment", "amount": 500},
            ],
        },
        "patient": {
            "name": "Asha Kumar",
            "phone": "9000000001",
            "p_id": "P-0042",
            "caseId": "CASE-9",
            "stateName": "Tamil Nadu",
            "stateCode": "33",
        },
        "transaction": {
            "amount": 1000,
            "paymentMode": "UPI",
            "provider": "Razorpay",
            "status": "success",
            "paidAt": "2025-12-16T10:30:00Z",
            "internalTransactionId": "TXN-77",
            "_id": "65f0c0ffee",
        },
        "billing": {"overallTotal": 1500, "paidTotal": 1000, "dueTotal": 500},
        "bank": {
            "accountHolder": "Sunrise Therapy LLP",
            "bankName": "State Bank",
            "accountNumber": "001122334455",
            "ifsc": "SBIN0000123",
            "branch": "RS Puram",
            "upiId": "sunrise@okbank",
            "showOnReceipt": True,
            "showOnInvoice": True,
            "enableUpiQr": True,
        },
        "jurisdiction": "Coimbatore",
    }
