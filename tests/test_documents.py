from datetime import date
from pathlib import Path

from billing_docs.core.errors import BillingFetchError
from billing_docs.services.documents import BillingDocumentService, deliver, render_receipt
from billing_docs.services.output import FileOutputSink
from billing_docs.services.pdfs.blocks import RenderOptions, RenderedDocument


class FakeClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def _answer(self, *args, **kwargs):
        if self.error is not None:
            raise self.error
        return self.payload

    def receipt_by_transaction(self, transaction_id, token=None):
        self.calls.append(("receipt", transaction_id, token))
        return self._answer()

    def invoice_by_case(self, case_id, token=None, billing_id=None):
        self.calls.append(("case", case_id, token, billing_id))
        return self._answer()

    def final_invoice_by_bill(self, bill_id, token=None):
        self.calls.append(("bill", bill_id, token))
        return self._answer()


class RecordingSink:
    def __init__(self):
        self.saved = []
        self.previewed = []

    def save(self, document):
        self.saved.append(document)
        return Path("/out") / document.filename

    def preview(self, document):
        self.previewed.append(document)
        return Path("/tmp") / document.filename


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def report_failure(self, message):
        self.messages.append(message)


def _service(client, assets):
    return BillingDocumentService(client, RecordingSink(), RecordingNotifier(), assets)


def test_receipt_is_fetched_rendered_and_saved(sample_payload, offline_assets):
    client = FakeClient(sample_payload)
    svc = _service(client, offline_assets)

    path = svc.receipt_by_transaction("TXN-77", token="tok")

    assert path == Path("/out/Receipt_INV-2025-001_TXN-77.pdf")
    assert client.calls == [("receipt", "TXN-77", "tok")]
    assert svc.sink.saved[0].content.startswith(b"%PDF")
    assert svc.sink.previewed == []
    assert svc.notifier.messages == []


def test_preview_goes_to_the_preview_sink(sample_payload, offline_assets):
    svc = _service(FakeClient(sample_payload), offline_assets)
    svc.final_invoice_by_bill("BILL-1", preview=True)

    assert [d.filename for d in svc.sink.previewed] == ["Invoice_INV-2025-001.pdf"]
    assert svc.sink.saved == []


def test_case_invoice_without_number_is_named_after_case(sample_payload, offline_assets):
    sample_payload["invoice"]["number"] = ""
    client = FakeClient(sample_payload)
    svc = _service(client, offline_assets)

    path = svc.invoice_by_case("CASE-9", token="tok", billing_id="BILL-2")

    assert path.name == "Invoice_CASE-9.pdf"
    assert client.calls == [("case", "CASE-9", "tok", "BILL-2")]


def test_fetch_failure_is_reported_and_nothing_is_written(offline_assets):
    svc = _service(FakeClient(error=BillingFetchError("Transaction not found", 404)),
                   offline_assets)

    assert svc.receipt_by_transaction("TXN-0") is None
    assert svc.notifier.messages == ["Failed to download receipt: Transaction not found"]
    assert svc.sink.saved == [] and svc.sink.previewed == []


def test_bad_payload_is_reported_as_invoice_failure(offline_assets):
    svc = _service(FakeClient({"clinic": "Sunrise"}),
                   offline_assets)

    assert svc.final_invoice_by_bill("BILL-1") is None
    assert len(svc.notifier.messages) == 1
    assert svc.notifier.messages[0].startswith("Failed to download invoice: invalid billing payload")
    assert svc.sink.saved == []


def test_file_sink_saves_under_directory(tmp_path):
    doc = RenderedDocument(filename="Invoice_X.pdf", content=b"%PDF-1.4 test", page_count=1)
    path = FileOutputSink(str(tmp_path / "out")).save(doc)

    assert path == tmp_path / "out" / "Invoice_X.pdf"
    assert path.read_bytes() == b"%PDF-1.4 test"


def test_file_sink_preview_opens_temp_copy(tmp_path):
    opened = []
    doc = RenderedDocument(filename="Receipt_R1.pdf", content=b"%PDF-1.4 test", page_count=1)
    sink = FileOutputSink(str(tmp_path), opener=opened.append)

    path = sink.preview(doc)
    try:
        assert path.read_bytes() == b"%PDF-1.4 test"
        assert path.name.startswith("Receipt_R1_")
        assert opened == [path.resolve().as_uri()]
        assert list(tmp_path.iterdir()) == []
    finally:
        path.unlink()


def test_deliver_routes_by_preview_flag(sample_payload, offline_assets):
    doc = render_receipt(sample_payload, assets=offline_assets,
                         options=RenderOptions(generated_on=date(2025, 12, 16)))
    sink = RecordingSink()

    deliver(doc, sink)
    deliver(doc, sink, preview=True)

    assert sink.saved == [doc]
    assert sink.previewed == [doc]
