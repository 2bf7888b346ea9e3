# billing_docs/scripts/render_document.py
"""
Render a billing payload JSON file to a PDF.

    python -m billing_docs.scripts.render_document invoice payload.json --out ./output
    python -m billing_docs.scripts.render_document receipt payload.json --preview
"""
from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from billing_docs.core.config import settings
from billing_docs.core.errors import BillingDocsError
from billing_docs.core.logging_setup import configure_logging
from billing_docs.services.documents import deliver, render_invoice, render_receipt
from billing_docs.services.output import FileOutputSink, LogNotifier
from billing_docs.services.pdfs.blocks import RenderOptions

logger = logging.getLogger("billing_docs.scripts.render_document")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Render a clinic invoice / receipt PDF from a JSON payload")
    ap.add_argument("kind", choices=["invoice", "receipt"], help="Document type")
    ap.add_argument("payload", help="Path to the billing payload JSON file")
    ap.add_argument("--out", default=None, help=f"Output directory (default: {settings.OUTPUT_DIR})")
    ap.add_argument("--preview", action="store_true", help="Open in the browser instead of saving")
    ap.add_argument("--fallback", default=None, help="Invoice number used when the payload has none")
    ap.add_argument("--generated-on", default=None,
                    help="Fixed generation date YYYY-MM-DD (reproducible output)")
    ap.add_argument("--log-level", default=None, help="DEBUG / INFO / WARNING / ERROR")
    args = ap.parse_args(argv)

    configure_logging(level=args.log_level)
    notifier = LogNotifier()
    label = "invoice" if args.kind == "invoice" else "receipt"

    try:
        data = json.loads(Path(args.payload).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        notifier.report_failure(f"Failed to download {label}: {e}")
        return 1

    generated_on = date.fromisoformat(args.generated_on) if args.generated_on else None
    options = RenderOptions(generated_on=generated_on, filename_fallback=args.fallback)
    render = render_invoice if args.kind == "invoice" else render_receipt

    try:
        document = render(data, options=options)
    except BillingDocsError as e:
        notifier.report_failure(f"Failed to download {label}: {e.message}")
        return 1

    path = deliver(document, FileOutputSink(args.out), preview=args.preview)
    logger.info("%s written: %s (%s page(s))", label.capitalize(), path, document.page_count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
