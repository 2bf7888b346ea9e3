# billing_docs/services/output.py
from __future__ import annotations

import logging
import tempfile
import webbrowser
from pathlib import Path
from typing import Callable, Optional, Protocol

from billing_docs.core.config import settings
from billing_docs.services.pdfs.blocks import RenderedDocument

logger = logging.getLogger(__name__)


class OutputSink(Protocol):
    def preview(self, document: RenderedDocument) -> Path: ...

    def save(self, document: RenderedDocument) -> Path: ...


class Notifier(Protocol):
    def report_failure(self, message: str) -> None: ...


class FileOutputSink:
    """save() writes <directory>/<filename>; preview() opens a temp copy in the browser."""

    def __init__(self,
                 directory: Optional[str] = None,
                 *,
                 opener: Optional[Callable[[str], object]] = None):
        self.directory = Path(directory or settings.OUTPUT_DIR)
        self.opener = opener or webbrowser.open

    def save(self, document: RenderedDocument) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / document.filename
        path.write_bytes(document.content)
        logger.info("Saved %s (%s bytes)", path, document.size)
        return path

    def preview(self, document: RenderedDocument) -> Path:
        stem = Path(document.filename).stem
        with tempfile.NamedTemporaryFile(prefix=f"{stem}_", suffix=".pdf",
                                         delete=False) as fh:
            fh.write(document.content)
            path = Path(fh.name)
        logger.info("Opening preview %s", path)
        self.opener(path.resolve().as_uri())
        return path


class LogNotifier:
    def __init__(self, logger_name: str = "billing_docs.notify"):
        self._log = logging.getLogger(logger_name)

    def report_failure(self, message: str) -> None:
        self._log.error(message)
