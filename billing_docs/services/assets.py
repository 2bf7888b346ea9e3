# billing_docs/services/assets.py
from __future__ import annotations

import base64
import logging
import mimetypes
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple

import requests
from reportlab.lib.utils import ImageReader

from billing_docs.core.config import settings

logger = logging.getLogger(__name__)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<body>.*)$",
                       re.DOTALL)


def _sniff_mime(data: bytes) -> Optional[str]:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    return None


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    m = _DATA_URL.match(data_url.strip())
    if not m:
        raise ValueError("not a data URL")
    mime = m.group("mime") or "application/octet-stream"
    body = m.group("body")
    if m.group("b64"):
        return base64.b64decode(body, validate=False), mime
    return body.encode("utf-8"), mime


@dataclass(frozen=True)
class RasterImage:
    data: bytes
    mime: str
    width: int
    height: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def reader(self) -> ImageReader:
        return ImageReader(BytesIO(self.data))

    @classmethod
    def from_bytes(cls, data: bytes, mime: Optional[str] = None) -> "RasterImage":
        if not data:
            raise ValueError("empty image data")
        real_mime = _sniff_mime(data) or mime or "image/png"
        iw, ih = ImageReader(BytesIO(data)).getSize()
        if not iw or not ih:
            raise ValueError("image has no size")
        return cls(data=data, mime=real_mime, width=int(iw), height=int(ih))


class AssetResolver:
    """
    Turns a logo / image reference into an embeddable raster.

    References may be http(s) URLs, data: URLs or local paths (relative
    paths are looked up under settings.ASSET_DIR). Failures never propagate:
    the caller just gets None and draws the block without the image.
    """

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 *,
                 timeout: Optional[float] = None,
                 base_dir: Optional[str] = None):
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else settings.ASSET_TIMEOUT_SECONDS
        self.base_dir = Path(base_dir if base_dir is not None else settings.ASSET_DIR)

    def _fetch(self, ref: str) -> Tuple[bytes, Optional[str]]:
        low = ref.lower()
        if low.startswith("data:"):
            return decode_data_url(ref)

        if low.startswith(("http://", "https://")):
            resp = self.session.get(ref, timeout=self.timeout)
            resp.raise_for_status()
            ctype = (resp.headers.get("Content-Type") or "").split(";")[0].strip()
            return resp.content, (ctype or None)

        p = Path(ref)
        if not p.is_absolute():
            p = self.base_dir / p
        if not p.is_file():
            raise FileNotFoundError(str(p))
        return p.read_bytes(), mimetypes.guess_type(str(p))[0]

    def resolve(self, ref: Optional[str]) -> Optional[RasterImage]:
        if not ref:
            return None
        try:
            data, mime = self._fetch(ref.strip())
            img = RasterImage.from_bytes(data, mime)
        except Exception as exc:
            logger.warning("Image asset unavailable (%s): %s", ref[:80], exc)
            return None
        logger.debug("Image asset %s: %s %sx%s", ref[:80], img.mime, img.width, img.height)
        return img

    def resolve_first(self, *refs: Optional[str]) -> Optional[RasterImage]:
        for ref in refs:
            img = self.resolve(ref)
            if img is not None:
                return img
        return None
