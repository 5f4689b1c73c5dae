"""In-memory snapshot of a prior output file.

A run task reads the previous output once at construction, keeps it as a
single-entry zip archive until execution, then restores and drops it.
"""
from __future__ import annotations

import io
import zipfile
from typing import Optional

from common.logging import get_logger

logger = get_logger("snapshot")

ENTRY_PREFIX = "zip"


def entry_name_for(selection: str) -> str:
    return f"{ENTRY_PREFIX}{selection}"


def snapshot(raw: bytes, entry_name: str) -> bytes:
    """Compress ``raw`` into a one-entry deflated zip archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(entry_name, raw)
    return buf.getvalue()


def restore(blob: Optional[bytes]) -> Optional[bytes]:
    """Bytes stored by :func:`snapshot`, or ``None`` when there is no usable blob.

    A corrupt archive is treated as "no prior output".
    """
    if not blob:
        return None
    try:
        with zipfile.ZipFile(io.BytesIO(blob)) as zf:
            names = zf.namelist()
            if not names:
                return None
            return b"".join(zf.read(name) for name in names)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as exc:
        logger.debug("Discarding unreadable snapshot: %s", exc)
        return None
