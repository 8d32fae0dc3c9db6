"""
Encoding helpers for dump and translation files.

Unity text dumps are usually UTF-8 (often with a BOM), but files that went
through older editors turn up in legacy code pages. Reading never crashes on
bad bytes; the encoding that was used is logged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import chardet

from ..core.line_model import normalize_file_content

logger = logging.getLogger(__name__)

PREFERRED_ENCODINGS = ("utf-8-sig", "utf-8")
# below this chardet guesses are decoded as UTF-8 with replacement
MIN_CONFIDENCE = 0.5


def detect_encoding(raw: bytes) -> Tuple[str, float]:
    """chardet guess as ``(encoding, confidence)``; UTF-8 when unknown."""
    detected = chardet.detect(raw)
    encoding = detected.get("encoding") or "utf-8"
    confidence = detected.get("confidence") or 0.0
    if confidence < MIN_CONFIDENCE:
        return "utf-8", confidence
    return encoding, confidence


def decode_bytes(raw: bytes, preferred: Tuple[str, ...] = PREFERRED_ENCODINGS) -> Tuple[str, str]:
    """Decode ``raw`` and return ``(text, encoding used)``."""
    for enc in preferred:
        try:
            return raw.decode(enc), enc
        except UnicodeDecodeError:
            continue

    enc, confidence = detect_encoding(raw)
    logger.warning(f"Not valid UTF-8, decoding as {enc} (confidence {confidence:.2f})")
    try:
        return raw.decode(enc, errors="replace"), enc
    except LookupError:
        return raw.decode("utf-8", errors="replace"), "utf-8"


def read_text_safely(path: Path,
                     preferred: Tuple[str, ...] = PREFERRED_ENCODINGS,
                     normalize: bool = False) -> Optional[str]:
    """
    Read a file as text with tolerant fallbacks.

    With ``normalize`` the BOM is stripped and CRLF becomes LF, ready for
    line indexing. Returns None on I/O failure.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        logger.error(f"Could not read {path}: {e}")
        return None

    text, enc = decode_bytes(raw, preferred)
    logger.debug(f"Read {path} ({len(raw)} bytes, {enc})")
    return normalize_file_content(text) if normalize else text


def write_text(path: Path, text: str) -> bool:
    """
    Write text as UTF-8 with LF newlines, creating parent folders.
    Returns True if the write succeeded.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        return True
    except OSError as e:
        logger.error(f"Could not write {path}: {e}")
        return False
