"""
Document-information Subject extraction.

Zenland escrow PDFs carry their signed envelope in the classic
document-information dictionary (``/Info /Subject``). This is the only
metadata location consulted. XMP is not used.

This module reads bytes, not meaning. Decoding and verification of the
Subject value happen downstream.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

import pikepdf

logger = logging.getLogger(__name__)


def extract_subject(pdf_bytes: bytes) -> Optional[str]:
    """
    Return the document-information Subject, or ``None``.

    ``None`` is returned when the PDF cannot be parsed, has no Subject, or
    the Subject is not a string object.
    """
    try:
        with pikepdf.open(BytesIO(pdf_bytes)) as pdf:
            subject = pdf.docinfo.get("/Subject")
            if subject is None or not isinstance(subject, pikepdf.String):
                return None
            return str(subject)
    except pikepdf.PdfError as exc:
        logger.info("PDF structural parse failure during Subject extraction: %s", exc)
        return None
