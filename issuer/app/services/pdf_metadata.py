"""
PDF document-information binding.

Writes the encoded escrow envelope into the classic document-information
Subject field of a rendered PDF.

Trust boundary:
- This module does NOT sign anything. The envelope is already signed.
- The terms hash committed on-chain is computed over the bytes returned
  here; any later rewrite of the file changes that hash.
"""

from __future__ import annotations

from io import BytesIO

import pikepdf

from verifier.app.codecs.envelope_codec import encode_envelope
from verifier.app.schemas.envelope import EscrowPdfEnvelope


class PdfMetadataError(RuntimeError):
    """Raised when PDF metadata cannot be written."""


def embed_subject(pdf_bytes: bytes, subject: str) -> bytes:
    """Return a copy of the PDF with ``/Info /Subject`` set."""
    try:
        with pikepdf.open(BytesIO(pdf_bytes)) as pdf:
            pdf.docinfo["/Subject"] = pikepdf.String(subject)
            buffer = BytesIO()
            pdf.save(buffer)
    except pikepdf.PdfError as exc:
        raise PdfMetadataError(
            f"Failed to write Subject into PDF document information: {exc}"
        ) from exc

    return buffer.getvalue()


def embed_envelope(pdf_bytes: bytes, envelope: EscrowPdfEnvelope) -> bytes:
    """Encode a signed envelope and bind it into the PDF Subject."""
    if envelope.signing is None or not envelope.signing.sig:
        raise PdfMetadataError("Refusing to embed an unsigned escrow envelope")

    return embed_subject(pdf_bytes, encode_envelope(envelope))
