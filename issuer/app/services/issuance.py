"""
Escrow PDF issuance.

Signs escrow metadata, binds the envelope into the rendered PDF, and
computes the terms hash the escrow contract will commit to.

The terms hash is computed over the final bytes. It must be taken from
the returned artifact and never from an intermediate file.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from issuer.app.config import IssuerConfig
from issuer.app.services.envelope_signing import sign_envelope
from issuer.app.services.pdf_metadata import embed_envelope
from verifier.app.schemas.envelope import EscrowPdfEnvelope, UnsignedEscrowMetadata
from verifier.app.utils.hashing import compute_terms_hash

logger = logging.getLogger(__name__)


class IssuedEscrowPdf(BaseModel):
    pdf_bytes: bytes
    terms_hash: str
    envelope: EscrowPdfEnvelope

    model_config = ConfigDict(frozen=True)


def issue_escrow_pdf(
    pdf_bytes: bytes,
    unsigned: UnsignedEscrowMetadata,
    config: IssuerConfig,
) -> IssuedEscrowPdf:
    envelope = sign_envelope(
        unsigned,
        private_key=config.PDF_SIGNING_PRIVATE_KEY.get_secret_value(),
        kid=config.SIGNING_KID,
    )
    artifact = embed_envelope(pdf_bytes, envelope)
    terms_hash = compute_terms_hash(artifact)

    logger.info(
        "Issued escrow PDF for %s (termsHash=%s, signer=%s)",
        unsigned.escrow.escrow_address,
        terms_hash,
        envelope.signing.signer,
    )

    return IssuedEscrowPdf(
        pdf_bytes=artifact,
        terms_hash=terms_hash,
        envelope=envelope,
    )
