"""
Envelope Signature Verification.

Verifies that the escrow parameters stated in a PDF were attested by a
known signing key, without trusting the server that issued the PDF.

Pipeline (each step is a terminal hard stop with a reason):

    1. EXTRACT    Subject present and decodes to an envelope
    2. SCHEMA     envelope.schema equals the expected version exactly
    3. SIGNATURE  envelope.signing.sig is present
    4. RECOVERY   recover the EIP-191 signer over the canonical JSON of the
                  envelope without its ``signing`` block
    5. TRUST      recovered address is in the pinned allow-list

TRUST BOUNDARY:
    The allow-list is injected at construction and never derived from the
    document. The ``signing.signer`` field inside the envelope is
    informational only; only the recovered address is compared.

Exception handling policy:
    No input, however adversarial, raises past this module. Decoding
    failures are mapped to step 1. Any failure while serializing the
    signing message or inside the recovery library is mapped to step 4.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, Optional

from anyio import to_thread
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import is_address, to_checksum_address

from verifier.app.checks.subject_extraction import extract_subject
from verifier.app.codecs.envelope_codec import decode_envelope
from verifier.app.schemas.envelope import (
    ZENLAND_ESCROW_PDF_SCHEMA_V1,
    EscrowPdfEnvelope,
)
from verifier.app.schemas.verification import (
    EnvelopeVerificationResult,
    VerificationStep,
)
from verifier.app.utils.canonical_json import stringify_canonical_json

logger = logging.getLogger(__name__)


def signing_message(envelope: EscrowPdfEnvelope) -> str:
    """Canonical JSON of the envelope without its ``signing`` block."""
    return stringify_canonical_json(envelope.unsigned_payload())


def recover_signer(message: str, signature: str) -> str:
    """
    Recover the address that produced an EIP-191 personal-message
    signature over the UTF-8 bytes of ``message``.

    Raises whatever the underlying library raises for malformed input.
    """
    return Account.recover_message(encode_defunct(text=message), signature=signature)


class EnvelopeSignatureVerifier:
    """
    Envelope signature verifier bound to a fixed trust anchor.

    The verifier is stateless beyond its configuration and safe to share
    across requests.
    """

    def __init__(
        self,
        allowed_signers: Iterable[str],
        expected_schema: str = ZENLAND_ESCROW_PDF_SCHEMA_V1,
    ) -> None:
        allowed: FrozenSet[str] = frozenset(s.lower() for s in allowed_signers)
        if not allowed:
            raise ValueError("At least one allowed signer is required")

        self._allowed_signers = allowed
        self._expected_schema = expected_schema

    @property
    def allowed_signers(self) -> FrozenSet[str]:
        """Lower-cased trust anchor."""
        return self._allowed_signers

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def verify_pdf(self, pdf_bytes: bytes) -> EnvelopeVerificationResult:
        """Verify the envelope embedded in a PDF's Subject field."""
        return self.verify_subject(extract_subject(pdf_bytes))

    async def verify_pdf_async(self, pdf_bytes: bytes) -> EnvelopeVerificationResult:
        """
        Awaitable variant of :meth:`verify_pdf`.

        The pipeline is CPU-bound and side-effect free; it runs in a
        worker thread so it does not block the event loop.
        """
        return await to_thread.run_sync(self.verify_pdf, pdf_bytes)

    def verify_subject(self, subject: Optional[str]) -> EnvelopeVerificationResult:
        """Verify a raw Subject field value."""
        envelope = decode_envelope(subject)
        if envelope is None:
            logger.info("No decodable escrow envelope in PDF subject")
            return EnvelopeVerificationResult.failure(
                VerificationStep.EXTRACT,
                "Missing or invalid zenland metadata in PDF subject",
            )
        return self.verify_envelope(envelope)

    def verify_envelope(self, envelope: EscrowPdfEnvelope) -> EnvelopeVerificationResult:
        """Run steps 2 to 5 against an already decoded envelope."""

        # --------------------------------------------------------------
        # Step 2: exact schema version
        # --------------------------------------------------------------
        if envelope.schema_id != self._expected_schema:
            logger.info("Unsupported envelope schema: %s", envelope.schema_id)
            return EnvelopeVerificationResult.failure(
                VerificationStep.SCHEMA,
                f"Unsupported schema: {envelope.schema_id}",
            )

        # --------------------------------------------------------------
        # Step 3: signature presence
        # --------------------------------------------------------------
        signature = envelope.signing.sig if envelope.signing is not None else None
        if not signature:
            return EnvelopeVerificationResult.failure(
                VerificationStep.SIGNATURE,
                "Missing signature",
            )

        # --------------------------------------------------------------
        # Step 4: recover signer over the canonical unsigned payload
        # --------------------------------------------------------------
        # Unknown fields are attacker-shaped; serializing them can fail too.
        try:
            message = signing_message(envelope)
            recovered = recover_signer(message, signature)
        except Exception as exc:
            logger.info("Envelope signature recovery failed: %s", exc)
            return EnvelopeVerificationResult.failure(
                VerificationStep.RECOVERY,
                f"Signature recovery failed: {exc}",
            )

        if not isinstance(recovered, str) or not is_address(recovered):
            return EnvelopeVerificationResult.failure(
                VerificationStep.RECOVERY,
                "Recovered signer is not a valid address",
            )

        signer = to_checksum_address(recovered)

        # --------------------------------------------------------------
        # Step 5: trust anchor (recovered address only)
        # --------------------------------------------------------------
        if signer.lower() not in self._allowed_signers:
            logger.warning(
                "Envelope signed by non-allow-listed signer %s (claimed %s)",
                signer,
                envelope.signing.signer if envelope.signing else None,
            )
            return EnvelopeVerificationResult.failure(
                VerificationStep.TRUST,
                f"Signer not allowed: {signer}",
            )

        logger.info(
            "Verified escrow envelope for %s signed by %s",
            envelope.escrow.escrow_address,
            signer,
        )
        return EnvelopeVerificationResult.success(signer=signer, envelope=envelope)
